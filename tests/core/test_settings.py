from pathlib import Path
from fnrouter.config.settings import Settings


def test_settings_from_env(monkeypatch, tmp_path):
    monkeypatch.setenv("FNROUTER_ROOT", str(tmp_path))
    monkeypatch.setenv("FNROUTER_FUNCTIONS_DIR", "fns")
    monkeypatch.setenv("FNROUTER_PORT", "9000")
    monkeypatch.setenv("FNROUTER_RETRIES", "4")
    monkeypatch.setenv("FNROUTER_WATCH", "false")

    settings = Settings.from_env(dotenv=False)

    assert settings.port == 9000
    assert settings.retries == 4
    assert settings.watch is False
    assert settings.functions_path == str((tmp_path / "fns").resolve())


def test_settings_defaults(monkeypatch):
    for name in ("FNROUTER_ROOT", "FNROUTER_FUNCTIONS_DIR", "FNROUTER_BACKEND", "FNROUTER_WATCH", "FNROUTER_PORT"):
        monkeypatch.delenv(name, raising=False)

    settings = Settings.from_env(dotenv=False)

    assert settings.functions_dir == "functions"
    assert settings.backend_url == "http://localhost:3001"
    assert settings.watch is True
    assert Path(settings.functions_path).name == "functions"
