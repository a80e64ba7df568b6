import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv


def _env_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


@dataclass(frozen=True)
class Settings:
    root: str = "."
    functions_dir: str = "functions"
    backend_url: str = "http://localhost:3001"
    host: str = "127.0.0.1"
    port: int = 8080
    retries: int = 2
    retry_delay: float = 0.1
    timeout: float = 5.0
    log_level: str = "INFO"
    watch: bool = True

    @property
    def functions_path(self) -> str:
        return str((Path(self.root) / self.functions_dir).resolve())

    @classmethod
    def from_env(cls, dotenv: bool = True) -> "Settings":
        if dotenv:
            # Load environment variables from .env file
            load_dotenv()

        return cls(
            root=os.getenv("FNROUTER_ROOT", os.getcwd()),
            functions_dir=os.getenv("FNROUTER_FUNCTIONS_DIR", cls.functions_dir),
            backend_url=os.getenv("FNROUTER_BACKEND", cls.backend_url),
            host=os.getenv("FNROUTER_HOST", cls.host),
            port=int(os.getenv("FNROUTER_PORT", cls.port)),
            retries=int(os.getenv("FNROUTER_RETRIES", cls.retries)),
            retry_delay=float(os.getenv("FNROUTER_RETRY_DELAY", cls.retry_delay)),
            timeout=float(os.getenv("FNROUTER_TIMEOUT", cls.timeout)),
            log_level=os.getenv("FNROUTER_LOG_LEVEL", cls.log_level),
            watch=_env_bool("FNROUTER_WATCH", cls.watch),
        )
