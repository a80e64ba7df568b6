import uvicorn
from fnrouter.config.settings import Settings
from fnrouter.core.functions_router import FunctionsRouter
from fnrouter.core.proxy_executor import ProxyExecutor
from fnrouter.core.trace import RequestIdMiddleware
from fnrouter.core.logging_setup import configure_logging
from fnrouter.core.admin_router import AdminRouter
from fnrouter.core.mount_admin_first import MountAdminFirst

settings = Settings.from_env()
configure_logging(settings.log_level)

executor = ProxyExecutor(
    settings.backend_url,
    timeout=settings.timeout,
    retries=settings.retries,
    retry_delay=settings.retry_delay,
)

# Route index owner; requests it does not serve fall through to a 404
functions_router = FunctionsRouter(
    settings.functions_path,
    executor=executor,
    watch=settings.watch,
)

# Admin gets direct access to the unwrapped FunctionsRouter instance
admin_app = AdminRouter(functions_router)

app = MountAdminFirst(admin_app, RequestIdMiddleware(functions_router))

if __name__ == "__main__":
    uvicorn.run(app, host=settings.host, port=settings.port)
