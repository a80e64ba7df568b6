from starlette.types import ASGIApp, Scope, Receive, Send


class MountAdminFirst:
    """Sends ``/__*`` paths to the admin app and everything else, lifespan included, to the main app."""

    def __init__(self, admin_app: ASGIApp, main_app: ASGIApp, prefix: str = "/__") -> None:
        self.admin_app = admin_app
        self.main_app = main_app
        self.prefix = prefix

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] == "http" and scope["path"].startswith(self.prefix):
            await self.admin_app(scope, receive, send)
        else:
            await self.main_app(scope, receive, send)
