"""CORS policy split between the admin API and the storefront API"""

from fastapi.middleware.cors import CORSMiddleware
from starlette.types import ASGIApp, Receive, Scope, Send


class SplitCORSMiddleware:
    """Open CORS under *public_prefix*, credentialed CORS everywhere else.

    Storefront widgets call the public endpoints from any shop domain and
    send no credentials. The admin API only answers its own frontend and
    needs the session cookie.
    """

    def __init__(self, app: ASGIApp, public_prefix: str, admin_origins: list[str]) -> None:
        self.public_prefix = public_prefix.rstrip("/")
        self.public = CORSMiddleware(
            app,
            allow_origins=["*"],
            allow_methods=["GET", "OPTIONS"],
            allow_headers=["*"],
        )
        self.admin = CORSMiddleware(
            app,
            allow_origins=admin_origins,
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        )

    def is_public(self, path: str) -> bool:
        return path == self.public_prefix or path.startswith(self.public_prefix + "/")

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] == "http" and self.is_public(scope["path"]):
            await self.public(scope, receive, send)
        else:
            await self.admin(scope, receive, send)
