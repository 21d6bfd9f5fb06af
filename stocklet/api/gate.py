"""
Login gate for browser navigation

API routes authorize per handler; every other page needs a session
cookie or is redirected to the login page.
"""
from urllib.parse import quote

from fastapi import Request
from fastapi.responses import RedirectResponse

from stocklet.core.config import settings

PUBLIC_ROUTES = (
    "/login",
    "/register",
    "/api/auth/login",
    "/api/auth/register",
    "/api/auth/refresh",
)
PASS_THROUGH_PREFIXES = ("/static", "/_next", "/favicon.ico", "/health")


def is_public_path(path: str) -> bool:
    if path == "/" or path.startswith(settings.API_PREFIX + "/") or path == settings.API_PREFIX:
        return True
    if path in (settings.DOCS_URL, settings.OPENAPI_URL):
        return True
    if any(path.startswith(prefix) for prefix in PASS_THROUGH_PREFIXES):
        return True
    return any(path == route or path.startswith(route + "/") for route in PUBLIC_ROUTES)


async def login_gate(request: Request, call_next):
    path = request.url.path
    if is_public_path(path) or request.cookies.get(settings.COOKIE_NAME):
        return await call_next(request)

    return RedirectResponse(url=f"/login?redirect={quote(path, safe='')}", status_code=307)
