"""Request guards for the admin console and the partner dashboard.

Plain functions over the incoming request; the FastAPI dependencies in
``ecoconsole_core.api.deps`` turn a failed check into an ``AuthError``.
"""

import hmac
from typing import Optional

from fastapi import Request

from ecoconsole_core.config import Settings

ADMIN_SECRET_PARAM = "secret"
ACCESS_TOKEN_COOKIE = "access_token"


def admin_secret_valid(request: Request, settings: Settings) -> bool:
    """Check the ``secret`` query parameter against the configured admin secret.

    With no secret configured every request is denied.
    """
    expected = settings.admin_secret
    if not expected:
        return False

    provided = request.query_params.get(ADMIN_SECRET_PARAM)
    if not provided:
        return False

    return hmac.compare_digest(provided.encode(), expected.encode())


def extract_access_token(request: Request) -> Optional[str]:
    """Get the partner's access token from the Authorization header or cookie.

    A bearer header takes precedence over the cookie.
    """
    authorization = request.headers.get("authorization", "")
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() == "bearer" and token.strip():
        return token.strip()

    cookie = request.cookies.get(ACCESS_TOKEN_COOKIE)
    if cookie:
        return cookie
    return None
