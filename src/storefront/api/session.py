"""Anonymous shopping sessions carried in a cookie.

The cookie value is an opaque random token. It only scopes a cart and
grants nothing else; an unreadable value is treated as no cookie at all.
"""

from dataclasses import dataclass
from uuid import UUID, uuid4

from fastapi import Request, Response

from storefront.config import get_settings


@dataclass(frozen=True)
class SessionContext:
    session_id: str
    is_new: bool = False


def new_session_id() -> str:
    return uuid4().hex


def is_valid_session_id(value: str | None) -> bool:
    if not value or len(value) != 32:
        return False
    try:
        return UUID(hex=value).hex == value.lower()
    except ValueError:
        return False


def resolve_session(request: Request, create: bool = False) -> SessionContext | None:
    """Return the request's session, minting one when ``create`` is set."""
    value = request.cookies.get(get_settings().session_cookie_name)
    if is_valid_session_id(value):
        return SessionContext(session_id=value.lower())
    if not create:
        return None
    return SessionContext(session_id=new_session_id(), is_new=True)


def attach_session_cookie(response: Response, context: SessionContext | None) -> None:
    """Deliver a freshly minted session to the browser."""
    if context is None or not context.is_new:
        return
    settings = get_settings()
    response.set_cookie(
        key=settings.session_cookie_name,
        value=context.session_id,
        max_age=settings.session_cookie_max_age,
        path="/",
        httponly=True,
        secure=settings.secure_cookies,
        samesite="lax",
    )
