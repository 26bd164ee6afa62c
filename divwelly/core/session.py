# core/session.py
"""
Session cookie handling.

The household API issues either `better-auth.session_token` or, behind
HTTPS, `__Secure-better-auth.session_token`. Every caller resolves the
cookie through find_session_cookie so the lookup order is the same
everywhere: the secure name first, then the plain one.
"""
from __future__ import annotations
from dataclasses import dataclass
from typing import Mapping, Optional

SESSION_COOKIE = "better-auth.session_token"
SECURE_SESSION_COOKIE = "__Secure-" + SESSION_COOKIE
SESSION_COOKIE_NAMES = (SECURE_SESSION_COOKIE, SESSION_COOKIE)

# ---------- routing filter ----------
AUTH_PAGES = {"/", "/login", "/signup"}
PROTECTED_PREFIXES = ("/dashboard", "/household")


@dataclass(frozen=True)
class SessionCookie:
    name: str
    value: str

    def header(self) -> str:
        return f"{self.name}={self.value}"


def find_session_cookie(cookies: Mapping[str, str]) -> Optional[SessionCookie]:
    for name in SESSION_COOKIE_NAMES:
        value = cookies.get(name)
        if value:
            return SessionCookie(name, value)
    return None


def cookie_name(secure: bool) -> str:
    return SECURE_SESSION_COOKIE if secure else SESSION_COOKIE


def gate_redirect(path: str, cookies: Mapping[str, str]) -> Optional[str]:
    """Where to send this request, or None to let it through. Presence check only."""
    logged_in = find_session_cookie(cookies) is not None
    if logged_in and path in AUTH_PAGES:
        return "/dashboard"
    if not logged_in and path.startswith(PROTECTED_PREFIXES):
        return "/login"
    return None


def set_session_cookie(response, value: str, secure: bool = False) -> None:
    response.set_cookie(
        cookie_name(secure),
        value,
        httponly=True,
        secure=secure,
        samesite="lax",
        path="/",
    )


def clear_session_cookies(response) -> None:
    for name in SESSION_COOKIE_NAMES:
        response.delete_cookie(name, path="/", secure=name == SECURE_SESSION_COOKIE)


def session_from_response(resp) -> Optional[str]:
    """Session token the household API set on a sign-in/sign-up answer."""
    for name in SESSION_COOKIE_NAMES:
        value = resp.cookies.get(name)
        if value:
            return value
    return None
