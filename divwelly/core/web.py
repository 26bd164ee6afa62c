# core/web.py
from __future__ import annotations
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Optional

from fastapi import Request
from fastapi.responses import RedirectResponse
from fastapi.templating import Jinja2Templates

from divwelly.core.money import format_minor, initials
from divwelly.core.state import FLASH_KEY, Toasts

TEMPLATES_DIR = Path(__file__).resolve().parent.parent / "templates"

templates = Jinja2Templates(directory=str(TEMPLATES_DIR))


def _date(value: Optional[datetime], fmt: str = "%d/%m/%Y") -> str:
    if value is None:
        return ""
    return value.strftime(fmt)


templates.env.filters["money"] = format_minor
templates.env.filters["date"] = _date
templates.env.filters["initials"] = initials


def flash(request: Request, toasts: Optional[Toasts]) -> None:
    """Queue toasts in the signed session for the next rendered page."""
    if toasts is None or not len(toasts):
        return
    request.session[FLASH_KEY] = request.session.get(FLASH_KEY, []) + toasts.as_list()


def render(request: Request, name: str, context: Optional[Dict[str, Any]] = None,
           toasts: Optional[Toasts] = None, status_code: int = 200):
    """Render a page, showing toasts carried over from the last redirect once."""
    # the catch-all error handler runs outside the session middleware
    carried = request.session.pop(FLASH_KEY, None) if "session" in request.scope else None
    shown = Toasts.from_list(carried)
    if toasts is not None:
        shown.extend(toasts)
    settings = request.app.state.settings
    ctx = {
        "app_name": settings.app_name,
        "analytics_enabled": bool(settings.loggerlizard_api_key),
        "toasts": shown,
    }
    ctx.update(context or {})
    return templates.TemplateResponse(request, name, ctx, status_code=status_code)


def redirect(request: Request, url: str, toasts: Optional[Toasts] = None) -> RedirectResponse:
    flash(request, toasts)
    return RedirectResponse(url, status_code=303)
