# routers/analytics.py
from __future__ import annotations
import json

from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import Response

from divwelly.core.config import Settings
from divwelly.routers.deps import get_settings

router = APIRouter(tags=["Analytics"])

TRACKER_SRC = "https://esm.sh/@loggerlizard/lizard"


def tracker_script(api_key: str) -> str:
    return (
        f"import Lizard from '{TRACKER_SRC}';\n"
        f"new Lizard({json.dumps(api_key)}, {{ autoTrack: true, debug: false }});\n"
    )


@router.get("/lib/loggerlizard.js")
def loggerlizard(settings: Settings = Depends(get_settings)):
    """Tracker bootstrap; only exists when an API key is configured."""
    if not settings.loggerlizard_api_key:
        raise HTTPException(404, "Analytics not configured")
    return Response(tracker_script(settings.loggerlizard_api_key),
                    media_type="application/javascript")
