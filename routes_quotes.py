# routes_quotes.py
import io
from typing import Optional

from fastapi import APIRouter, Request, HTTPException
from fastapi.responses import JSONResponse, StreamingResponse

from logic import log, render_quote_card, pil_to_png_bytes, issue_cookie, CardCfg, APP_TITLE, COOKIE_NAME
from ui_html import quote_view

router = APIRouter()


def viewer_session(request: Request):
    """Looks up (or creates) the caller's session from the session cookie."""
    registry = request.app.state.sessions
    return registry.open(request.cookies.get(COOKIE_NAME))


def _respond(resp, session_id: str, created: bool):
    if created:
        issue_cookie(resp, session_id)
    return resp


@router.get("/api/quote")
async def current_quote(
    request: Request,
    as_png: Optional[bool] = False,
    width: Optional[int] = None,
):
    """
    Current view (loading / quote / empty) of the calling viewer.

    as_png=true returns the view as a PNG card instead of JSON.
    """
    sid, session, created = viewer_session(request)
    view = quote_view(session)
    if as_png:
        if width is not None and not 160 <= width <= 2048:
            raise HTTPException(status_code=422, detail="width must be between 160 and 2048")
        img = render_quote_card(view, CardCfg(width_px=width), title=APP_TITLE)
        resp = StreamingResponse(io.BytesIO(pil_to_png_bytes(img)), media_type="image/png")
        return _respond(resp, sid, created)
    return _respond(JSONResponse(view), sid, created)


@router.post("/api/quote/next")
async def next_quote(request: Request):
    sid, session, created = viewer_session(request)
    if not session.source_list:
        raise HTTPException(status_code=409, detail="no quotes available")
    accepted = await session.next_quote()
    return _respond(JSONResponse({"ok": True, "accepted": accepted, **quote_view(session)}), sid, created)


@router.post("/api/quotes/reload")
async def reload_quotes(request: Request):
    registry = request.app.state.sessions
    quotes = await registry.load()
    log(f"♻️ Quotes reloaded: {len(quotes)}, {len(registry)} viewers restarted")
    sid, session, created = viewer_session(request)
    return _respond(JSONResponse({"ok": True, "count": len(quotes), **quote_view(session)}), sid, created)
