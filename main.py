# main.py
import os
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import HTMLResponse, PlainTextResponse, FileResponse
from fastapi.staticfiles import StaticFiles

# --- Local Modules ---
from logic import log, issue_cookie, APP_TITLE, BASE_DIR, QUOTES_FILE, SHUFFLE_SEED
from routes_quotes import router as quotes_router, viewer_session
from shuffle import fisher_yates, seeded
from state import SessionRegistry
from ui_html import html_page, quote_view

# --- Sessions -----------------------------------------------------------------

registry = SessionRegistry(shuffle=seeded(int(SHUFFLE_SEED)) if SHUFFLE_SEED else fisher_yates)

# --- Lifecycle & Startup ------------------------------------------------------

@asynccontextmanager
async def lifespan(app: FastAPI):
    log("🧩 Starting quote app …")
    app.state.sessions = registry
    await registry.load()
    log(f"✅ {len(registry.source_list)} quotes ready.")
    yield
    await registry.wait()
    log("👋 App shutdown.")

app = FastAPI(title=APP_TITLE, lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(quotes_router)

static_dir = os.path.join(BASE_DIR, "static")
if os.path.exists(static_dir):
    app.mount("/static", StaticFiles(directory=static_dir), name="static")

# --- Routes: Health / Root ----------------------------------------------------

@app.get("/_health", response_class=PlainTextResponse)
def health():
    return "OK"

@app.get("/quotes.json", include_in_schema=False)
async def quotes_file():
    if os.path.exists(QUOTES_FILE):
        return FileResponse(QUOTES_FILE, media_type="application/json")
    raise HTTPException(status_code=404, detail="quotes.json not found")

@app.get("/", response_class=HTMLResponse)
def index(request: Request):
    headers = {
        "Cache-Control": "no-store, no-cache, must-revalidate",
        "Pragma": "no-cache",
        "Expires": "0",
    }
    sid, session, created = viewer_session(request)
    page = html_page(quote_view(session))
    page.headers.update(headers)
    if created:
        issue_cookie(page, sid)
    return page


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("main:app", host=os.getenv("HOST", "0.0.0.0"), port=int(os.getenv("PORT", "8000")))
