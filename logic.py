# logic.py — config, logging and quote-card rendering (fonts fallback)

import os, io, sys
from typing import List, Optional

from PIL import Image, ImageDraw, ImageFont

BASE_DIR = os.path.dirname(os.path.abspath(__file__))

# ----------------- Config -----------------

def _env_bool(name: str, default: bool) -> bool:
    return os.getenv(name, str(default)).lower() in ("1","true","yes","on")

def _env_float(name: str, default: float) -> float:
    try:
        return float(os.getenv(name, default))
    except ValueError:
        return default

APP_TITLE = os.getenv("APP_TITLE", "Words of Wisdom")

# empty -> local file (QUOTES_FILE), otherwise one HTTP fetch
QUOTES_URL = os.getenv("QUOTES_URL", "").strip()
QUOTES_FILE = os.getenv("QUOTES_FILE", os.path.join(BASE_DIR, "static", "quotes.json"))
QUOTES_TIMEOUT = _env_float("QUOTES_TIMEOUT", 8.0)

# Optional fixed seed for a reproducible quote order (demo / kiosk)
SHUFFLE_SEED = os.getenv("SHUFFLE_SEED", "").strip()

# Transition timings (ms in env, seconds in code)
FADE_SECONDS = int(os.getenv("FADE_MS", "300")) / 1000.0
FRAME_SECONDS = int(os.getenv("FRAME_MS", "16")) / 1000.0

# Viewer sessions (one shuffled queue per browser)
COOKIE_NAME = os.getenv("SESSION_COOKIE", "wisdom_sid")
SESSION_REMEMBER_DAYS = int(os.getenv("SESSION_REMEMBER_DAYS", "30"))
MAX_SESSIONS = int(os.getenv("MAX_SESSIONS", "1000"))
COOKIE_SECURE = _env_bool("COOKIE_SECURE", False)

# Quote card
CARD_WIDTH_PX = int(os.getenv("CARD_WIDTH_PX", "576"))
CARD_TEXT_SIZE = int(os.getenv("CARD_TEXT_SIZE", "28"))
CARD_FONT = os.getenv("CARD_FONT", "DejaVuSans.ttf")
CARD_MARGIN = int(os.getenv("CARD_MARGIN", "36"))
CARD_LINE_HEIGHT = _env_float("CARD_LINE_HEIGHT", 1.3)
CARD_INVERT = _env_bool("CARD_INVERT", False)

# Background (Prism) options, handed to the page once
PRISM_ANIMATION = os.getenv("PRISM_ANIMATION", "rotate")
PRISM_TIME_SCALE = _env_float("PRISM_TIME_SCALE", 0.4)
PRISM_HEIGHT = _env_float("PRISM_HEIGHT", 3.5)
PRISM_BASE_WIDTH = _env_float("PRISM_BASE_WIDTH", 5.5)
PRISM_SCALE = _env_float("PRISM_SCALE", 3.6)
PRISM_HUE_SHIFT = _env_float("PRISM_HUE_SHIFT", 0.0)
PRISM_COLOR_FREQUENCY = _env_float("PRISM_COLOR_FREQUENCY", 1.0)
PRISM_NOISE = _env_float("PRISM_NOISE", 0.0)
PRISM_GLOW = _env_float("PRISM_GLOW", 1.0)

def log(*a):
    print("[wisdom]", *a, file=sys.stdout, flush=True)

# ----------------- Fonts & Text Helpers -----------------

def _safe_font(path_or_name: str, size: int) -> ImageFont.ImageFont:
    # 1) explicit path / name
    try:
        return ImageFont.truetype(path_or_name, size=size)
    except OSError:
        pass
    # 2) system fallbacks
    candidates = [
        "DejaVuSans.ttf",
        "Arial.ttf",
        "/usr/share/fonts/truetype/dejavu/DejaVuSans.ttf",
    ]
    for cand in candidates:
        try:
            return ImageFont.truetype(cand, size=size)
        except OSError:
            continue
    # 3) last resort
    return ImageFont.load_default()

def _text_length(text: str, font: ImageFont.ImageFont) -> int:
    try:
        return int(font.getlength(text))
    except AttributeError:
        bbox = font.getbbox(text)
        return bbox[2] - bbox[0]

def _wrap(text: str, font: ImageFont.ImageFont, max_px: int) -> List[str]:
    words = (text or "").split()
    if not words:
        return [""]
    lines: List[str] = []
    cur = words[0]
    for w in words[1:]:
        t = f"{cur} {w}"
        if _text_length(t, font) <= max_px:
            cur = t
        else:
            lines.append(cur)
            cur = w
    lines.append(cur)
    return lines

def _line_height(font: ImageFont.ImageFont, mult: float) -> int:
    try:
        ascent, descent = font.getmetrics()
    except AttributeError:
        bbox = font.getbbox("Ag")
        ascent, descent = bbox[3] - bbox[1], 0
    return max(1, int((ascent + descent) * mult))

def _x_centered(text: str, font: ImageFont.ImageFont, width: int, margin: int) -> int:
    usable = width - 2 * margin
    return margin + max(0, (usable - _text_length(text, font)) // 2)

# ----------------- Card Config -----------------

class CardCfg:
    def __init__(self, width_px: Optional[int] = None, text_size: Optional[int] = None):
        self.width_px = width_px or CARD_WIDTH_PX
        self.text_size = text_size or CARD_TEXT_SIZE
        self.margin = CARD_MARGIN
        self.line_height_mult = CARD_LINE_HEIGHT
        self.invert = CARD_INVERT
        self.font_text = _safe_font(CARD_FONT, self.text_size)
        self.font_note = _safe_font(CARD_FONT, max(10, int(self.text_size * 0.7)))

# ----------------- Two-pass render -----------------

def render_quote_card(view: dict, cfg: Optional[CardCfg] = None, title: str = "") -> Image.Image:
    """
    Renders the current presentation view as a grayscale card.

    Quotes are wrapped in typographic quotes; the loading and empty views are
    drawn in the smaller note font.
    """
    cfg = cfg or CardCfg()
    width_px = cfg.width_px
    max_w = width_px - 2 * cfg.margin

    is_quote = view.get("view") == "quote"
    font = cfg.font_text if is_quote else cfg.font_note
    text = (view.get("text") or "").strip()
    if is_quote:
        text = f"“{text}”"

    title_lines = _wrap(title.strip(), cfg.font_note, max_w) if title and title.strip() else []
    body = _wrap(text, font, max_w)

    lh_title = _line_height(cfg.font_note, cfg.line_height_mult)
    lh_body = _line_height(font, cfg.line_height_mult)

    # Pass 1: height
    total_h = cfg.margin
    if title_lines:
        total_h += lh_title * len(title_lines) + lh_title // 2
    total_h += lh_body * max(1, len(body))
    total_h += cfg.margin
    total_h = max(120, total_h)

    # Pass 2: draw
    bg, fg = (0, 255) if cfg.invert else (255, 0)
    img = Image.new("L", (width_px, total_h), color=bg)
    draw = ImageDraw.Draw(img)

    y = cfg.margin
    for ln in title_lines:
        draw.text((_x_centered(ln, cfg.font_note, width_px, cfg.margin), y), ln, fill=fg, font=cfg.font_note)
        y += lh_title
    if title_lines:
        y += lh_title // 2

    for ln in body:
        draw.text((_x_centered(ln, font, width_px, cfg.margin), y), ln, fill=fg, font=font)
        y += lh_body

    return img

def pil_to_png_bytes(img: Image.Image) -> bytes:
    buf = io.BytesIO()
    img.save(buf, format="PNG", optimize=True)
    return buf.getvalue()

# ----------------- Session cookie -----------------

def issue_cookie(resp, session_id: str):
    resp.set_cookie(
        key=COOKIE_NAME,
        value=session_id,
        max_age=SESSION_REMEMBER_DAYS * 24 * 3600,
        httponly=True,
        secure=COOKIE_SECURE,
        samesite="lax",
        path="/"
    )
