import html
from typing import Literal

from fastapi.responses import HTMLResponse
from pydantic import BaseModel, Field

from logic import (
    APP_TITLE, FADE_SECONDS,
    PRISM_ANIMATION, PRISM_TIME_SCALE, PRISM_HEIGHT, PRISM_BASE_WIDTH, PRISM_SCALE,
    PRISM_HUE_SHIFT, PRISM_COLOR_FREQUENCY, PRISM_NOISE, PRISM_GLOW,
)

LOADING_TEXT = "Loading..."
EMPTY_TEXT = "No quotes available"


class PrismOptions(BaseModel):
    """Background effect settings, passed to the page once at render time."""
    animation_type: Literal["rotate", "hover", "3drotate"] = "rotate"
    time_scale: float = Field(default=0.4, gt=0)
    height: float = Field(default=3.5, gt=0)
    base_width: float = Field(default=5.5, gt=0)
    scale: float = Field(default=3.6, gt=0)
    hue_shift: float = 0.0
    color_frequency: float = Field(default=1.0, ge=0)
    noise: float = Field(default=0.0, ge=0)
    glow: float = Field(default=1.0, ge=0)

    def css_vars(self) -> str:
        # one full turn takes 20s at time_scale 1
        period = 20.0 / self.time_scale
        return "; ".join([
            f"--prism-period:{period:.2f}s",
            f"--prism-height:{self.height}",
            f"--prism-base:{self.base_width}",
            f"--prism-scale:{self.scale}",
            f"--prism-hue:{self.hue_shift}rad",
            f"--prism-freq:{self.color_frequency}",
            f"--prism-noise:{min(1.0, self.noise)}",
            f"--prism-glow:{self.glow}",
        ])


def prism_from_env() -> PrismOptions:
    return PrismOptions(
        animation_type=PRISM_ANIMATION,
        time_scale=PRISM_TIME_SCALE,
        height=PRISM_HEIGHT,
        base_width=PRISM_BASE_WIDTH,
        scale=PRISM_SCALE,
        hue_shift=PRISM_HUE_SHIFT,
        color_frequency=PRISM_COLOR_FREQUENCY,
        noise=PRISM_NOISE,
        glow=PRISM_GLOW,
    )


def quote_view(session) -> dict:
    """Picks exactly one of: loading, quote, empty."""
    if session.loading:
        view, text = "loading", LOADING_TEXT
    elif session.current_quote is not None:
        view, text = "quote", session.current_quote.text
    else:
        view, text = "empty", EMPTY_TEXT
    state = session.transition_state
    return {
        "view": view,
        "text": text,
        "can_advance": bool(session.source_list),
        "transition": state.value,
        "fading": state.value == "fading_out",
    }


HTML_BASE = r"""
<!doctype html>
<html lang="en">
<meta charset="utf-8">
<meta name="viewport" content="width=device-width, initial-scale=1, viewport-fit=cover">
<title>{title}</title>
<style>
  :root{
    --text:#f5f7fa; --muted:#c3cad6; --accent:#3b82f6; --accent-2:#8b5cf6;
    --fade:{fade_ms}ms;
  }
  *{box-sizing:border-box; -webkit-tap-highlight-color:transparent}
  html,body{height:100%}
  body{
    margin:0; font-family: ui-serif, Georgia, Cambria, "Times New Roman", serif;
    color:var(--text); background:#05060a; min-height:100vh; overflow:hidden;
    display:flex; flex-direction:column; align-items:center; justify-content:center;
  }
  .background{position:fixed; inset:0; z-index:0; overflow:hidden; {prism_vars}}
  .prism{
    position:absolute; left:50%; top:50%;
    width:calc(var(--prism-base) * var(--prism-scale) * 6vmin);
    height:calc(var(--prism-height) * var(--prism-scale) * 6vmin);
    transform:translate(-50%,-50%);
    background:conic-gradient(from var(--prism-hue),
      #ff0080, #7928ca, #2afadf, #4c83ff, #ffd319, #ff0080);
    background-size:calc(100% / var(--prism-freq)) calc(100% / var(--prism-freq));
    filter:blur(60px) brightness(calc(0.6 + 0.4 * var(--prism-glow)))
           contrast(calc(1 + var(--prism-noise)));
    opacity:.55; border-radius:38%;
  }
  .prism.rotate{animation:prism-rotate var(--prism-period) linear infinite}
  .prism.hover{animation:prism-hover var(--prism-period) ease-in-out infinite alternate}
  .prism.\33 drotate{animation:prism-3d var(--prism-period) linear infinite}
  @keyframes prism-rotate{to{transform:translate(-50%,-50%) rotate(360deg)}}
  @keyframes prism-hover{to{transform:translate(-50%,-46%) scale(1.05)}}
  @keyframes prism-3d{to{transform:translate(-50%,-50%) rotate3d(1,1,0,360deg)}}
  .title{position:relative; z-index:1; font-weight:600; letter-spacing:.08em;
    font-size:clamp(1.2rem,3vw,1.8rem); margin:0 0 28px; text-transform:uppercase}
  .content{position:relative; z-index:1; max-width:760px; width:100%;
    padding:0 clamp(16px,4vw,32px); text-align:center}
  .quote-container{min-height:9em; display:flex; align-items:center; justify-content:center;
    transition:opacity var(--fade) ease, transform var(--fade) ease}
  .quote-container.fade-out{opacity:0; transform:translateY(6px)}
  .quote-container.fade-in{opacity:1; transform:none}
  .quote-text{font-size:clamp(1.2rem,2.6vw,1.7rem); line-height:1.5; margin:0}
  blockquote.quote-text::before{content:"“"} blockquote.quote-text::after{content:"”"}
  .new-quote-button{
    appearance:none; border:none; cursor:pointer; font-weight:700; font-family:ui-sans-serif, system-ui;
    margin-top:28px; padding:13px 22px; border-radius:12px;
    display:inline-flex; align-items:center; gap:10px;
    background:linear-gradient(135deg, var(--accent), var(--accent-2)); color:#fff;
    box-shadow:0 6px 18px rgba(59,130,246,.25);
    transition:transform .15s ease, box-shadow .15s ease;
  }
  .new-quote-button:hover{transform:translateY(-1px); box-shadow:0 8px 20px rgba(59,130,246,.3)}
  .new-quote-button:disabled{opacity:.45; cursor:not-allowed; transform:none}
</style>
<body>
  <div class="background"><div class="prism {prism_kind}"></div></div>
  <h1 class="title">{title}</h1>
  <main class="content">{content}</main>
</body>
</html>
"""

QUOTE_UI = r"""
<div id="quote-container" class="quote-container fade-in">{quote_html}</div>
<button id="new-quote" class="new-quote-button" type="button"{disabled}>
  New Quote
  <svg width="20" height="20" viewBox="0 0 24 24" fill="none" stroke="currentColor" stroke-width="2">
    <path d="M21.5 2v6h-6M2.5 22v-6h6M2 11.5a10 10 0 0 1 18.8-4.3M22 12.5a10 10 0 0 1-18.8 4.2"/>
  </svg>
</button>

<script>
const box=document.getElementById("quote-container");
const btn=document.getElementById("new-quote");
function show(v){
  box.innerHTML="";
  const el=document.createElement(v.view==="quote"?"blockquote":"div");
  el.className="quote-text"; el.textContent=v.text;
  box.appendChild(el);
  btn.disabled=!v.can_advance;
}
btn.addEventListener("click",async()=>{
  if(btn.disabled) return;
  box.classList.remove("fade-in"); box.classList.add("fade-out");
  try{
    const r=await fetch("/api/quote/next",{method:"POST"});
    const v=await r.json();
    if(r.ok && v.accepted) show(v);
  }finally{
    box.classList.remove("fade-out"); box.classList.add("fade-in");
  }
});
</script>
"""


def _quote_html(view: dict) -> str:
    text = html.escape(view["text"])
    if view["view"] == "quote":
        return f'<blockquote class="quote-text">{text}</blockquote>'
    return f'<div class="quote-text">{text}</div>'


def html_page(view: dict, prism: PrismOptions | None = None, title: str = APP_TITLE) -> HTMLResponse:
    prism = prism or prism_from_env()
    # a fresh page always starts visible; only the click handler fades out.
    # quote text goes in last so placeholders inside it stay literal
    content = (
        QUOTE_UI
        .replace("{disabled}", "" if view.get("can_advance") else " disabled")
        .replace("{quote_html}", _quote_html(view))
    )
    page = (
        HTML_BASE
        .replace("{title}", html.escape(title))
        .replace("{fade_ms}", str(int(FADE_SECONDS * 1000)))
        .replace("{prism_vars}", prism.css_vars())
        .replace("{prism_kind}", prism.animation_type)
        .replace("{content}", content)
    )
    return HTMLResponse(page)
