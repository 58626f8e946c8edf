# sources/quote.py
# Quote list source: remote JSON (QUOTES_URL) or the local quotes.json,
# with the built-in list as last resort.

import json
from typing import Optional

import httpx
from pydantic import ValidationError

from logic import log, QUOTES_URL, QUOTES_FILE, QUOTES_TIMEOUT
from sources.base import Quote

UA = "Words-of-Wisdom/1.0"

# Built-in fallback, always available offline
DEFAULT_QUOTES: tuple[Quote, ...] = (
    Quote(text="The crisis here is realizing that we all together are somehow responsible, "
               "and must discover what to do all together."),
    Quote(text="I call this the crisis of emptiness – because one must quickly empty oneself "
               "of expectations if anything new is to happen."),
    Quote(text="One cannot \"outthink\" a crisis; one has to go through it."),
    Quote(text="If there is pollution in the river of our thought, then we have essentially two "
               "strategies we might pursue: removing the pollution from the river downstream, "
               "or changing something farther upstream."),
)


class SourceUnavailable(RuntimeError):
    """Retrieval failed or returned data that is not a usable quote list."""


def parse_quotes(data) -> list[Quote]:
    """
    Accepts only:
      - list -> [{"text": "..."}, ...]  (non-empty, every record valid)
    """
    if not isinstance(data, list):
        raise SourceUnavailable(f"expected a JSON array, got {type(data).__name__}")
    if not data:
        raise SourceUnavailable("quote list is empty")
    quotes: list[Quote] = []
    for i, item in enumerate(data):
        if not isinstance(item, dict):
            raise SourceUnavailable(f"record {i} is not an object")
        try:
            quotes.append(Quote.model_validate(item))
        except ValidationError as e:
            raise SourceUnavailable(f"record {i} is not a quote: {e.errors()[0]['msg']}") from e
    return quotes


async def fetch_remote(url: str, timeout: float = QUOTES_TIMEOUT,
                       transport: Optional[httpx.AsyncBaseTransport] = None):
    headers = {"Accept": "application/json", "User-Agent": UA}
    async with httpx.AsyncClient(timeout=timeout, headers=headers, transport=transport) as client:
        r = await client.get(url)
        r.raise_for_status()
        return r.json()


def read_local(path: str):
    with open(path, "r", encoding="utf-8") as f:
        return json.load(f)


async def load_quotes(url: Optional[str] = None, path: Optional[str] = None,
                      transport: Optional[httpx.AsyncBaseTransport] = None) -> list[Quote]:
    """
    Resolves the quote list for this session. One attempt, no retries.

    Any failure ends in the built-in list; nothing is raised to the caller.
    """
    origin = url or path
    try:
        if url:
            data = await fetch_remote(url, transport=transport)
        elif path:
            data = read_local(path)
        else:
            raise SourceUnavailable("no quote source configured")
        quotes = parse_quotes(data)
    except Exception as e:
        log(f"⚠️ Quote source unavailable ({origin}): {e!r} – using {len(DEFAULT_QUOTES)} built-in quotes")
        return list(DEFAULT_QUOTES)
    log(f"✅ Loaded {len(quotes)} quotes from {origin}")
    return quotes


class Source:
    def __init__(self, url: Optional[str] = None, path: Optional[str] = None,
                 transport: Optional[httpx.AsyncBaseTransport] = None):
        self.url = QUOTES_URL if url is None else url
        self.path = QUOTES_FILE if path is None else path
        self.transport = transport

    async def load(self) -> list[Quote]:
        return await load_quotes(self.url, self.path, transport=self.transport)
