# state.py
import asyncio
import secrets
from collections import OrderedDict
from typing import Awaitable, Callable, Optional

from logic import log, FADE_SECONDS, FRAME_SECONDS, MAX_SESSIONS
from quote_queue import QuoteCursor
from shuffle import Shuffle, fisher_yates
from sources.base import Quote, QuoteSource
from sources.quote import Source
from transition import TransitionController, TransitionState


class QuoteSession:
    """
    Session-scoped state: the source list, the shuffled queue with its cursor,
    the transition state and the quote currently on display.

    All mutation happens on the event loop thread.
    """

    def __init__(
        self,
        source: Optional[QuoteSource] = None,
        shuffle: Shuffle = fisher_yates,
        frame_s: float = FRAME_SECONDS,
        fade_s: float = FADE_SECONDS,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self.source = source if source is not None else Source()
        self.source_list: list[Quote] = []
        self.cursor = QuoteCursor(shuffle)
        self.current_quote: Optional[Quote] = None
        self.loading = False
        self.transition = TransitionController(
            self._swap, frame_s=frame_s, fade_s=fade_s, sleep=sleep, log_fn=log,
        )

    @property
    def transition_state(self) -> TransitionState:
        return self.transition.state

    @property
    def queue(self) -> list[Quote]:
        return self.cursor.queue

    @property
    def cursor_index(self) -> int:
        return self.cursor.index

    def use(self, quotes: list[Quote]) -> Optional[Quote]:
        """Takes an already loaded list and starts a fresh cycle on it."""
        self.source_list = quotes
        self.current_quote = self.cursor.start(self.source_list)
        return self.current_quote

    async def load(self) -> list[Quote]:
        """(Re)establishes the quote list and starts a fresh cycle."""
        self.loading = True
        try:
            self.use(list(await self.source.load()))
        finally:
            self.loading = False
        return self.source_list

    def _swap(self) -> None:
        quote = self.cursor.advance(self.source_list)
        if quote is not None:
            self.current_quote = quote

    def request_next(self) -> Optional[asyncio.Task]:
        return self.transition.trigger()

    async def next_quote(self) -> bool:
        """Runs one transition to completion. False if one was already running."""
        task = self.request_next()
        if task is None:
            return False
        await task
        return True


class SessionRegistry:
    """
    One QuoteSession per viewer, keyed by an opaque session id.

    The quote list is loaded once and shared; every viewer gets an own cursor
    and transition gate, so each walks complete cycles of its own. When more
    than ``max_sessions`` viewers are known, the least recently seen idle one
    is dropped.
    """

    def __init__(
        self,
        source: Optional[QuoteSource] = None,
        shuffle: Shuffle = fisher_yates,
        frame_s: float = FRAME_SECONDS,
        fade_s: float = FADE_SECONDS,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        max_sessions: int = MAX_SESSIONS,
    ):
        self.source = source if source is not None else Source()
        self.source_list: list[Quote] = []
        self.loading = False
        self.max_sessions = max(1, max_sessions)
        self._session_args = dict(shuffle=shuffle, frame_s=frame_s, fade_s=fade_s, sleep=sleep)
        self._sessions: "OrderedDict[str, QuoteSession]" = OrderedDict()

    def __len__(self) -> int:
        return len(self._sessions)

    async def load(self) -> list[Quote]:
        """Loads the shared list; every known viewer restarts on it."""
        self.loading = True
        for s in self._sessions.values():
            s.loading = True
        try:
            self.source_list = list(await self.source.load())
        finally:
            self.loading = False
            for s in self._sessions.values():
                s.loading = False
        for s in self._sessions.values():
            s.use(self.source_list)
        return self.source_list

    def get(self, session_id: Optional[str]) -> Optional[QuoteSession]:
        if not session_id:
            return None
        return self._sessions.get(session_id)

    def open(self, session_id: Optional[str] = None) -> tuple[str, QuoteSession, bool]:
        """Returns (id, session, created) for a known id, else a new viewer."""
        session = self.get(session_id)
        if session is not None:
            self._sessions.move_to_end(session_id)
            return session_id, session, False
        session_id = secrets.token_urlsafe(16)
        session = QuoteSession(self.source, **self._session_args)
        session.loading = self.loading
        session.use(self.source_list)
        self._sessions[session_id] = session
        self._evict()
        return session_id, session, True

    def _evict(self) -> None:
        while len(self._sessions) > self.max_sessions:
            victim = next((sid for sid, s in self._sessions.items() if not s.transition.busy), None)
            if victim is None:
                break
            del self._sessions[victim]

    async def wait(self) -> None:
        for s in list(self._sessions.values()):
            await s.transition.wait()
