import asyncio
from enum import Enum
from typing import Awaitable, Callable

from logic import FADE_SECONDS, FRAME_SECONDS


def _default_log(*args):
    print("[transition]", *args, flush=True)


class TransitionState(str, Enum):
    IDLE = "idle"
    FADING_OUT = "fading_out"
    FADING_IN = "fading_in"


class TransitionController:
    """
    Fade-out / swap / fade-in sequencing for the displayed quote.

    A trigger from IDLE moves to FADING_OUT and schedules two waits on the
    event loop: one frame hold, then the fade-out delay. The content swap runs
    exactly once, when the fade-out delay has elapsed, followed by FADING_IN
    and straight back to IDLE. Triggers while a transition is in flight are
    dropped.
    """

    def __init__(
        self,
        swap: Callable[[], None],
        frame_s: float = FRAME_SECONDS,
        fade_s: float = FADE_SECONDS,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        log_fn: Callable[..., None] | None = None,
    ):
        self._swap = swap
        self._sleep = sleep
        self._log = log_fn or _default_log
        self.frame_s = frame_s
        self.fade_s = fade_s
        self.state = TransitionState.IDLE
        self.swaps = 0
        self._task: asyncio.Task | None = None

    # ---- Wiring helpers -------------------------------------------------- #
    def set_logger(self, log_fn: Callable[..., None]) -> None:
        self._log = log_fn or _default_log

    @property
    def busy(self) -> bool:
        return self.state is not TransitionState.IDLE

    # ---- Trigger --------------------------------------------------------- #
    def trigger(self) -> asyncio.Task | None:
        """Starts a transition; returns its task, or None if one is running."""
        if self.busy:
            self._log(f"Trigger ignored, transition {self.state.value}.")
            return None
        self.state = TransitionState.FADING_OUT
        self._task = asyncio.get_running_loop().create_task(self._run(), name="quote-transition")
        return self._task

    async def _run(self) -> None:
        try:
            # align to the next frame, then let the fade-out play
            await self._sleep(self.frame_s)
            await self._sleep(self.fade_s)
            self._swap()
            self.swaps += 1
            self.state = TransitionState.FADING_IN
        finally:
            self.state = TransitionState.IDLE

    async def wait(self) -> None:
        """Waits for the in-flight transition, if any."""
        task = self._task
        if task is not None and not task.done():
            await task
