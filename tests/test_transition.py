# tests/test_transition.py

"""Tests for the fade transition state machine and the quote session."""

import asyncio

import pytest

from sources.base import Quote
from state import QuoteSession, SessionRegistry
from transition import TransitionController, TransitionState
from ui_html import html_page, quote_view


class GatedSleep:
    """Stand-in for asyncio.sleep that records delays and waits for release."""

    def __init__(self):
        self.delays = []
        self.release = asyncio.Event()

    async def __call__(self, seconds):
        self.delays.append(seconds)
        await self.release.wait()


class StepSleep:
    """Like GatedSleep, but every call waits on its own gate."""

    def __init__(self):
        self.delays = []
        self.gates = []

    async def __call__(self, seconds):
        self.delays.append(seconds)
        gate = asyncio.Event()
        self.gates.append(gate)
        await gate.wait()

    def release(self, n):
        self.gates[n].set()


async def _settle(n=5):
    for _ in range(n):
        await asyncio.sleep(0)


class StaticSource:
    def __init__(self, *texts):
        self.quotes = [Quote(text=t) for t in texts]
        self.loads = 0

    async def load(self):
        self.loads += 1
        return list(self.quotes)


def identity(items):
    return list(items)


def _quiet(*_):
    pass


class TestTransitionController:

    def test_full_sequence(self):
        async def run():
            swaps = []
            sleep = GatedSleep()
            ctl = TransitionController(lambda: swaps.append(ctl.state), frame_s=0.016,
                                       fade_s=0.3, sleep=sleep, log_fn=_quiet)
            assert ctl.state is TransitionState.IDLE
            task = ctl.trigger()
            assert ctl.state is TransitionState.FADING_OUT
            await _settle()
            assert swaps == []
            sleep.release.set()
            await task
            return ctl, swaps, sleep

        ctl, swaps, sleep = asyncio.run(run())
        assert swaps == [TransitionState.FADING_OUT]
        assert sleep.delays == [0.016, 0.3]
        assert ctl.state is TransitionState.IDLE
        assert ctl.swaps == 1

    def test_busy_trigger_is_ignored(self):
        async def run():
            count = []
            sleep = GatedSleep()
            ctl = TransitionController(lambda: count.append(1), sleep=sleep, log_fn=_quiet)
            first = ctl.trigger()
            second = ctl.trigger()
            await _settle()
            third = ctl.trigger()
            sleep.release.set()
            await first
            return first, second, third, count

        first, second, third, count = asyncio.run(run())
        assert first is not None
        assert second is None and third is None
        assert count == [1]

    def test_idle_again_after_swap_error(self):
        async def run():
            def boom():
                raise RuntimeError("swap failed")
            ctl = TransitionController(boom, frame_s=0, fade_s=0, log_fn=_quiet)
            with pytest.raises(RuntimeError):
                await ctl.trigger()
            return ctl

        ctl = asyncio.run(run())
        assert ctl.state is TransitionState.IDLE
        assert ctl.swaps == 0

    def test_trigger_after_completion_runs_again(self):
        async def run():
            count = []
            ctl = TransitionController(lambda: count.append(1), frame_s=0, fade_s=0, log_fn=_quiet)
            await ctl.trigger()
            await ctl.trigger()
            await ctl.wait()
            return count

        assert asyncio.run(run()) == [1, 1]

    def test_ignored_trigger_is_logged(self):
        async def run():
            lines = []
            sleep = GatedSleep()
            ctl = TransitionController(lambda: None, sleep=sleep, log_fn=lines.append)
            task = ctl.trigger()
            ctl.trigger()
            sleep.release.set()
            await task
            return lines

        lines = asyncio.run(run())
        assert len(lines) == 1
        assert "ignored" in lines[0]


class TestQuoteSession:

    def test_load_starts_cycle(self):
        session = QuoteSession(StaticSource("A", "B"), shuffle=identity)
        asyncio.run(session.load())
        assert session.source_list == [Quote(text="A"), Quote(text="B")]
        assert session.current_quote == Quote(text="A")
        assert session.cursor_index == 0
        assert session.loading is False
        assert session.transition_state is TransitionState.IDLE

    def test_no_swap_before_fade_out_elapses(self):
        """The old quote stays on display until the fade-out delay is over."""
        async def run():
            sleep = GatedSleep()
            session = QuoteSession(StaticSource("A", "B", "C"), shuffle=identity, sleep=sleep)
            session.transition.set_logger(_quiet)
            await session.load()
            task = session.request_next()
            await _settle()
            during = (session.current_quote, session.transition_state)
            sleep.release.set()
            await task
            after = (session.current_quote, session.transition_state)
            return during, after

        during, after = asyncio.run(run())
        assert during == (Quote(text="A"), TransitionState.FADING_OUT)
        assert after == (Quote(text="B"), TransitionState.IDLE)

    def test_frame_hold_alone_does_not_swap(self):
        """After the frame hold only the fade-out wait is pending; no swap yet."""
        async def run():
            sleep = StepSleep()
            session = QuoteSession(StaticSource("A", "B"), shuffle=identity,
                                   frame_s=0.016, fade_s=0.3, sleep=sleep)
            session.transition.set_logger(_quiet)
            await session.load()
            task = session.request_next()
            await _settle()
            assert sleep.delays == [0.016]
            sleep.release(0)
            await _settle()
            between = (list(sleep.delays), session.current_quote, session.transition_state)
            sleep.release(1)
            await task
            return between, session

        between, session = asyncio.run(run())
        assert between == ([0.016, 0.3], Quote(text="A"), TransitionState.FADING_OUT)
        assert session.current_quote == Quote(text="B")
        assert session.transition_state is TransitionState.IDLE

    def test_page_loaded_mid_transition_is_visible(self):
        """A page rendered while fading out still shows the quote container."""
        async def run():
            sleep = GatedSleep()
            session = QuoteSession(StaticSource("A", "B"), shuffle=identity, sleep=sleep)
            session.transition.set_logger(_quiet)
            await session.load()
            task = session.request_next()
            await _settle()
            view = quote_view(session)
            page = html_page(view).body.decode()
            sleep.release.set()
            await task
            return view, page

        view, page = asyncio.run(run())
        assert view["fading"] is True
        assert 'class="quote-container fade-in"' in page
        assert "fade-out" not in page.split('id="quote-container"')[1].split(">")[0]

    def test_rapid_double_trigger_swaps_once(self):
        async def run():
            sleep = GatedSleep()
            session = QuoteSession(StaticSource("A", "B", "C"), shuffle=identity, sleep=sleep)
            session.transition.set_logger(_quiet)
            await session.load()
            first = session.request_next()
            second = session.request_next()
            sleep.release.set()
            await first
            return session, second

        session, second = asyncio.run(run())
        assert second is None
        assert session.current_quote == Quote(text="B")
        assert session.cursor_index == 1

    def test_concurrent_next_quote_calls(self):
        async def run():
            session = QuoteSession(StaticSource("A", "B", "C"), shuffle=identity,
                                   frame_s=0, fade_s=0.01)
            session.transition.set_logger(_quiet)
            await session.load()
            results = await asyncio.gather(session.next_quote(), session.next_quote())
            return session, results

        session, results = asyncio.run(run())
        assert sorted(results) == [False, True]
        assert session.current_quote == Quote(text="B")

    def test_concrete_scenario_through_transitions(self):
        """A, B, identity shuffle: A -> B -> A with a second shuffle call."""
        calls = []

        def counting_identity(items):
            calls.append(1)
            return list(items)

        async def run():
            session = QuoteSession(StaticSource("A", "B"), shuffle=counting_identity,
                                   frame_s=0, fade_s=0)
            session.transition.set_logger(_quiet)
            await session.load()
            shown = [session.current_quote.text]
            for _ in range(2):
                await session.next_quote()
                shown.append(session.current_quote.text)
            return shown

        assert asyncio.run(run()) == ["A", "B", "A"]
        assert len(calls) == 2

    def test_empty_source_completes_to_idle(self):
        async def run():
            session = QuoteSession(StaticSource(), shuffle=identity, frame_s=0, fade_s=0)
            session.transition.set_logger(_quiet)
            await session.load()
            accepted = await session.next_quote()
            return session, accepted

        session, accepted = asyncio.run(run())
        assert accepted is True
        assert session.current_quote is None
        assert session.transition_state is TransitionState.IDLE

    def test_reload_restarts_cycle(self):
        async def run():
            source = StaticSource("A", "B", "C")
            session = QuoteSession(source, shuffle=identity, frame_s=0, fade_s=0)
            session.transition.set_logger(_quiet)
            await session.load()
            await session.next_quote()
            source.quotes = [Quote(text="X"), Quote(text="Y")]
            await session.load()
            return session, source

        session, source = asyncio.run(run())
        assert source.loads == 2
        assert session.current_quote == Quote(text="X")
        assert session.cursor_index == 0
        assert session.cursor.cycle == 1


class TestSessionRegistry:

    def _registry(self, *texts, **kw):
        source = StaticSource(*texts)
        kw.setdefault("shuffle", identity)
        registry = SessionRegistry(source, frame_s=0, fade_s=0, **kw)
        return registry, source

    def test_viewers_share_the_list_but_not_the_cursor(self):
        async def run():
            registry, source = self._registry("A", "B", "C")
            await registry.load()
            _, a, _ = registry.open()
            _, b, _ = registry.open()
            a.transition.set_logger(_quiet)
            await a.next_quote()
            return registry, source, a, b

        registry, source, a, b = asyncio.run(run())
        assert source.loads == 1
        assert a.source_list is b.source_list is registry.source_list
        assert a.current_quote == Quote(text="B")
        assert b.current_quote == Quote(text="A")
        assert b.cursor_index == 0

    def test_each_viewer_sees_a_full_cycle(self):
        async def run():
            registry, _ = self._registry("A", "B", "C", "D")
            await registry.load()
            _, a, _ = registry.open()
            _, b, _ = registry.open()
            shown = {id(a): [a.current_quote], id(b): [b.current_quote]}
            for _ in range(3):
                for s in (a, b):
                    await s.next_quote()
                    shown[id(s)].append(s.current_quote)
            return list(shown.values())

        for seen in asyncio.run(run()):
            assert sorted(q.text for q in seen) == ["A", "B", "C", "D"]

    def test_known_id_returns_same_session(self):
        async def run():
            registry, _ = self._registry("A")
            await registry.load()
            sid, first, created = registry.open()
            again = registry.open(sid)
            unknown = registry.open("no-such-viewer")
            return sid, first, created, again, unknown

        sid, first, created, again, unknown = asyncio.run(run())
        assert created is True
        assert again == (sid, first, False)
        assert unknown[2] is True
        assert unknown[0] != "no-such-viewer"

    def test_reload_restarts_every_viewer(self):
        async def run():
            registry, source = self._registry("A", "B", "C")
            await registry.load()
            _, a, _ = registry.open()
            _, b, _ = registry.open()
            await a.next_quote()
            await b.next_quote()
            source.quotes = [Quote(text="X"), Quote(text="Y")]
            await registry.load()
            return registry, a, b

        registry, a, b = asyncio.run(run())
        for s in (a, b):
            assert s.source_list == [Quote(text="X"), Quote(text="Y")]
            assert s.current_quote == Quote(text="X")
            assert s.cursor_index == 0
            assert s.loading is False

    def test_oldest_idle_viewer_is_evicted(self):
        async def run():
            registry, _ = self._registry("A", "B", max_sessions=2)
            await registry.load()
            first, _, _ = registry.open()
            second, _, _ = registry.open()
            registry.open(first)
            third, _, _ = registry.open()
            return registry, first, second, third

        registry, first, second, third = asyncio.run(run())
        assert len(registry) == 2
        assert registry.get(second) is None
        assert registry.get(first) is not None
        assert registry.get(third) is not None
