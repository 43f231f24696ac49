"""
Timestamp Recovery Tests
========================

Reconciliation, re-keying, chunked execution and the recovery engine.
"""

import asyncio
import logging

import pytest

from conftest import overlay_payload
from ivf_scorer.container import parse_ivf
from ivf_scorer.models.container import FrameRecord
from ivf_scorer.models.recognition import UNRECOGNIZED
from ivf_scorer.recognition.regions import clock_region, name_region
from ivf_scorer.recovery import (
    TimestampRecovery,
    chunked_gather,
    clock_to_pts,
    parse_clock,
    reconcile,
    rekey,
)


class TestClockParsing:
    """Tests for parse_clock and clock_to_pts."""

    def test_parse_clock(self):
        assert parse_clock("1707321234567") == 1707321234567
        assert parse_clock(" 42 ") == 42
        assert parse_clock("12a") == 12
        assert parse_clock("") == 0
        assert parse_clock("abc") == 0

    def test_clock_to_pts(self):
        assert clock_to_pts(1000, 30) == 30
        assert clock_to_pts(1200, 1000) == 1200

    def test_clock_to_pts_rounds_half_up(self):
        assert clock_to_pts(50, 30) == 2
        assert clock_to_pts(150, 30) == 5


class TestReconcile:
    """Tests for the forward-fill reconciliation pass."""

    def test_forward_fill(self):
        """Unrecognized keys follow the container clock from the last usable value."""
        recognized = {10: 1000, 11: 0, 12: 0, 13: 1200}

        assert reconcile(recognized) == {10: 1000, 11: 1001, 12: 1002, 13: 1200}

    def test_fully_recognized_unchanged(self):
        recognized = {0: 500, 1: 501, 2: 503, 5: 510}

        assert reconcile(recognized) == recognized

    def test_input_not_modified(self):
        recognized = {1: 100, 2: 0}

        reconcile(recognized)

        assert recognized == {1: 100, 2: 0}

    def test_drops_when_predecessor_unusable(self):
        """A sentinel after an unusable predecessor is dropped, not propagated."""
        recognized = {1: 0, 2: 0, 3: 0, 4: 50, 5: 0}

        resolved = reconcile(recognized)

        assert 2 not in resolved
        assert 3 not in resolved
        assert resolved[1] == UNRECOGNIZED
        assert resolved[4] == 50
        assert resolved[5] == 51

    def test_gap_in_container_clock(self):
        """Fill distance follows the container pts difference."""
        assert reconcile({0: 300, 4: 0}) == {0: 300, 4: 304}

    def test_unsorted_input(self):
        assert reconcile({13: 1200, 11: 0, 10: 1000}) == {10: 1000, 11: 1001, 13: 1200}


class TestRekey:
    """Tests for rekey."""

    def test_rekey(self):
        frames = {
            0: FrameRecord(0, 32, 20),
            1: FrameRecord(1, 52, 20),
            2: FrameRecord(2, 72, 20),
        }

        recovered = rekey(frames, {0: 900, 1: UNRECOGNIZED, 2: 902})

        assert recovered == {900: frames[0], 902: frames[2]}
        assert frames[0] in recovered.values()

    def test_collision_keeps_first(self, caplog):
        frames = {
            5: FrameRecord(1, 52, 20),
            4: FrameRecord(0, 32, 20),
        }

        with caplog.at_level(logging.WARNING):
            recovered = rekey(frames, {4: 100, 5: 100})

        assert recovered == {100: frames[4]}
        assert "already present" in caplog.text


class TestChunkedGather:
    """Tests for chunked_gather."""

    async def test_order_preserved(self):
        async def work(item, index):
            await asyncio.sleep(0.01 * (5 - item))
            return item * 10

        results = await chunked_gather([0, 1, 2, 3, 4], work, chunk_size=3)

        assert results == [0, 10, 20, 30, 40]

    async def test_failure_isolated(self):
        completed = []

        async def work(item, index):
            if item == 1:
                raise ValueError("boom")
            await asyncio.sleep(0.01)
            completed.append(item)
            return item

        results = await chunked_gather([0, 1, 2, 3], work, chunk_size=2)

        assert results == [0, None, 2, 3]
        assert sorted(completed) == [0, 2, 3]

    async def test_chunks_run_sequentially(self):
        """Concurrency never exceeds the chunk size; chunks do not overlap."""
        active = 0
        peak = 0
        events = []

        async def work(item, index):
            nonlocal active, peak
            active += 1
            peak = max(peak, active)
            events.append(("start", item))
            await asyncio.sleep(0.01 if item % 2 else 0.02)
            events.append(("end", item))
            active -= 1
            return item

        await chunked_gather(list(range(6)), work, chunk_size=2)

        assert peak == 2
        for chunk_start in (2, 4):
            start_index = events.index(("start", chunk_start))
            ended = {item for kind, item in events[:start_index] if kind == "end"}
            assert set(range(chunk_start)) <= ended

    async def test_index_passed(self):
        async def work(item, index):
            return index

        assert await chunked_gather(["a", "b", "c"], work, chunk_size=2) == [0, 1, 2]


class TestTimestampRecovery:
    """Tests for TimestampRecovery.recover with a fake recognizer."""

    async def test_recover(self, ivf_factory, fake_recognizer):
        """Clock values re-key the catalogue; gaps are forward-filled."""
        path = ivf_factory(
            "alice-send_1.ivf",
            [
                (10, overlay_payload(clock=1000, name="Alice")),
                (11, overlay_payload(clock=1001, conf=40)),
                (12, overlay_payload(clock=None)),
                (13, overlay_payload(clock=1200)),
            ],
            rate_den=1000,
            rate_num=1,
        )
        info = parse_ivf(path)
        recovery = TimestampRecovery(fake_recognizer, workers=2)

        recovered = await recovery.recover(path, info)

        assert recovered.pts_index == [1000, 1001, 1002, 1200]
        assert recovered.frames[1001] == info.frames[11]
        assert recovered.frames[1200] == info.frames[13]
        assert recovered.participant_display_name == "Alice"
        # parsed catalogue left untouched
        assert info.pts_index == [10, 11, 12, 13]
        assert info.participant_display_name is None

    async def test_regions_and_charsets(self, ivf_factory, fake_recognizer):
        path = ivf_factory(
            "a.ivf",
            [(0, overlay_payload(clock=1000, name="Alice"))],
            width=640,
            height=480,
        )
        recovery = TimestampRecovery(fake_recognizer, workers=1)

        await recovery.recover(path, parse_ivf(path))

        assert fake_recognizer.calls[0] == (clock_region(640, 480), "0123456789")
        assert fake_recognizer.calls[1] == (name_region(640, 480), "Participant-0123456789s")

    async def test_fully_recognized_no_interpolation(self, ivf_factory, fake_recognizer):
        frames = [(i, overlay_payload(clock=2000 + 3 * i, name="Bob")) for i in range(5)]
        path = ivf_factory("a.ivf", frames, rate_den=1000, rate_num=1)

        recovered = await TimestampRecovery(fake_recognizer, workers=3).recover(
            path, parse_ivf(path)
        )

        assert recovered.pts_index == [2000, 2003, 2006, 2009, 2012]

    async def test_clock_converted_at_frame_rate(self, ivf_factory, fake_recognizer):
        path = ivf_factory(
            "a.ivf",
            [(0, overlay_payload(clock=10_000, name="Bob")), (1, overlay_payload(clock=10_034))],
            rate_den=30,
            rate_num=1,
        )

        recovered = await TimestampRecovery(fake_recognizer).recover(path, parse_ivf(path))

        assert recovered.pts_index == [300, 301]

    async def test_name_retried_on_later_frame(self, ivf_factory, fake_recognizer):
        path = ivf_factory(
            "a.ivf",
            [
                (0, overlay_payload(clock=1000, name="Ali", name_conf=20)),
                (1, overlay_payload(clock=1001, name="Alice")),
                (2, overlay_payload(clock=1002, name="Other")),
            ],
            rate_den=1000,
            rate_num=1,
        )

        recovered = await TimestampRecovery(fake_recognizer, workers=1).recover(
            path, parse_ivf(path)
        )

        assert recovered.participant_display_name == "Alice"
        assert fake_recognizer.name_calls == 2

    async def test_no_name(self, ivf_factory, fake_recognizer):
        path = ivf_factory(
            "a.ivf",
            [(0, overlay_payload(clock=1000)), (1, overlay_payload(clock=1001))],
            rate_den=1000,
            rate_num=1,
        )

        recovered = await TimestampRecovery(fake_recognizer).recover(path, parse_ivf(path))

        assert recovered.participant_display_name is None
        assert recovered.pts_index == [1000, 1001]

    async def test_recognition_error_degrades(self, ivf_factory, fake_recognizer):
        """A backend failure marks the frame unrecognized instead of aborting."""
        path = ivf_factory(
            "a.ivf",
            [(0, overlay_payload(clock=1000, name="Alice")), (1, b"error"), (2, overlay_payload(clock=1002))],
            rate_den=1000,
            rate_num=1,
        )

        recovered = await TimestampRecovery(fake_recognizer, workers=3).recover(
            path, parse_ivf(path)
        )

        assert recovered.pts_index == [1000, 1001, 1002]

    async def test_unrecognized_first_frame_dropped(self, ivf_factory, fake_recognizer):
        path = ivf_factory(
            "a.ivf",
            [(0, overlay_payload(conf=10, clock=5)), (1, overlay_payload(clock=1001, name="Alice"))],
            rate_den=1000,
            rate_num=1,
        )

        recovered = await TimestampRecovery(fake_recognizer).recover(path, parse_ivf(path))

        assert recovered.pts_index == [1001]

    async def test_backend_crash_drops_frame(self, ivf_factory, fake_recognizer):
        """An unexpected backend exception loses only that frame."""
        path = ivf_factory(
            "a.ivf",
            [(0, overlay_payload(clock=1000, name="Alice")), (1, b"crash"), (2, overlay_payload(clock=1002))],
            rate_den=1000,
            rate_num=1,
        )

        recovered = await TimestampRecovery(fake_recognizer, workers=3).recover(
            path, parse_ivf(path)
        )

        assert recovered.pts_index == [1000, 1002]
        assert recovered.participant_display_name == "Alice"

    async def test_name_crash_keeps_clock(self, ivf_factory, fake_recognizer):
        """A crashing name pass keeps the clock result and retries later."""
        path = ivf_factory(
            "a.ivf",
            [
                (0, overlay_payload(clock=1000, name="crash")),
                (1, overlay_payload(clock=1001, name="Alice")),
            ],
            rate_den=1000,
            rate_num=1,
        )

        recovered = await TimestampRecovery(fake_recognizer, workers=1).recover(
            path, parse_ivf(path)
        )

        assert recovered.pts_index == [1000, 1001]
        assert recovered.participant_display_name == "Alice"
        assert fake_recognizer.name_calls == 2
