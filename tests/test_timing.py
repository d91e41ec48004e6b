"""
Tests for statement timing.
"""

import pytest

from query.timing import TimingRecorder


class TestTimingRecorder:

    @pytest.mark.asyncio
    async def test_records_in_completion_order(self):
        recorder = TimingRecorder()
        async with recorder.measure("page"):
            pass
        async with recorder.measure("total"):
            pass

        assert [label for label, _ in recorder.timings] == ["page", "total"]
        assert all(seconds >= 0 for _, seconds in recorder.timings)

    @pytest.mark.asyncio
    async def test_failed_statement_is_still_timed_and_error_propagates(self):
        recorder = TimingRecorder()
        with pytest.raises(ValueError):
            async with recorder.measure("page"):
                raise ValueError("boom")

        assert len(recorder.timings) == 1

    def test_bad_record_is_dropped_silently(self):
        recorder = TimingRecorder()
        recorder.record("page", "not a number")
        assert recorder.timings == []
