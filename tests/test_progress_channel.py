"""
Tests for the job progress channel.

These tests verify:
- Watcher registration and removal
- Event delivery to every watcher of a job
- Dropping of broken connections
- Events for unwatched jobs are discarded
"""

import pytest
from unittest.mock import AsyncMock

from screendoc.services.progress_channel import (
    EventKind,
    ProgressChannel,
    ProgressEvent,
)


def _event(kind=EventKind.INFO, stage="analysis", message="UI Analyst started", metadata=None):
    return ProgressEvent(kind=kind, stage=stage, message=message, metadata=metadata)


class TestAttach:
    """Tests for watcher registration."""

    @pytest.mark.asyncio
    async def test_attach_registers_watcher(self):
        channel = ProgressChannel()
        websocket = AsyncMock()

        await channel.attach("job-1", websocket)

        assert channel.is_attached("job-1")
        websocket.accept.assert_called_once()

    @pytest.mark.asyncio
    async def test_second_attach_keeps_both_watchers(self):
        channel = ProgressChannel()
        first, second = AsyncMock(), AsyncMock()

        await channel.attach("job-1", first)
        await channel.attach("job-1", second)

        assert channel.subscriber_count("job-1") == 2
        first.close.assert_not_called()


class TestDetach:
    """Tests for watcher removal."""

    @pytest.mark.asyncio
    async def test_detach_single_watcher(self):
        channel = ProgressChannel()
        first, second = AsyncMock(), AsyncMock()
        await channel.attach("job-1", first)
        await channel.attach("job-1", second)

        channel.detach("job-1", first)

        assert channel.subscriber_count("job-1") == 1

    @pytest.mark.asyncio
    async def test_detach_all_watchers(self):
        channel = ProgressChannel()
        await channel.attach("job-1", AsyncMock())

        channel.detach("job-1")

        assert not channel.is_attached("job-1")

    def test_detach_unknown_job(self):
        """Should handle detaching an unknown job gracefully."""
        channel = ProgressChannel()

        channel.detach("missing")

        assert not channel.is_attached("missing")


class TestEmit:
    """Tests for event delivery."""

    @pytest.mark.asyncio
    async def test_emit_to_every_watcher(self):
        channel = ProgressChannel()
        first, second = AsyncMock(), AsyncMock()
        await channel.attach("job-1", first)
        await channel.attach("job-1", second)

        delivered = await channel.emit("job-1", _event(metadata={"model": "claude"}))

        assert delivered == 2
        payload = first.send_json.call_args.args[0]
        assert payload["kind"] == "info"
        assert payload["stage"] == "analysis"
        assert payload["message"] == "UI Analyst started"
        assert payload["metadata"] == {"model": "claude"}
        assert "timestamp" in payload
        second.send_json.assert_called_once_with(payload)

    @pytest.mark.asyncio
    async def test_emit_without_watchers_is_dropped(self):
        channel = ProgressChannel()

        assert await channel.emit("job-1", _event()) == 0
        assert await channel.emit(None, _event()) == 0

    @pytest.mark.asyncio
    async def test_emit_only_reaches_its_job(self):
        channel = ProgressChannel()
        mine, other = AsyncMock(), AsyncMock()
        await channel.attach("job-1", mine)
        await channel.attach("job-2", other)

        await channel.emit("job-1", _event())

        mine.send_json.assert_called_once()
        other.send_json.assert_not_called()

    @pytest.mark.asyncio
    async def test_broken_watcher_is_dropped(self):
        channel = ProgressChannel()
        broken, healthy = AsyncMock(), AsyncMock()
        broken.send_json.side_effect = RuntimeError("connection closed")
        await channel.attach("job-1", broken)
        await channel.attach("job-1", healthy)

        delivered = await channel.emit("job-1", _event())

        assert delivered == 1
        assert channel.subscriber_count("job-1") == 1
        healthy.send_json.assert_called_once()

    @pytest.mark.asyncio
    async def test_events_arrive_in_emission_order(self):
        channel = ProgressChannel()
        websocket = AsyncMock()
        await channel.attach("job-1", websocket)

        for kind in (EventKind.START, EventKind.INFO, EventKind.COMPLETE):
            await channel.emit("job-1", _event(kind=kind))

        kinds = [call.args[0]["kind"] for call in websocket.send_json.call_args_list]
        assert kinds == ["start", "info", "complete"]


class TestReporter:

    @pytest.mark.asyncio
    async def test_reporter_bound_to_job(self):
        channel = ProgressChannel()
        websocket = AsyncMock()
        await channel.attach("job-1", websocket)

        report = channel.reporter("job-1")
        await report(_event(kind=EventKind.ERROR, message="failed"))

        assert websocket.send_json.call_args.args[0]["kind"] == "error"

    def test_no_reporter_without_job_id(self):
        assert ProgressChannel().reporter(None) is None
        assert ProgressChannel().reporter("") is None
