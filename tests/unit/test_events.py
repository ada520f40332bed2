"""Tests for the server-sent event framing and heartbeat wrapper."""

import asyncio
import logging

import pytest

from sitegen.services.generation.events import format_sse, parse_sse, parse_sse_text, with_heartbeat
from sitegen.services.generation.models import GeneratedFile, GenerationEvent


@pytest.mark.unit
class TestFraming:

    def test_format_sse(self):
        content = "Phở"
        event = GenerationEvent.file(GeneratedFile("/home/project/a.md", content))
        size = len(content.encode("utf-8"))
        assert format_sse(event) == (
            "event: file\n"
            f'data: {{"path": "/home/project/a.md", "content": "Phở", "size": {size}}}\n\n'
        )

    def test_parse_formatted_stream(self):
        events = [
            GenerationEvent.heartbeat(1700000000000),
            GenerationEvent.error('Generation failed: boom', 'INTERNAL_ERROR', retryable=True),
        ]
        text = ''.join(format_sse(e) for e in events)
        assert parse_sse_text(text) == events

    def test_comments_and_multiline_data(self):
        lines = [
            ': keep-alive',
            'event: progress',
            'data: {"percentage":',
            'data:  10}',
            '',
        ]
        events = list(parse_sse(lines))
        assert events == [GenerationEvent('progress', {'percentage': 10})]

    def test_final_frame_without_blank_line(self):
        events = parse_sse_text('event: complete\ndata: {"success": true}')
        assert events == [GenerationEvent('complete', {'success': True})]

    def test_malformed_frame_is_skipped(self, caplog):
        text = (
            'event: file\ndata: {"path": "/home/project/a.ts", "con\n\n'
            'event: progress\ndata: [1, 2]\n\n'
            'event: complete\ndata: {"success": true}\n\n'
        )
        with caplog.at_level(logging.WARNING):
            events = parse_sse_text(text)

        assert [e.event for e in events] == ['complete']
        assert 'Skipping malformed event frame (file)' in caplog.text
        assert 'non-object payload (progress)' in caplog.text

    def test_frame_without_event_name(self):
        assert parse_sse_text('data: {"a": 1}\n\n') == [GenerationEvent('message', {'a': 1})]


@pytest.mark.unit
class TestHeartbeat:

    @pytest.mark.asyncio
    async def test_heartbeat_while_idle(self):
        async def slow():
            await asyncio.sleep(0.2)
            yield GenerationEvent('progress', {'percentage': 10})

        events = [e async for e in with_heartbeat(slow(), interval=0.05)]

        assert events[-1].event == 'progress'
        heartbeats = [e for e in events if e.event == 'heartbeat']
        assert heartbeats
        assert isinstance(heartbeats[0].data['timestamp'], int)

    @pytest.mark.asyncio
    async def test_no_heartbeat_for_fast_stream(self):
        async def fast():
            for pct in (10, 20):
                yield GenerationEvent('progress', {'percentage': pct})

        events = [e async for e in with_heartbeat(fast(), interval=5.0)]
        assert [e.data['percentage'] for e in events] == [10, 20]

    @pytest.mark.asyncio
    async def test_close_cancels_inner_stream(self):
        cleaned_up = []

        async def stuck():
            try:
                await asyncio.sleep(60)
                yield GenerationEvent('progress', {})
            finally:
                cleaned_up.append(True)

        wrapped = with_heartbeat(stuck(), interval=0.01)
        first = await wrapped.__anext__()
        await wrapped.aclose()

        assert first.event == 'heartbeat'
        assert cleaned_up == [True]
