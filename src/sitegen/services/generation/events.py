"""Generation Event Transport
==========================

Server-sent event framing for the generation stream::

    event: progress
    data: {"phase": "template_selection", ...}

plus the consumer-side parser and a heartbeat wrapper that keeps idle
connections (and proxies) from timing out while the model is thinking.
"""

import asyncio
import json
import logging
import time
from typing import AsyncIterator, Iterable, Iterator, List, Optional

from sitegen.services.generation.models import GenerationEvent

logger = logging.getLogger(__name__)

DEFAULT_HEARTBEAT_INTERVAL = 5.0


def format_sse(event: GenerationEvent) -> str:
    return f"event: {event.event}\ndata: {json.dumps(event.data, ensure_ascii=False)}\n\n"


def _decode_frame(event_name: Optional[str], data_lines: List[str]) -> Optional[GenerationEvent]:
    if not data_lines:
        return None
    payload = '\n'.join(data_lines)
    try:
        data = json.loads(payload)
    except json.JSONDecodeError as e:
        logger.warning(f"Skipping malformed event frame ({event_name or 'message'}): {e}")
        return None
    if not isinstance(data, dict):
        logger.warning(f"Skipping event frame with non-object payload ({event_name or 'message'})")
        return None
    return GenerationEvent(event_name or 'message', data)


def parse_sse(lines: Iterable[str]) -> Iterator[GenerationEvent]:
    """Parse SSE text lines back into events.

    Frames whose data is not valid JSON are skipped with a warning; the
    rest of the stream is still parsed.
    """
    event_name: Optional[str] = None
    data_lines: List[str] = []
    for raw in lines:
        line = raw.rstrip('\r\n')
        if not line:
            event = _decode_frame(event_name, data_lines)
            if event is not None:
                yield event
            event_name, data_lines = None, []
            continue
        if line.startswith(':'):
            continue
        name, _, value = line.partition(':')
        if value.startswith(' '):
            value = value[1:]
        if name == 'event':
            event_name = value
        elif name == 'data':
            data_lines.append(value)

    event = _decode_frame(event_name, data_lines)
    if event is not None:
        yield event


def parse_sse_text(text: str) -> List[GenerationEvent]:
    return list(parse_sse(text.splitlines()))


async def with_heartbeat(events: AsyncIterator[GenerationEvent],
                         interval: float = DEFAULT_HEARTBEAT_INTERVAL) -> AsyncIterator[GenerationEvent]:
    """Forward ``events``, adding a heartbeat after each idle ``interval``.

    Closing this generator cancels the pending read and closes ``events``.
    """
    iterator = events.__aiter__()
    pending: Optional[asyncio.Task] = None
    try:
        while True:
            if pending is None:
                pending = asyncio.ensure_future(iterator.__anext__())
            done, _ = await asyncio.wait({pending}, timeout=interval)
            if not done:
                yield GenerationEvent.heartbeat(int(time.time() * 1000))
                continue
            task, pending = pending, None
            try:
                event = task.result()
            except StopAsyncIteration:
                break
            yield event
    finally:
        if pending is not None and not pending.done():
            pending.cancel()
            try:
                await pending
            except (asyncio.CancelledError, StopAsyncIteration):
                pass
        aclose = getattr(iterator, 'aclose', None)
        if aclose is not None:
            await aclose()


__all__ = ['DEFAULT_HEARTBEAT_INTERVAL', 'format_sse', 'parse_sse', 'parse_sse_text', 'with_heartbeat']
