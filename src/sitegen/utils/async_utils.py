"""
Async Utilities
===============

Bridges the async generation pipeline into Flask's synchronous response
iteration. Each bridged generator owns a private event loop for its whole
lifetime so aiohttp sessions opened inside it stay on one loop.
"""

import asyncio
import logging
from typing import AsyncIterator, Iterator, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar('T')


def iterate_async(agen: AsyncIterator[T]) -> Iterator[T]:
    """Drive an async generator from synchronous code, one item at a time.

    Closing the returned iterator (Flask does this when the client goes
    away) closes the async generator on its own loop, so ``finally`` blocks
    inside the pipeline run and upstream streams are released.
    """
    loop = asyncio.new_event_loop()
    try:
        while True:
            try:
                item = loop.run_until_complete(agen.__anext__())
            except StopAsyncIteration:
                break
            yield item
    finally:
        try:
            aclose = getattr(agen, 'aclose', None)
            if aclose is not None:
                loop.run_until_complete(aclose())
            loop.run_until_complete(loop.shutdown_asyncgens())
        except Exception as e:
            logger.warning(f"Error while closing async stream: {e}")
        finally:
            loop.close()


__all__ = ['iterate_async']
