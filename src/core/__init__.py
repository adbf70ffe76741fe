"""Core runtime for the News RAG Navigator: the shared event loop."""

import asyncio
import logging
import threading
from typing import Any, Awaitable, Optional

logger = logging.getLogger(__name__)

_loop: Optional[asyncio.AbstractEventLoop] = None
_loop_lock = threading.Lock()


def start_event_loop() -> asyncio.AbstractEventLoop:
    """
    Start (once) the background event loop that runs every query and ingestion.

    All coroutines share this single loop, so pipeline state is only ever
    touched from one thread.
    """
    global _loop
    with _loop_lock:
        if _loop is not None and not _loop.is_closed():
            return _loop

        loop = asyncio.new_event_loop()
        thread = threading.Thread(target=loop.run_forever, name="rag-event-loop", daemon=True)
        thread.start()
        _loop = loop
        logger.info("Async environment initialized successfully")
        return _loop


def run_async(coro: Awaitable[Any], timeout: Optional[float] = None) -> Any:
    """Run a coroutine on the shared loop from synchronous code and wait for its result."""
    loop = start_event_loop()
    future = asyncio.run_coroutine_threadsafe(coro, loop)
    return future.result(timeout)


def stop_event_loop() -> None:
    global _loop
    with _loop_lock:
        if _loop is not None and not _loop.is_closed():
            _loop.call_soon_threadsafe(_loop.stop)
        _loop = None
