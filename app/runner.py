"""
Background event loop for the dashboard.

Streamlit runs every session's script on its own thread. The Notion client
is bound to the loop that first used it, so all sessions share one loop
running forever on a daemon thread and hand it work from their own threads.
"""

import asyncio
import threading
from typing import Any, Coroutine, Optional, TypeVar


T = TypeVar("T")


class BackgroundLoop:
    """An event loop running on a dedicated thread."""

    def __init__(self, name: str = "notion-ledger-loop"):
        self._loop = asyncio.new_event_loop()
        self._thread = threading.Thread(
            target=self._loop.run_forever,
            name=name,
            daemon=True,
        )
        self._thread.start()

    @property
    def loop(self) -> asyncio.AbstractEventLoop:
        return self._loop

    def run(self, coro: Coroutine[Any, Any, T], timeout: Optional[float] = None) -> T:
        """
        Run a coroutine on the loop and wait for its result.

        Safe to call from any thread except the loop's own.
        Exceptions raised by the coroutine are re-raised here.
        """
        future = asyncio.run_coroutine_threadsafe(coro, self._loop)
        return future.result(timeout)

    def stop(self) -> None:
        self._loop.call_soon_threadsafe(self._loop.stop)
        self._thread.join()
        self._loop.close()
