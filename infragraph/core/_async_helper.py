import asyncio
import threading
from typing import Any, Callable

# Shared loop that runs coroutines for synchronous callers.
_loop: asyncio.AbstractEventLoop | None = None
_loop_thread: threading.Thread | None = None
_loop_lock = threading.Lock()


def _ensure_loop() -> asyncio.AbstractEventLoop:
    global _loop, _loop_thread
    with _loop_lock:
        if _loop and not _loop.is_closed():
            return _loop

        _loop = asyncio.new_event_loop()

        def _run_loop():
            asyncio.set_event_loop(_loop)
            _loop.run_forever()

        _loop_thread = threading.Thread(
            target=_run_loop, name="infragraph-loop", daemon=True
        )
        _loop_thread.start()
        return _loop


def run_async(func: Callable[..., Any], *args, **kwargs):
    return asyncio.to_thread(func, *args, **kwargs)


def run_sync(afunc: Callable[..., Any], *args, **kwargs):
    """Run a coroutine function to completion from synchronous code.

    Blocks the calling thread. Must not be called from the shared loop
    thread, which would wait on itself.
    """
    loop = _ensure_loop()
    if threading.current_thread() is _loop_thread:
        raise RuntimeError("run_sync called from the shared event loop")

    coro = afunc(*args, **kwargs)
    future = asyncio.run_coroutine_threadsafe(coro, loop)
    return future.result()
