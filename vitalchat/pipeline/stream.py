import asyncio
import logging
from typing import AsyncIterable, AsyncIterator, Optional

from vitalchat.pipeline.classifier import Frame, StreamClassifier

log = logging.getLogger(__name__)

_END = object()
_CANCELLED = object()


async def _next_delta(iterator: AsyncIterator[str], cancel: Optional[asyncio.Event]):
    """Await the next delta, or return early once ``cancel`` is set."""
    if cancel is None:
        try:
            return await iterator.__anext__()
        except StopAsyncIteration:
            return _END

    next_task = asyncio.ensure_future(iterator.__anext__())
    cancel_task = asyncio.ensure_future(cancel.wait())
    try:
        await asyncio.wait(
            {next_task, cancel_task}, return_when=asyncio.FIRST_COMPLETED
        )
    finally:
        if not cancel_task.done():
            cancel_task.cancel()
        if not next_task.done():
            next_task.cancel()
            await asyncio.wait({next_task})

    if next_task.cancelled():
        return _CANCELLED
    exc = next_task.exception()
    if isinstance(exc, StopAsyncIteration):
        return _END
    if exc is not None:
        raise exc
    return next_task.result()


async def _release(iterator: AsyncIterator[str]) -> None:
    aclose = getattr(iterator, "aclose", None)
    if aclose is not None:
        await aclose()


async def classify_stream(
    deltas: AsyncIterable[str],
    *,
    cancel: Optional[asyncio.Event] = None,
    classifier: Optional[StreamClassifier] = None,
    flush: bool = True,
) -> AsyncIterator[Frame]:
    """Yield one frame per delta pulled from ``deltas``.

    The source is closed on every exit path. When ``cancel`` is set the
    loop stops without emitting a partial frame; the caller keeps the last
    frame it received. On normal completion, a trailing partial delimiter
    is flushed as content and one more frame is yielded if that changed
    anything.
    """
    classifier = classifier or StreamClassifier()
    iterator = deltas.__aiter__()
    count = 0
    try:
        while True:
            if cancel is not None and cancel.is_set():
                log.info("stream cancelled after %d deltas", count)
                return
            delta = await _next_delta(iterator, cancel)
            if delta is _CANCELLED:
                log.info("stream cancelled after %d deltas", count)
                return
            if delta is _END:
                break
            count += 1
            yield classifier.process(delta)

        log.debug("stream finished after %d deltas", count)
        if flush and classifier.pending:
            yield classifier.finish()
    finally:
        await _release(iterator)
