"""Ordered, append-only chunk channel for one in-flight response."""

import asyncio

from mcpchat.models.stream import ArtifactDeltaChunk, StreamChunk
from mcpchat.utils.logging import get_logger

logger = get_logger(__name__)

_END = object()


class DeltaStreamWriter:
    """Single-writer output channel feeding one client response.

    Writes are appended in call order and never retracted. Once the stream is
    closed or aborted, further writes are dropped. Consumers read the chunks by
    iterating the writer; there is no way to rewind.
    """

    def __init__(self):
        """Initialize an open, empty stream."""
        self._queue: asyncio.Queue[object] = asyncio.Queue()
        self._closed = False
        self._aborted = False
        self.written = 0

    @property
    def is_open(self) -> bool:
        """Whether chunks can still be written."""
        return not (self._closed or self._aborted)

    @property
    def aborted(self) -> bool:
        """Whether the enclosing response was abandoned."""
        return self._aborted

    def write(self, chunk: StreamChunk) -> bool:
        """Append a chunk to the stream.

        Returns:
            True if the chunk was written, False if the stream no longer accepts writes
        """
        if not self.is_open:
            logger.debug(f"Dropping {chunk.type} chunk written after stream ended")
            return False

        self._queue.put_nowait(chunk)
        self.written += 1
        return True

    def write_delta(self, kind: str, content: str) -> bool:
        """Append an artifact delta chunk for the given artifact kind."""
        return self.write(ArtifactDeltaChunk.for_kind(kind, content))

    def close(self) -> None:
        """Finish the stream normally; consumers drain remaining chunks then stop."""
        if self._closed:
            return
        self._closed = True
        self._queue.put_nowait(_END)

    def abort(self) -> None:
        """Stop accepting writes because the response was cancelled.

        Chunks already written stay written.
        """
        if self._aborted:
            return
        logger.info(f"Stream aborted after {self.written} chunks")
        self._aborted = True
        if not self._closed:
            self._closed = True
            self._queue.put_nowait(_END)

    def __aiter__(self) -> "DeltaStreamWriter":
        return self

    async def __anext__(self) -> StreamChunk:
        item = await self._queue.get()
        if item is _END:
            # Keep the sentinel so repeated iteration also terminates
            self._queue.put_nowait(_END)
            raise StopAsyncIteration
        return item  # type: ignore[return-value]
