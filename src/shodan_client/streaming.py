"""Channels and line framing for the streaming API.

A streaming response is an open-ended sequence of newline-delimited
chunks.  The client reads it on a background worker and hands each chunk
to the caller through a channel:

* :class:`Channel` -- thread-safe, used by
  :class:`~shodan_client.client.Client` whose stream worker is a thread.
* :class:`AsyncChannel` -- used by
  :class:`~shodan_client.client.AsyncClient` whose stream worker is an
  :class:`asyncio.Task` on the same event loop as the consumer.

Both are single-producer / single-consumer queues.  ``close()`` may be
called any number of times from either side; only the first call has an
effect.  Once closed, ``send()`` drops the item and returns ``False`` and
the consumer drains whatever is left before seeing the end of the stream.

Example::

    channel = Channel()
    client.stream_banners(channel)
    for chunk in channel:
        handle(json.loads(chunk))
"""

from __future__ import annotations

import asyncio
import threading
from collections import deque
from collections.abc import AsyncIterable, AsyncIterator, Iterable, Iterator
from typing import Optional


class Channel:
    """Thread-safe chunk channel.

    Args:
        maxsize: Maximum number of undelivered chunks.  ``0`` means
            unbounded; otherwise :meth:`send` blocks while the channel is
            full.
    """

    def __init__(self, maxsize: int = 0) -> None:
        self._items: deque[bytes] = deque()
        self._maxsize = maxsize
        self._closed = False
        self._cond = threading.Condition()

    @property
    def closed(self) -> bool:
        """Whether :meth:`close` has been called."""
        return self._closed

    def __len__(self) -> int:
        with self._cond:
            return len(self._items)

    def send(self, item: bytes) -> bool:
        """Deliver *item*, waiting for room on a bounded channel.

        Returns:
            ``True`` if the item was queued, ``False`` if the channel is
            (or became, while waiting) closed.
        """
        with self._cond:
            self._cond.wait_for(lambda: self._closed or not self._full())
            if self._closed:
                return False
            self._items.append(item)
            self._cond.notify_all()
            return True

    def close(self) -> bool:
        """Mark the end of the stream.

        Returns:
            ``True`` for the call that actually closed the channel,
            ``False`` for every later call.
        """
        with self._cond:
            if self._closed:
                return False
            self._closed = True
            self._cond.notify_all()
            return True

    def receive(self, timeout: Optional[float] = None) -> Optional[bytes]:
        """Take the next chunk.

        Returns:
            The next chunk, or ``None`` once the channel is closed and
            drained.

        Raises:
            TimeoutError: If *timeout* elapses with nothing to return.
        """
        with self._cond:
            ready = self._cond.wait_for(lambda: self._items or self._closed, timeout)
            if not ready:
                raise TimeoutError("no chunk received within timeout")
            if self._items:
                item = self._items.popleft()
                self._cond.notify_all()
                return item
            return None

    def __iter__(self) -> Iterator[bytes]:
        while True:
            item = self.receive()
            if item is None:
                return
            yield item

    def _full(self) -> bool:
        return self._maxsize > 0 and len(self._items) >= self._maxsize


class AsyncChannel:
    """Chunk channel for use within a single event loop.

    Args:
        maxsize: Maximum number of undelivered chunks.  ``0`` means
            unbounded; otherwise :meth:`send` waits while the channel is
            full.
    """

    def __init__(self, maxsize: int = 0) -> None:
        self._items: deque[bytes] = deque()
        self._maxsize = maxsize
        self._closed = False
        self._readable = asyncio.Event()
        self._writable = asyncio.Event()
        self._writable.set()

    @property
    def closed(self) -> bool:
        """Whether :meth:`close` has been called."""
        return self._closed

    def __len__(self) -> int:
        return len(self._items)

    async def send(self, item: bytes) -> bool:
        """Deliver *item*; see :meth:`Channel.send`."""
        while not self._closed and self._full():
            self._writable.clear()
            await self._writable.wait()
        if self._closed:
            return False
        self._items.append(item)
        self._readable.set()
        return True

    def close(self) -> bool:
        """Mark the end of the stream; see :meth:`Channel.close`."""
        if self._closed:
            return False
        self._closed = True
        self._readable.set()
        self._writable.set()
        return True

    async def receive(self) -> Optional[bytes]:
        """Take the next chunk, or ``None`` once closed and drained."""
        while not self._items and not self._closed:
            self._readable.clear()
            await self._readable.wait()
        if self._items:
            item = self._items.popleft()
            self._writable.set()
            return item
        return None

    def __aiter__(self) -> AsyncIterator[bytes]:
        return self._iterate()

    async def _iterate(self) -> AsyncIterator[bytes]:
        while True:
            item = await self.receive()
            if item is None:
                return
            yield item

    def _full(self) -> bool:
        return self._maxsize > 0 and len(self._items) >= self._maxsize


# --- Line framing ---


def _split(buffer: bytes) -> tuple[list[bytes], bytes]:
    """Split *buffer* into complete lines and the unterminated remainder."""
    *lines, rest = buffer.split(b"\n")
    out = []
    for line in lines:
        if line.endswith(b"\r"):
            line = line[:-1]
        # Blank lines are keep-alives.
        if line:
            out.append(line)
    return out, rest


def iter_lines(chunks: Iterable[bytes]) -> Iterator[bytes]:
    """Re-frame raw body *chunks* into newline-delimited lines.

    Terminators are stripped and blank lines skipped.  Bytes after the
    last newline when *chunks* is exhausted are an incomplete line and are
    dropped.
    """
    pending = b""
    for chunk in chunks:
        lines, pending = _split(pending + chunk)
        yield from lines


async def aiter_lines(chunks: AsyncIterable[bytes]) -> AsyncIterator[bytes]:
    """Async counterpart of :func:`iter_lines`."""
    pending = b""
    async for chunk in chunks:
        lines, pending = _split(pending + chunk)
        for line in lines:
            yield line
