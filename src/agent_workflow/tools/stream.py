"""Live result streams produced by tools.

A stream is an ordered, single-consumer sequence of values fed by a producer
thread. The producer owns closing it; `produce_stream` guarantees closure on
every exit path, including errors.
"""

from __future__ import annotations

import logging
import queue
import threading
from collections.abc import Callable, Iterator
from typing import Any

logger = logging.getLogger(__name__)


class _EndOfStream:
    __slots__ = ()


_END = _EndOfStream()


class ResultStream:
    """Ordered, single-consumer sequence of incrementally produced values."""

    def __init__(self, name: str = "") -> None:
        self.name = name
        self._queue: queue.Queue[Any] = queue.Queue()
        self._lock = threading.Lock()
        self._closed = False
        self._consumed = False
        self._error: BaseException | None = None

    @property
    def closed(self) -> bool:
        with self._lock:
            return self._closed

    @property
    def error(self) -> BaseException | None:
        with self._lock:
            return self._error

    def put(self, value: Any) -> None:
        with self._lock:
            if self._closed:
                raise RuntimeError(f"Stream {self.name!r} is closed")
            self._queue.put(value)

    def close(self, error: BaseException | None = None) -> None:
        """Close the stream. Idempotent; only the first error is kept."""
        with self._lock:
            if self._closed:
                return
            self._closed = True
            self._error = error
            self._queue.put(_END)

    def __iter__(self) -> Iterator[Any]:
        with self._lock:
            if self._consumed:
                raise RuntimeError(f"Stream {self.name!r} already has a consumer")
            self._consumed = True
        return self._drain()

    def _drain(self) -> Iterator[Any]:
        while True:
            item = self._queue.get()
            if item is _END:
                break
            yield item
        if self._error is not None:
            raise self._error

    def collect(self) -> list[Any]:
        return list(self)

    def join_text(self) -> str:
        """Drain the stream and concatenate its values as text."""
        return "".join(str(chunk) for chunk in self if chunk is not None)


def produce_stream(
    producer: Callable[[ResultStream], None],
    *,
    name: str = "",
) -> ResultStream:
    """Run `producer` in a background thread feeding a new stream.

    The stream is always closed when the producer returns or raises. A
    producer error is logged and re-raised to the consumer once drained.
    """
    stream = ResultStream(name=name)

    def _run() -> None:
        try:
            producer(stream)
        except Exception as e:
            logger.error(f"Stream producer {name!r} failed: {e}")
            stream.close(error=e)
        finally:
            stream.close()

    thread = threading.Thread(target=_run, name=f"stream-{name or 'producer'}", daemon=True)
    thread.start()
    return stream
