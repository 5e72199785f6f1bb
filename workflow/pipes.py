"""Typed, bounded, single-consumer channels between modules.

A pipe carries either raw bytes (:class:`BytePipe`) or text
(:class:`CharPipe`). The producer side writes chunks and finally closes the
pipe; the consumer side reads until it receives the empty end-of-stream
value. A producer that fails aborts the pipe instead, which the reader sees
as :class:`~workflow.errors.PipeAbortedError`, so an abnormal termination is
never mistaken for a clean end of stream.
"""
from __future__ import annotations

import abc
import itertools
import queue
import threading
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Iterator, Optional

from utils.config import load_settings
from utils.logging import get_logger
from workflow.errors import PipeAbortedError, PipeClosedError, PipeTimeoutError

logger = get_logger(__name__)

_END_OF_STREAM = object()
_PUT_POLL_SEC = 0.05
_pipe_ids = itertools.count(1)


class PipeKind(str, Enum):
    BYTES = "bytes"
    CHARS = "chars"


@dataclass(frozen=True)
class _Abort:
    module: Optional[str]
    error: BaseException


class Pipe(abc.ABC):
    """Base pipe: a bounded queue with end-of-stream and abort markers."""

    kind: PipeKind
    _empty: Any

    def __init__(
        self,
        name: Optional[str] = None,
        *,
        buffer_size: Optional[int] = None,
        read_timeout: Optional[float] = None,
        settings: Optional[Dict[str, Any]] = None,
    ) -> None:
        pipe_cfg = (settings or load_settings()).get("pipes", {})
        self.name = name or f"{self.kind.value}-pipe-{next(_pipe_ids)}"
        size = buffer_size if buffer_size is not None else pipe_cfg.get("buffer_size", 64)
        if size <= 0:
            raise ValueError("buffer_size must be a positive integer")
        self.read_timeout = read_timeout if read_timeout is not None else pipe_cfg.get("read_timeout_sec")
        self._queue: "queue.Queue[Any]" = queue.Queue(maxsize=size)
        self._lock = threading.Lock()
        self._closed = False
        self._detached = False
        self._abort: Optional[_Abort] = None
        self._finished = False
        self.producer: Optional[str] = None
        self.consumer: Optional[str] = None

    def __repr__(self) -> str:
        return f"{type(self).__name__}(name={self.name!r}, closed={self._closed})"

    # ------------------------------------------------------------------
    # Producer side
    # ------------------------------------------------------------------
    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def aborted(self) -> bool:
        return self._abort is not None

    def write(self, data: Any) -> None:
        """Enqueue one chunk, blocking while the buffer is full."""
        self._check_type(data)
        if not data:
            # the empty value is reserved for end of stream on the read side
            return
        if self._closed:
            raise PipeClosedError(f"Pipe {self.name} is closed", module=self.producer)
        self._put(data)

    def close(self) -> None:
        """Signal end of stream. Closing twice has no further effect."""
        with self._lock:
            if self._closed:
                return
            self._closed = True
        try:
            self._put(_END_OF_STREAM)
        except PipeClosedError:
            logger.debug("Consumer of %s detached before close", self.name, extra={"pipe": self.name})

    def abort(self, error: BaseException, module: Optional[str] = None) -> None:
        """Terminate the stream abnormally; readers raise ``PipeAbortedError``."""
        with self._lock:
            if self._closed:
                return
            self._closed = True
            self._abort = _Abort(module=module or self.producer, error=error)
        try:
            self._put(self._abort)
        except PipeClosedError:
            logger.debug("Consumer of %s detached before abort", self.name, extra={"pipe": self.name})

    def _put(self, item: Any) -> None:
        while True:
            if self._detached:
                raise PipeClosedError(
                    f"Consumer of pipe {self.name} detached", module=self.consumer
                )
            try:
                self._queue.put(item, timeout=_PUT_POLL_SEC)
                return
            except queue.Full:
                continue

    # ------------------------------------------------------------------
    # Consumer side
    # ------------------------------------------------------------------
    def read(self, timeout: Optional[float] = None) -> Any:
        """Return the next chunk, or the empty value once the stream ended."""
        if self._finished:
            return self._after_end()
        wait = timeout if timeout is not None else self.read_timeout
        try:
            item = self._queue.get(timeout=wait)
        except queue.Empty as exc:
            raise PipeTimeoutError(
                f"No data on pipe {self.name} within {wait}s", module=self.consumer
            ) from exc
        if item is _END_OF_STREAM:
            self._finished = True
            return self._empty
        if isinstance(item, _Abort):
            self._finished = True
            return self._after_end()
        return item

    def read_all(self) -> Any:
        return self._empty.join(iter(self))

    def __iter__(self) -> Iterator[Any]:
        while True:
            chunk = self.read()
            if not chunk:
                return
            yield chunk

    def detach(self) -> None:
        """Consumer gives up; later writes raise ``PipeClosedError``."""
        self._detached = True
        while True:
            try:
                self._queue.get_nowait()
            except queue.Empty:
                break

    def _after_end(self) -> Any:
        if self._abort is not None:
            raise PipeAbortedError(
                f"Upstream of pipe {self.name} failed: {self._abort.error}",
                module=self._abort.module,
                cause=self._abort.error,
            )
        return self._empty

    @abc.abstractmethod
    def _check_type(self, data: Any) -> None:
        """Reject chunks of the wrong payload type."""


class BytePipe(Pipe):
    """Pipe carrying ``bytes`` chunks."""

    kind = PipeKind.BYTES
    _empty = b""

    def _check_type(self, data: Any) -> None:
        if not isinstance(data, (bytes, bytearray, memoryview)):
            raise TypeError(f"BytePipe {self.name} accepts bytes, got {type(data).__name__}")

    def write(self, data: Any) -> None:
        if isinstance(data, (bytearray, memoryview)):
            data = bytes(data)
        super().write(data)


class CharPipe(Pipe):
    """Pipe carrying ``str`` chunks."""

    kind = PipeKind.CHARS
    _empty = ""

    def _check_type(self, data: Any) -> None:
        if not isinstance(data, str):
            raise TypeError(f"CharPipe {self.name} accepts str, got {type(data).__name__}")


PIPE_CLASSES = {
    PipeKind.BYTES: BytePipe,
    PipeKind.CHARS: CharPipe,
}


def create_pipe(kind: PipeKind, **kwargs: Any) -> Pipe:
    return PIPE_CLASSES[PipeKind(kind)](**kwargs)
