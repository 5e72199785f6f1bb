"""Named, typed endpoints through which modules exchange pipes."""
from __future__ import annotations

from typing import TYPE_CHECKING, Any, Iterable, List, Optional, Set

from utils.logging import get_logger
from workflow.errors import ConfigurationError, PipeClosedError
from workflow.pipes import Pipe, PipeKind, create_pipe

if TYPE_CHECKING:  # pragma: no cover
    from workflow.base import Module

logger = get_logger(__name__)


class Port:
    """Common bookkeeping for input and output ports."""

    def __init__(
        self,
        name: str,
        description: str,
        module: "Module",
        supported: Iterable[PipeKind] = (),
    ) -> None:
        self.name = name
        self.description = description
        self.module = module
        self.supported_kinds: Set[PipeKind] = {PipeKind(kind) for kind in supported}

    @property
    def module_name(self) -> str:
        return self.module.name

    def add_supported_pipe(self, kind: PipeKind) -> None:
        self.supported_kinds.add(PipeKind(kind))

    def supports(self, kind: PipeKind) -> bool:
        return PipeKind(kind) in self.supported_kinds

    def _check_kind(self, pipe: Pipe) -> None:
        if not self.supports(pipe.kind):
            accepted = ", ".join(sorted(k.value for k in self.supported_kinds)) or "none"
            raise ConfigurationError(
                f"Port '{self.name}' does not accept {pipe.kind.value} pipes (accepts: {accepted})",
                module=self.module_name,
                field=self.name,
            )

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.module_name}.{self.name})"


class InputPort(Port):
    """Consumer endpoint bound to exactly one pipe."""

    def __init__(self, *args: Any, **kwargs: Any) -> None:
        super().__init__(*args, **kwargs)
        self._pipe: Optional[Pipe] = None

    def add_pipe(self, pipe: Pipe) -> None:
        self._check_kind(pipe)
        if self._pipe is not None:
            raise ConfigurationError(
                f"Input port '{self.name}' is already bound to {self._pipe.name}",
                module=self.module_name,
                field=self.name,
            )
        pipe.consumer = self.module_name
        self._pipe = pipe

    @property
    def connected(self) -> bool:
        return self._pipe is not None

    @property
    def pipe(self) -> Pipe:
        if self._pipe is None:
            raise ConfigurationError(
                f"Input port '{self.name}' is not connected",
                module=self.module_name,
                field=self.name,
            )
        return self._pipe


class OutputPort(Port):
    """Producer endpoint fanning out to any number of pipes."""

    def __init__(self, *args: Any, **kwargs: Any) -> None:
        super().__init__(*args, **kwargs)
        self._pipes: List[Pipe] = []
        self._closed = False

    def add_pipe(self, pipe: Pipe) -> None:
        self._check_kind(pipe)
        pipe.producer = self.module_name
        self._pipes.append(pipe)

    @property
    def connected(self) -> bool:
        return bool(self._pipes)

    @property
    def closed(self) -> bool:
        return self._closed

    def pipes(self, kind: Optional[PipeKind] = None) -> List[Pipe]:
        if kind is None:
            return list(self._pipes)
        return [pipe for pipe in self._pipes if pipe.kind == PipeKind(kind)]

    def write_bytes(self, data: bytes) -> int:
        return self._broadcast(PipeKind.BYTES, data)

    def write_text(self, text: str) -> int:
        return self._broadcast(PipeKind.CHARS, text)

    def _broadcast(self, kind: PipeKind, data: Any) -> int:
        """Deliver ``data`` to every live pipe of ``kind``; return the count."""
        delivered = 0
        for pipe in self.pipes(kind):
            try:
                pipe.write(data)
            except PipeClosedError:
                logger.warning(
                    "Dropping output for dead consumer %s",
                    pipe.consumer,
                    extra={"component": self.module_name, "port": self.name, "pipe": pipe.name},
                )
                continue
            delivered += 1
        return delivered

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        for pipe in self._pipes:
            pipe.close()

    def abort(self, error: BaseException) -> None:
        if self._closed:
            return
        self._closed = True
        for pipe in self._pipes:
            pipe.abort(error, module=self.module_name)


def connect(
    producer: OutputPort,
    consumer: InputPort,
    kind: Optional[PipeKind] = None,
    **pipe_kwargs: Any,
) -> Pipe:
    """Create a pipe both ports accept and bind it to each of them."""
    if kind is None:
        shared = [k for k in PipeKind if producer.supports(k) and consumer.supports(k)]
        if not shared:
            raise ConfigurationError(
                f"No common pipe kind between {producer!r} and {consumer!r}",
                module=consumer.module_name,
                field=consumer.name,
            )
        kind = shared[0]
    name = f"{producer.module_name}.{producer.name}->{consumer.module_name}.{consumer.name}"
    pipe = create_pipe(kind, name=name, **pipe_kwargs)
    producer._check_kind(pipe)
    consumer.add_pipe(pipe)
    producer.add_pipe(pipe)
    return pipe
