"""Error taxonomy shared by pipes, ports and modules."""
from __future__ import annotations

from typing import Optional


class WorkflowError(Exception):
    """Base error carrying the offending module and property/field."""

    def __init__(
        self,
        message: str,
        *,
        module: Optional[str] = None,
        field: Optional[str] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.module = module
        self.field = field

    def __str__(self) -> str:
        context = []
        if self.module:
            context.append(f"module={self.module}")
        if self.field:
            context.append(f"field={self.field}")
        if not context:
            return self.message
        return f"{self.message} ({', '.join(context)})"


class ConfigurationError(WorkflowError):
    """Missing required option or incompatible pipe/port wiring."""


class ModuleStateError(WorkflowError):
    """A module or pipeline was driven outside its lifecycle."""


class DeserializationError(WorkflowError):
    """Malformed corpus transfer record."""


class CorpusIndexError(WorkflowError, IndexError):
    """Node inserted before counts were set or with an out-of-range number."""


class AlgorithmContractViolation(WorkflowError):
    """A clustering strategy broke its documented post-condition."""


class PipeClosedError(WorkflowError):
    """Write attempted on a pipe that was closed or whose consumer detached."""


class PipeTimeoutError(WorkflowError):
    """No data arrived on a pipe within the configured read timeout."""


class PipeAbortedError(WorkflowError):
    """The producer of a pipe failed; the stream ended abnormally."""

    def __init__(self, message: str, *, module: Optional[str] = None, cause: Optional[BaseException] = None) -> None:
        super().__init__(message, module=module)
        self.cause = cause
