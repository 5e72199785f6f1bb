"""Pipe, port and module primitives for text-analysis workflows."""

from .base import Module
from .errors import (
    AlgorithmContractViolation,
    ConfigurationError,
    CorpusIndexError,
    DeserializationError,
    ModuleStateError,
    PipeAbortedError,
    PipeClosedError,
    PipeTimeoutError,
    WorkflowError,
)
from .file_reader import FileReaderModule
from .pipeline import ModuleOutcome, Pipeline
from .pipes import BytePipe, CharPipe, Pipe, PipeKind
from .ports import InputPort, OutputPort, connect

__all__ = [
    "Module",
    "FileReaderModule",
    "Pipeline",
    "ModuleOutcome",
    "Pipe",
    "BytePipe",
    "CharPipe",
    "PipeKind",
    "InputPort",
    "OutputPort",
    "connect",
    "WorkflowError",
    "ConfigurationError",
    "ModuleStateError",
    "DeserializationError",
    "CorpusIndexError",
    "AlgorithmContractViolation",
    "PipeClosedError",
    "PipeAbortedError",
    "PipeTimeoutError",
]
