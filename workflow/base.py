"""Module base class: configuration contract, ports and single invocation."""
from __future__ import annotations

import abc
from typing import Any, Dict, Mapping, Optional, Set

from utils.config import load_settings
from utils.logging import get_logger
from workflow.errors import ConfigurationError, ModuleStateError, WorkflowError
from workflow.ports import InputPort, OutputPort


class Module(abc.ABC):
    """A configurable processing unit with typed ports and one ``process`` call.

    Subclasses declare their options in ``property_descriptions`` and
    ``property_defaults`` (and ``required_properties`` for options without a
    default), register their ports, and read their own values in
    :meth:`apply_properties` after calling the base implementation.
    """

    PROPERTYKEY_NAME = "name"

    def __init__(
        self,
        properties: Optional[Mapping[str, Any]] = None,
        *,
        settings: Optional[Dict[str, Any]] = None,
    ) -> None:
        self.settings = settings or load_settings()
        self.properties: Dict[str, Any] = dict(properties or {})
        self.description = ""
        self.property_descriptions: Dict[str, str] = {
            self.PROPERTYKEY_NAME: "Name of this module instance",
        }
        self.property_defaults: Dict[str, Any] = {
            self.PROPERTYKEY_NAME: type(self).__name__,
        }
        self.required_properties: Set[str] = set()
        self.input_ports: Dict[str, InputPort] = {}
        self.output_ports: Dict[str, OutputPort] = {}
        self.logger = get_logger(type(self).__module__)
        self._configured = False
        self._invoked = False

    @property
    def name(self) -> str:
        return str(self.properties.get(self.PROPERTYKEY_NAME) or self.property_defaults[self.PROPERTYKEY_NAME])

    def __repr__(self) -> str:
        return f"{type(self).__name__}(name={self.name!r})"

    # ------------------------------------------------------------------
    # Ports
    # ------------------------------------------------------------------
    def add_input_port(self, port: InputPort) -> InputPort:
        self.input_ports[port.name] = port
        return port

    def add_output_port(self, port: OutputPort) -> OutputPort:
        self.output_ports[port.name] = port
        return port

    def close_all_outputs(self) -> None:
        for port in self.output_ports.values():
            port.close()

    def abort_outputs(self, error: BaseException) -> None:
        for port in self.output_ports.values():
            port.abort(error)

    # ------------------------------------------------------------------
    # Configuration
    # ------------------------------------------------------------------
    def set_defaults_if_missing(self) -> None:
        for key, value in self.property_defaults.items():
            if self.properties.get(key) is None:
                self.properties[key] = value

    def apply_properties(self) -> None:
        missing = sorted(
            key for key in self.required_properties if self.properties.get(key) in (None, "")
        )
        if missing:
            raise ConfigurationError(
                f"Required option '{missing[0]}' is not set"
                + (f" ({self.property_descriptions[missing[0]]})" if missing[0] in self.property_descriptions else ""),
                module=self.name,
                field=missing[0],
            )
        self.set_defaults_if_missing()
        self._configured = True

    # ------------------------------------------------------------------
    # Invocation
    # ------------------------------------------------------------------
    def run(self) -> bool:
        """Invoke :meth:`process` exactly once.

        Failures propagate with the module name attached; outputs are left
        unclosed so the caller can abort them.
        """
        if self._invoked:
            raise ModuleStateError("Module has already been invoked", module=self.name)
        self._invoked = True
        if not self._configured:
            self.apply_properties()

        self.logger.info("Module started", extra={"component": self.name})
        try:
            success = self.process()
        except WorkflowError as exc:
            if exc.module is None:
                exc.module = self.name
            self.logger.error("Module failed: %s", exc, extra={"component": self.name, "field": exc.field})
            raise
        except Exception:
            self.logger.exception("Module failed", extra={"component": self.name})
            raise
        self.logger.info("Module finished success=%s", success, extra={"component": self.name})
        return success

    @abc.abstractmethod
    def process(self) -> bool:
        """Read inputs, do the unit of work, write and close outputs."""
