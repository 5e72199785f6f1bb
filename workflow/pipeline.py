"""Assemble modules into a graph and run each ``process`` on its own thread."""
from __future__ import annotations

from concurrent.futures import Future, ThreadPoolExecutor, as_completed
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from utils.config import load_settings
from utils.logging import get_logger
from workflow.base import Module
from workflow.errors import ConfigurationError, ModuleStateError
from workflow.pipes import Pipe, PipeKind
from workflow.ports import connect

logger = get_logger(__name__)


@dataclass
class ModuleOutcome:
    """Result-or-error of one module invocation."""

    name: str
    success: bool
    error: Optional[BaseException] = None


class Pipeline:
    """Holds the modules of one assembly and the pipes wiring them."""

    def __init__(self, settings: Optional[Dict[str, Any]] = None) -> None:
        self.settings = settings or load_settings()
        self.modules: Dict[str, Module] = {}
        self.pipes: List[Pipe] = []
        self._ran = False

    def add(self, module: Module) -> Module:
        if module.name in self.modules:
            raise ConfigurationError("Duplicate module name in pipeline", module=module.name)
        self.modules[module.name] = module
        return module

    def connect(
        self,
        producer: Module,
        output_id: str,
        consumer: Module,
        input_id: str,
        kind: Optional[PipeKind] = None,
    ) -> Pipe:
        for module in (producer, consumer):
            if self.modules.get(module.name) is not module:
                self.add(module)
        try:
            out_port = producer.output_ports[output_id]
        except KeyError as exc:
            raise ConfigurationError(f"Unknown output port '{output_id}'", module=producer.name, field=output_id) from exc
        try:
            in_port = consumer.input_ports[input_id]
        except KeyError as exc:
            raise ConfigurationError(f"Unknown input port '{input_id}'", module=consumer.name, field=input_id) from exc
        pipe = connect(out_port, in_port, kind, settings=self.settings)
        self.pipes.append(pipe)
        return pipe

    def configure(self) -> None:
        for module in self.modules.values():
            module.apply_properties()

    def run(self, max_workers: Optional[int] = None) -> Dict[str, ModuleOutcome]:
        """Run every module concurrently and collect one outcome per module.

        A failing module has its outputs aborted so that dependent modules
        fail with ``PipeAbortedError`` instead of waiting forever.
        """
        if self._ran:
            raise ModuleStateError("Pipeline has already been run")
        self._ran = True
        self.configure()

        # every module blocks on its pipes, so each needs its own thread
        configured = max_workers or self.settings.get("pipeline", {}).get("max_workers") or 0
        workers = max(configured, len(self.modules), 1)
        if configured and configured < len(self.modules):
            logger.warning(
                "max_workers=%d raised to %d, one thread per module", configured, workers
            )
        outcomes: Dict[str, ModuleOutcome] = {}
        with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="module") as executor:
            futures: Dict[Future, Module] = {
                executor.submit(module.run): module for module in self.modules.values()
            }
            for future in as_completed(futures):
                module = futures[future]
                error = future.exception()
                if error is None:
                    outcomes[module.name] = ModuleOutcome(module.name, bool(future.result()))
                    if not outcomes[module.name].success:
                        module.abort_outputs(ModuleStateError("Module reported failure", module=module.name))
                    continue
                logger.error(
                    "Halting consumers of failed module: %s",
                    error,
                    extra={"component": module.name},
                )
                module.abort_outputs(error)
                # producers upstream of the failed module must not block on a full pipe
                for port in module.input_ports.values():
                    if port.connected:
                        port.pipe.detach()
                outcomes[module.name] = ModuleOutcome(module.name, False, error)
        return outcomes

    def teardown(self) -> None:
        """Detach every pipe so no producer can block on a dead assembly."""
        for pipe in self.pipes:
            pipe.detach()
        self.pipes.clear()
        self.modules.clear()
