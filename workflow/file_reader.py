"""Source module copying a file onto its output pipes."""
from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, Mapping, Optional

from workflow.base import Module
from workflow.errors import ModuleStateError
from workflow.pipes import PipeKind
from workflow.ports import OutputPort


class FileReaderModule(Module):
    PROPERTYKEY_INPUTFILE = "inputfile"
    OUTPUTID = "output"

    def __init__(
        self,
        properties: Optional[Mapping[str, Any]] = None,
        *,
        settings: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(properties, settings=settings)
        self.description = "Reads a file and writes its content to byte and/or char pipes."
        self.property_descriptions[self.PROPERTYKEY_INPUTFILE] = "Path to the input file"
        self.property_defaults[self.PROPERTYKEY_NAME] = "FileReader"
        self.required_properties.add(self.PROPERTYKEY_INPUTFILE)

        self.add_output_port(
            OutputPort(
                self.OUTPUTID,
                "[bytes|text] File content.",
                self,
                supported=(PipeKind.BYTES, PipeKind.CHARS),
            )
        )
        self.chunk_size = int(self.settings.get("pipes", {}).get("chunk_size", 1024))
        self.path: Optional[Path] = None

    def apply_properties(self) -> None:
        super().apply_properties()
        self.path = Path(self.properties[self.PROPERTYKEY_INPUTFILE])

    def process(self) -> bool:
        if self.path is None:
            raise ModuleStateError("process() called before apply_properties()", module=self.name)
        port = self.output_ports[self.OUTPUTID]

        if port.pipes(PipeKind.BYTES):
            with self.path.open("rb") as fh:
                for chunk in iter(lambda: fh.read(self.chunk_size), b""):
                    port.write_bytes(chunk)

        if port.pipes(PipeKind.CHARS):
            with self.path.open("r", encoding="utf-8") as fh:
                for chunk in iter(lambda: fh.read(self.chunk_size), ""):
                    port.write_text(chunk)

        self.close_all_outputs()
        return True
