"""
Outcome of one dump, restore or flash run.

Actions never let a radio or file error escape; they hand back an
OperationResult and the CLI decides what to print and which exit code to use.
"""

from dataclasses import dataclass, field
from typing import List, Dict, Any, Optional

from .messages import WarningCode


@dataclass
class OperationResult:
    """
    What happened during a single operation against the radio.

    Attributes:
        ok: False as soon as any error is recorded
        operation: Action name ("dump_spi_flash", "flash_firmware", ...)
        port: Serial port used
        region: "full", "calibration" or "mcu"
        bytes_len: Bytes read from or written to the radio
        hashes: Digests of the image handled, keyed by algorithm
        warnings: Problems that did not stop the operation
        errors: Problems that did
        error_code: Code of the first error
        metadata: Per-operation extras (path, chunks, regions, complete)
        logs: Log lines captured while the operation ran
    """
    ok: bool
    operation: str
    port: str = ""
    region: str = ""
    bytes_len: int = 0
    hashes: Dict[str, str] = field(default_factory=dict)
    warnings: List[str] = field(default_factory=list)
    errors: List[str] = field(default_factory=list)
    error_code: Optional[WarningCode] = None
    metadata: Dict[str, Any] = field(default_factory=dict)
    logs: List[str] = field(default_factory=list)

    def add_warning(self, message: str) -> None:
        self.warnings.append(message)

    def add_error(self, message: str, code: Optional[WarningCode] = None) -> None:
        """Record a blocking error; the first code recorded is kept."""
        self.errors.append(message)
        if self.error_code is None:
            self.error_code = code
        self.ok = False

    def to_summary(self) -> str:
        """Multi-line report for --verbose output."""
        head = f"{self.operation} on {self.port or '?'}: {'ok' if self.ok else 'FAILED'}"
        if self.error_code is not None:
            head += f" ({self.error_code.value})"
        lines = [head]

        if self.region:
            lines.append(f"  region   {self.region}")
        if self.bytes_len:
            chunks = self.metadata.get("chunks")
            suffix = f" in {chunks:,} chunks" if chunks is not None else ""
            lines.append(f"  bytes    {self.bytes_len:,}{suffix}")
        if "path" in self.metadata:
            lines.append(f"  file     {self.metadata['path']}")
        for name in self.metadata.get("regions", []):
            lines.append(f"  wrote    {name}")
        for algorithm, digest in self.hashes.items():
            lines.append(f"  {algorithm:<8} {digest}")

        lines.extend(f"  warning: {message}" for message in self.warnings)
        lines.extend(f"  error: {message}" for message in self.errors)
        return "\n".join(lines)

    @classmethod
    def success(
        cls,
        operation: str,
        port: str = "",
        region: str = "",
        bytes_len: int = 0,
        **kwargs,
    ) -> "OperationResult":
        return cls(True, operation, port, region, bytes_len, **kwargs)

    @classmethod
    def failure(
        cls,
        operation: str,
        error: str,
        code: Optional[WarningCode] = None,
        port: str = "",
        **kwargs,
    ) -> "OperationResult":
        """Failed result carrying ``error`` as its first error."""
        result = cls(False, operation, port, **kwargs)
        result.add_error(error, code)
        return result
