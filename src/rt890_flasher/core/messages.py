"""
Standardized warning and message system for the RT-890 flasher.

Provides structured warning items with stable codes so every failure the
core layer reports comes with a consistent title and remediation hint.
"""

from dataclasses import dataclass
from enum import Enum
from typing import List, Dict, TYPE_CHECKING

if TYPE_CHECKING:
    from .results import OperationResult


class MessageLevel(Enum):
    """Severity level for messages."""
    INFO = "info"
    WARN = "warn"
    ERROR = "error"


class WarningCode(Enum):
    """Stable warning codes for known conditions."""
    # Connection
    W_DEVICE_NOT_FOUND = "W_DEVICE_NOT_FOUND"
    W_SERIAL_TIMEOUT = "W_SERIAL_TIMEOUT"
    W_SERIAL_ERROR = "W_SERIAL_ERROR"

    # Radio mode
    W_NOT_NORMAL_MODE = "W_NOT_NORMAL_MODE"
    W_NOT_BOOTLOADER_MODE = "W_NOT_BOOTLOADER_MODE"

    # Files
    W_SIZE_MISMATCH = "W_SIZE_MISMATCH"
    W_FILE_ERROR = "W_FILE_ERROR"

    # Outcome
    W_DATA_TRUNCATED = "W_DATA_TRUNCATED"
    W_RESTART_REQUIRED = "W_RESTART_REQUIRED"

    # Generic
    W_UNKNOWN = "W_UNKNOWN"


# Default remediation hints for each warning code
WARNING_REMEDIATIONS: Dict[WarningCode, str] = {
    WarningCode.W_DEVICE_NOT_FOUND:
        "Check the USB cable and use -l to list available ports. "
        "You may need root/admin privileges to open the port.",
    WarningCode.W_SERIAL_TIMEOUT:
        "Check the cable connection and that the radio is powered on.",
    WarningCode.W_SERIAL_ERROR:
        "Close other serial applications and check the USB driver.",
    WarningCode.W_NOT_NORMAL_MODE:
        "Turn the radio on normally (no keys held) before dumping or restoring SPI flash.",
    WarningCode.W_NOT_BOOTLOADER_MODE:
        "Turn the radio on while holding both side keys to enter bootloader mode.",
    WarningCode.W_SIZE_MISMATCH:
        "Use an unmodified firmware file or a full SPI dump taken with -d.",
    WarningCode.W_FILE_ERROR:
        "Check that the file exists and that you can read or create it.",
    WarningCode.W_DATA_TRUNCATED:
        "The radio stopped sending before the end of flash. Repeat the dump.",
    WarningCode.W_RESTART_REQUIRED:
        "Power cycle the radio to load the restored data.",
    WarningCode.W_UNKNOWN:
        "Run again with --verbose for more details.",
}


@dataclass
class WarningItem:
    """
    Structured warning message with stable code.

    Attributes:
        level: Severity (INFO, WARN, ERROR)
        code: Stable warning code for programmatic handling
        title: Short, user-facing title
        detail: Longer explanation of the issue
        remediation: Suggested action to resolve the issue
    """
    level: MessageLevel
    code: WarningCode
    title: str
    detail: str = ""
    remediation: str = ""

    def __post_init__(self):
        """Set default remediation if not provided."""
        if not self.remediation and self.code in WARNING_REMEDIATIONS:
            self.remediation = WARNING_REMEDIATIONS[self.code]

    @classmethod
    def error(cls, code: WarningCode, title: str, detail: str = "") -> "WarningItem":
        """Create an ERROR-level warning."""
        return cls(MessageLevel.ERROR, code, title, detail)


def classify_warning(message: str) -> WarningCode:
    """Best-effort code for a plain warning string."""
    msg_lower = message.lower()
    if "end of data" in msg_lower or "ended early" in msg_lower:
        return WarningCode.W_DATA_TRUNCATED
    if "restart" in msg_lower:
        return WarningCode.W_RESTART_REQUIRED
    if "timeout" in msg_lower:
        return WarningCode.W_SERIAL_TIMEOUT
    return WarningCode.W_UNKNOWN


def warnings_from_strings(
    warning_strings: List[str],
    default_level: MessageLevel = MessageLevel.WARN,
) -> List[WarningItem]:
    """Convert plain warning strings to WarningItem list."""
    return [
        WarningItem(level=default_level, code=classify_warning(msg), title=msg)
        for msg in warning_strings
    ]


def result_to_warnings(result: "OperationResult") -> List[WarningItem]:
    """
    Convert a result's warnings and errors to WarningItem list.

    The first error carries the result's error_code; any further errors
    are unclassified.
    """
    items = warnings_from_strings(result.warnings, MessageLevel.WARN)

    for index, err in enumerate(result.errors):
        code = result.error_code if index == 0 and result.error_code else WarningCode.W_UNKNOWN
        items.append(WarningItem.error(code, err))

    return items
