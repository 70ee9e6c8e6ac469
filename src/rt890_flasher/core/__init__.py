"""
Core module for the RT-890 flasher.

This module provides the single source of truth for:
- Image loading and size gating (images.py)
- Result objects (results.py)
- Top-level dump / restore / flash workflows (actions.py)
- Standardized warnings/messages (messages.py)

The CLI calls into this module rather than driving the protocol itself.
"""

from .images import ImageSizeError, read_image, read_firmware_image, read_spi_image
from .results import OperationResult
from .messages import (
    MessageLevel,
    WarningCode,
    WarningItem,
    warnings_from_strings,
    result_to_warnings,
)
from .actions import (
    dump_spi_flash,
    flash_firmware,
    restore_spi_flash,
)

__all__ = [
    # Images
    "ImageSizeError",
    "read_image",
    "read_firmware_image",
    "read_spi_image",
    # Results
    "OperationResult",
    # Messages
    "MessageLevel",
    "WarningCode",
    "WarningItem",
    "warnings_from_strings",
    "result_to_warnings",
    # Actions
    "dump_spi_flash",
    "flash_firmware",
    "restore_spi_flash",
]
