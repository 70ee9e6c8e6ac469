"""
Core workflow actions for the RT-890 flasher.

Each action runs one complete operation against one serial port: load and
size-check any input file, open the link, drive the protocol, close the
link. Failures come back as a failed OperationResult instead of an
exception so the caller decides how to report them.
"""

import hashlib
import logging
from contextlib import contextmanager
from pathlib import Path
from typing import Optional, Union

from rt890_flasher.protocol import (
    RT890Protocol,
    RT890Transport,
    RadioMode,
    RadioPortError,
    RadioRejectedError,
    RadioTimeoutError,
    RadioTransportError,
    CHUNK_SIZE,
    DEFAULT_TIMEOUT,
    SPI_FLASH_SIZE,
    restore_regions,
)
from rt890_flasher.protocol.rt890_protocol import ProgressCallback
from .images import ImageSizeError, read_firmware_image, read_spi_image
from .messages import WarningCode
from .results import OperationResult

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]


class _ListLogHandler(logging.Handler):
    """Capture log records into a list of formatted strings."""

    def __init__(self, level: int = logging.INFO) -> None:
        super().__init__(level)
        self.records = []
        self.setFormatter(logging.Formatter("%(levelname)s %(name)s: %(message)s"))

    def emit(self, record: logging.LogRecord) -> None:
        self.records.append(self.format(record))


@contextmanager
def _capture_logs(logger_name: str = "rt890_flasher"):
    """Capture logs for core operations into a list."""
    target_logger = logging.getLogger(logger_name)
    handler = _ListLogHandler()
    previous_level = target_logger.level
    if previous_level in (logging.NOTSET, logging.WARNING, logging.ERROR, logging.CRITICAL):
        target_logger.setLevel(logging.INFO)
    target_logger.addHandler(handler)
    try:
        yield handler.records
    finally:
        target_logger.removeHandler(handler)
        target_logger.setLevel(previous_level)


def _mode_code(mode: RadioMode) -> WarningCode:
    if mode == RadioMode.BOOTLOADER:
        return WarningCode.W_NOT_BOOTLOADER_MODE
    return WarningCode.W_NOT_NORMAL_MODE


def _failure(
    operation: str,
    exc: Exception,
    mode: RadioMode,
    port: str,
    **kwargs,
) -> OperationResult:
    """Map an exception raised during ``operation`` to a failed result."""
    logger.debug(f"{operation} failed", exc_info=True)

    if isinstance(exc, ImageSizeError):
        code = WarningCode.W_SIZE_MISMATCH
        message = str(exc)
    elif isinstance(exc, RadioRejectedError):
        code = _mode_code(exc.mode)
        message = str(exc)
    elif isinstance(exc, RadioPortError):
        code = WarningCode.W_DEVICE_NOT_FOUND
        message = f"{exc}. Are you running with root/admin privileges?"
    elif isinstance(exc, RadioTimeoutError):
        code = WarningCode.W_SERIAL_TIMEOUT
        message = f"{exc}. Ensure the radio is in {mode.value} mode."
    elif isinstance(exc, RadioTransportError):
        code = WarningCode.W_SERIAL_ERROR
        message = f"{exc}. Ensure the radio is in {mode.value} mode."
    elif isinstance(exc, OSError):
        code = WarningCode.W_FILE_ERROR
        message = str(exc)
    else:
        code = WarningCode.W_UNKNOWN
        message = str(exc)

    return OperationResult.failure(operation, message, code=code, port=port, **kwargs)


def _open_link(port: str, timeout: float, transport=None):
    return transport if transport is not None else RT890Transport(port, timeout=timeout)


def dump_spi_flash(
    port: str,
    output_path: PathLike,
    *,
    timeout: float = DEFAULT_TIMEOUT,
    progress_cb: Optional[ProgressCallback] = None,
    transport=None,
) -> OperationResult:
    """
    Dump external SPI flash to ``output_path``. Radio must be in normal mode.

    Args:
        port: Serial port path
        output_path: File to create (overwritten if it exists)
        timeout: Serial timeout in seconds
        progress_cb: Optional callback(address, bytes_done, bytes_total)
        transport: Unopened transport to use instead of RT890Transport(port)

    Returns:
        OperationResult with:
            - bytes_len: bytes written to the file
            - hashes["sha256"]: hash of the dump
            - metadata["path"], metadata["chunks"], metadata["complete"]
    """
    operation = "dump_spi_flash"
    output_path = Path(output_path)

    with _capture_logs() as logs:
        link = _open_link(port, timeout, transport)
        try:
            with link, open(output_path, "wb") as sink:
                written = RT890Protocol(link).dump_spi_flash(sink, progress_cb)
            digest = hashlib.sha256(output_path.read_bytes()).hexdigest()
        except (RadioTransportError, OSError) as e:
            result = _failure(operation, e, RadioMode.NORMAL, port)
            result.metadata["path"] = str(output_path)
            result.logs = logs
            return result

        result = OperationResult.success(
            operation=operation,
            port=port,
            region="full",
            bytes_len=written,
        )
        result.hashes["sha256"] = digest
        result.metadata["path"] = str(output_path)
        result.metadata["chunks"] = written // CHUNK_SIZE
        result.metadata["complete"] = written == SPI_FLASH_SIZE
        if written != SPI_FLASH_SIZE:
            result.add_warning(
                f"Dump ended early at {written:,} of {SPI_FLASH_SIZE:,} bytes "
                "(radio reported end of data)"
            )
        result.logs = logs
        return result


def flash_firmware(
    port: str,
    firmware_path: PathLike,
    *,
    timeout: float = DEFAULT_TIMEOUT,
    progress_cb: Optional[ProgressCallback] = None,
    transport=None,
) -> OperationResult:
    """
    Write a firmware file to MCU flash. Radio must be in bootloader mode.

    The file is size-checked before the port is opened; a wrong size
    never reaches the radio.

    Returns:
        OperationResult with bytes_len, hashes["sha256"] of the firmware
        and metadata["chunks"]
    """
    operation = "flash_firmware"

    with _capture_logs() as logs:
        try:
            firmware = read_firmware_image(firmware_path)
        except (ImageSizeError, OSError) as e:
            result = _failure(operation, e, RadioMode.BOOTLOADER, port)
            result.logs = logs
            return result

        link = _open_link(port, timeout, transport)
        try:
            with link:
                written = RT890Protocol(link).flash_firmware(firmware, progress_cb)
        except RadioTransportError as e:
            result = _failure(operation, e, RadioMode.BOOTLOADER, port)
            result.logs = logs
            return result

        result = OperationResult.success(
            operation=operation,
            port=port,
            region="mcu",
            bytes_len=written,
        )
        result.hashes["sha256"] = hashlib.sha256(firmware).hexdigest()
        result.metadata["path"] = str(firmware_path)
        result.metadata["chunks"] = written // CHUNK_SIZE
        result.logs = logs
        return result


def restore_spi_flash(
    port: str,
    image_path: PathLike,
    *,
    calibration_only: bool = False,
    timeout: float = DEFAULT_TIMEOUT,
    progress_cb: Optional[ProgressCallback] = None,
    transport=None,
) -> OperationResult:
    """
    Restore a full SPI dump to the radio. Radio must be in normal mode.

    Args:
        calibration_only: Write only the 4 KiB calibration region

    Returns:
        OperationResult with bytes_len, hashes["sha256"] of the image,
        metadata["regions"] and metadata["chunks"]
    """
    operation = "restore_spi_flash"
    regions = restore_regions(calibration_only)
    region_label = "calibration" if calibration_only else "full"

    with _capture_logs() as logs:
        try:
            image = read_spi_image(image_path)
        except (ImageSizeError, OSError) as e:
            result = _failure(operation, e, RadioMode.NORMAL, port, region=region_label)
            result.logs = logs
            return result

        link = _open_link(port, timeout, transport)
        try:
            with link:
                written = RT890Protocol(link).restore_spi_flash(image, regions, progress_cb)
        except RadioTransportError as e:
            result = _failure(operation, e, RadioMode.NORMAL, port, region=region_label)
            result.logs = logs
            return result

        result = OperationResult.success(
            operation=operation,
            port=port,
            region=region_label,
            bytes_len=written,
        )
        result.hashes["sha256"] = hashlib.sha256(image).hexdigest()
        result.metadata["path"] = str(image_path)
        result.metadata["regions"] = [region.describe() for region in regions]
        result.metadata["chunks"] = written // CHUNK_SIZE
        result.add_warning("Restart the radio manually to load the restored data")
        result.logs = logs
        return result
