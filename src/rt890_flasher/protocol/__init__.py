"""Radio protocol layer - RT-890 UART service and bootloader protocol."""

from .transport import (
    RT890Transport,
    RadioTransportError,
    RadioPortError,
    RadioTimeoutError,
    list_serial_ports,
    BAUD_RATE,
    DEFAULT_TIMEOUT,
)
from .framing import (
    CHUNK_SIZE,
    ACK,
    checksum,
    verify_checksum,
)
from .commands import (
    erase_flash,
    write_flash,
    read_spi_flash,
    write_spi_flash,
)
from .spi_regions import (
    SpiRegion,
    SPI_FLASH_SIZE,
    CALIBRATION_REGION,
    FULL_RESTORE_REGIONS,
    CALIBRATION_ONLY_REGIONS,
    restore_regions,
)
from .rt890_protocol import (
    RT890Protocol,
    RadioMode,
    RadioRejectedError,
    FIRMWARE_SIZE,
)

__all__ = [
    # Transport
    "RT890Transport",
    "RadioTransportError",
    "RadioPortError",
    "RadioTimeoutError",
    "list_serial_ports",
    "BAUD_RATE",
    "DEFAULT_TIMEOUT",
    # Framing
    "CHUNK_SIZE",
    "ACK",
    "checksum",
    "verify_checksum",
    # Commands
    "erase_flash",
    "write_flash",
    "read_spi_flash",
    "write_spi_flash",
    # SPI regions
    "SpiRegion",
    "SPI_FLASH_SIZE",
    "CALIBRATION_REGION",
    "FULL_RESTORE_REGIONS",
    "CALIBRATION_ONLY_REGIONS",
    "restore_regions",
    # Protocol
    "RT890Protocol",
    "RadioMode",
    "RadioRejectedError",
    "FIRMWARE_SIZE",
]
