"""
RT-890 Radio Protocol Layer

High-level operations for the Radtel RT-890, driven over an open transport.

This module provides:
- SPI flash dump (normal mode)
- SPI flash restore by region table (normal mode)
- MCU firmware flash (bootloader mode)

Every command is a gated attempt: the first rejection is raised as
RadioRejectedError and nothing is re-sent.
"""

import logging
from enum import Enum
from typing import BinaryIO, Callable, Optional, Sequence

from .commands import erase_flash, read_spi_flash, write_flash, write_spi_flash
from .framing import CHUNK_SIZE
from .spi_regions import (
    FULL_RESTORE_REGIONS,
    SPI_CHUNK_COUNT,
    SPI_FLASH_SIZE,
    SpiRegion,
    validate_region,
)
from .transport import RadioTransportError

logger = logging.getLogger(__name__)

FIRMWARE_SIZE = 60_416

ProgressCallback = Callable[[int, int, int], None]


class RadioMode(Enum):
    """Radio firmware state an operation needs. Selected by the user out of band."""
    NORMAL = "normal"
    BOOTLOADER = "bootloader"


class RadioRejectedError(RadioTransportError):
    """
    Radio answered a command with something other than ACK.

    Attributes:
        stage: Which command was rejected ("erase", "write_flash", "write_spi")
        offset: Byte offset of the rejected chunk, if any
        mode: Radio mode the command needs
    """
    def __init__(
        self,
        message: str,
        *,
        stage: str,
        mode: RadioMode,
        offset: Optional[int] = None,
    ):
        self.stage = stage
        self.mode = mode
        self.offset = offset
        super().__init__(message)


class RT890Protocol:
    """
    High-level RT-890 protocol handler.

    Wraps an already-open transport and runs one complete operation as a
    strictly sequential loop over 128-byte chunks.

    Example:
        with RT890Transport("/dev/ttyUSB0") as transport:
            protocol = RT890Protocol(transport)
            with open("spi_backup.bin", "wb") as f:
                protocol.dump_spi_flash(f)
    """

    def __init__(self, transport):
        self.transport = transport

    def dump_spi_flash(
        self,
        sink: BinaryIO,
        progress_cb: Optional[ProgressCallback] = None,
    ) -> int:
        """
        Read SPI flash chunk by chunk into ``sink``.

        Stops after chunk 32767 or when the radio signals end of data,
        whichever comes first.

        Returns:
            Number of bytes written to ``sink``
        """
        written = 0
        for chunk_index in range(SPI_CHUNK_COUNT):
            data = read_spi_flash(self.transport, chunk_index)
            if data is None:
                logger.info(f"Radio reported end of data after {chunk_index} chunks")
                break
            sink.write(data)
            written += len(data)
            if progress_cb:
                progress_cb(chunk_index * CHUNK_SIZE, written, SPI_FLASH_SIZE)

        logger.info(f"Dumped {written:,} bytes of SPI flash")
        return written

    def flash_firmware(
        self,
        firmware: bytes,
        progress_cb: Optional[ProgressCallback] = None,
    ) -> int:
        """
        Erase MCU flash and write ``firmware`` to it.

        The radio reboots on its own after the last chunk.

        Returns:
            Number of firmware bytes written

        Raises:
            ValueError: If firmware is not exactly FIRMWARE_SIZE bytes
            RadioRejectedError: If erase or any chunk write is rejected
        """
        if len(firmware) != FIRMWARE_SIZE:
            raise ValueError(
                f"Firmware must be exactly {FIRMWARE_SIZE} bytes, got {len(firmware)}"
            )

        if not erase_flash(self.transport):
            raise RadioRejectedError(
                "Failed to erase MCU flash. Ensure the radio is in bootloader mode.",
                stage="erase",
                mode=RadioMode.BOOTLOADER,
            )
        logger.info("MCU flash erased")

        written = 0
        for offset in range(0, FIRMWARE_SIZE, CHUNK_SIZE):
            if not write_flash(self.transport, offset, firmware):
                raise RadioRejectedError(
                    f"Failed to write firmware to MCU flash at 0x{offset:04X}. "
                    "Ensure your radio is firmly connected.",
                    stage="write_flash",
                    mode=RadioMode.BOOTLOADER,
                    offset=offset,
                )
            written += CHUNK_SIZE
            if progress_cb:
                progress_cb(offset, written, FIRMWARE_SIZE)

        logger.info(f"Flashed {written:,} bytes of firmware")
        return written

    def restore_spi_flash(
        self,
        image: bytes,
        regions: Sequence[SpiRegion] = FULL_RESTORE_REGIONS,
        progress_cb: Optional[ProgressCallback] = None,
    ) -> int:
        """
        Write ``regions`` of a full SPI image back to the radio, in order.

        Returns:
            Number of bytes written

        Raises:
            ValueError: If image is not exactly SPI_FLASH_SIZE bytes or a
                region is malformed
            RadioRejectedError: If any chunk write is rejected
        """
        if len(image) != SPI_FLASH_SIZE:
            raise ValueError(
                f"SPI image must be exactly {SPI_FLASH_SIZE} bytes, got {len(image)}"
            )
        for region in regions:
            validate_region(region, len(image))

        total = sum(region.size for region in regions)
        written = 0
        for region in regions:
            logger.info(f"Restoring region {region.describe()}")
            for offset in region.chunk_offsets():
                if not write_spi_flash(self.transport, region, offset, image):
                    raise RadioRejectedError(
                        f"Failed to restore SPI flash at 0x{offset:06X} "
                        f"(region 0x{region.opcode:02X}). Ensure the radio is in normal mode.",
                        stage="write_spi",
                        mode=RadioMode.NORMAL,
                        offset=offset,
                    )
                written += CHUNK_SIZE
                if progress_cb:
                    progress_cb(offset, written, total)

        logger.info(f"Restored {written:,} bytes across {len(regions)} region(s)")
        return written
