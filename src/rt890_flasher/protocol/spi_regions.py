"""SPI flash geometry and the fixed restore region tables."""

from dataclasses import dataclass
from typing import Tuple

from .framing import CHUNK_SIZE

SPI_FLASH_SIZE = 4_194_304
SPI_CHUNK_COUNT = SPI_FLASH_SIZE // CHUNK_SIZE  # 32768


@dataclass(frozen=True)
class SpiRegion:
    """
    One SPI flash region written with its own opcode.

    Attributes:
        opcode: Command byte the radio expects for this region
        offset: Byte offset of the region within the 4 MiB image
        size: Region length in bytes (multiple of CHUNK_SIZE)
        name: Human-readable label
    """
    opcode: int
    offset: int
    size: int
    name: str = ""

    @property
    def end(self) -> int:
        return self.offset + self.size

    @property
    def chunk_count(self) -> int:
        return self.size // CHUNK_SIZE

    def chunk_offsets(self) -> range:
        """Absolute byte offsets of every chunk in the region."""
        return range(self.offset, self.end, CHUNK_SIZE)

    def describe(self) -> str:
        label = f" {self.name}" if self.name else ""
        return f"0x{self.opcode:02X}{label} 0x{self.offset:06X}-0x{self.end:06X}"


# Opcodes and boundaries are empirical. Order is the order sent to the radio;
# 0x4C sits between 0x43 and 0x47 in the image but is written last.
CALIBRATION_REGION = SpiRegion(0x48, 0x3BF000, 4_096, "calibration")

FULL_RESTORE_REGIONS: Tuple[SpiRegion, ...] = (
    SpiRegion(0x40, 0x000000, 2_949_120, "main"),
    SpiRegion(0x41, 0x2D0000, 163_840),
    SpiRegion(0x42, 0x2F8000, 139_264),
    SpiRegion(0x43, 0x31A000, 8_192),
    SpiRegion(0x47, 0x3B5000, 40_960),
    CALIBRATION_REGION,
    SpiRegion(0x49, 0x3C1000, 40_960),
    SpiRegion(0x4B, 0x3D8000, 40_960),
    SpiRegion(0x4C, 0x31C000, 626_688),
)

CALIBRATION_ONLY_REGIONS: Tuple[SpiRegion, ...] = (CALIBRATION_REGION,)


def restore_regions(calibration_only: bool = False) -> Tuple[SpiRegion, ...]:
    """Region table for a full or calibration-only restore."""
    return CALIBRATION_ONLY_REGIONS if calibration_only else FULL_RESTORE_REGIONS


def validate_region(region: SpiRegion, image_size: int = SPI_FLASH_SIZE) -> None:
    """
    Check a region is chunk aligned and inside the image.

    Raises:
        ValueError: If the region is misaligned or out of bounds
    """
    if region.size <= 0 or region.size % CHUNK_SIZE:
        raise ValueError(f"Region {region.describe()} size is not a multiple of {CHUNK_SIZE}")
    if region.offset < 0 or region.offset % CHUNK_SIZE:
        raise ValueError(f"Region {region.describe()} is not chunk aligned")
    if region.end > image_size:
        raise ValueError(
            f"Region {region.describe()} exceeds image size 0x{image_size:06X}"
        )
