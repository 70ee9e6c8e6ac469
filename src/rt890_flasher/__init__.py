"""
RT-890 Flasher - SPI flash dump/restore and firmware flashing for the Radtel RT-890

Talks to the radio's UART service interface (normal mode) and bootloader.
"""

__version__ = "0.1.0"

from rt890_flasher.protocol import RT890Transport, RT890Protocol
from rt890_flasher.core import dump_spi_flash, flash_firmware, restore_spi_flash

__all__ = [
    "RT890Transport",
    "RT890Protocol",
    "dump_spi_flash",
    "flash_firmware",
    "restore_spi_flash",
    "__version__",
]
