"""
Image file loading with strict size checks.

Images are read whole before the serial port is touched, so a wrong file
never reaches the radio.
"""

from pathlib import Path
from typing import Union

from rt890_flasher.protocol import FIRMWARE_SIZE, SPI_FLASH_SIZE


class ImageSizeError(ValueError):
    """
    File length does not match what the radio expects.

    Attributes:
        path: File that was read
        expected: Required size in bytes
        actual: Size found on disk
    """
    def __init__(self, path: Path, expected: int, actual: int):
        self.path = path
        self.expected = expected
        self.actual = actual
        super().__init__(
            f"Specified file is not exactly {expected:,} bytes "
            f"(got {actual:,}): {path}"
        )


def read_image(path: Union[str, Path], expected_size: int) -> bytes:
    """
    Read ``path`` and check it is exactly ``expected_size`` bytes.

    Raises:
        OSError: If the file cannot be read
        ImageSizeError: If the size is wrong
    """
    path = Path(path)
    data = path.read_bytes()
    if len(data) != expected_size:
        raise ImageSizeError(path, expected_size, len(data))
    return data


def read_firmware_image(path: Union[str, Path]) -> bytes:
    return read_image(path, FIRMWARE_SIZE)


def read_spi_image(path: Union[str, Path]) -> bytes:
    return read_image(path, SPI_FLASH_SIZE)
