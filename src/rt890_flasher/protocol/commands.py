"""
RT-890 radio commands.

One function per radio opcode. Each sends one request frame on an open
link and reads one response. ``link`` is anything with ``send_raw(bytes)``
and ``recv_raw(n) -> bytes`` (normally an RT890Transport). Transport
errors propagate unchanged; nothing is retried here.
"""

import logging
from typing import Optional

from .framing import (
    CHUNK_SIZE,
    DATA_FRAME_LEN,
    build_erase_frame,
    build_read_spi_frame,
    build_write_flash_frame,
    build_write_spi_frame,
    extract_spi_payload,
    is_ack,
)
from .spi_regions import SpiRegion

logger = logging.getLogger(__name__)


def _chunk_at(image: bytes, byte_offset: int) -> bytes:
    if byte_offset < 0 or byte_offset % CHUNK_SIZE:
        raise ValueError(f"Offset 0x{byte_offset:06X} is not a multiple of {CHUNK_SIZE}")
    if byte_offset + CHUNK_SIZE > len(image):
        raise ValueError(
            f"Chunk at 0x{byte_offset:06X} runs past end of image ({len(image)} bytes)"
        )
    return bytes(image[byte_offset:byte_offset + CHUNK_SIZE])


def erase_flash(link) -> bool:
    """Erase MCU flash. Only accepted in bootloader mode."""
    link.send_raw(build_erase_frame())
    response = link.recv_raw(1)
    if not is_ack(response):
        logger.debug(f"Erase rejected (got {response.hex()})")
        return False
    return True


def write_flash(link, byte_offset: int, image: bytes) -> bool:
    """Write the 128-byte chunk of ``image`` at ``byte_offset`` to MCU flash."""
    frame = build_write_flash_frame(byte_offset, _chunk_at(image, byte_offset))
    link.send_raw(frame)
    response = link.recv_raw(1)
    if not is_ack(response):
        logger.debug(f"MCU write at 0x{byte_offset:04X} rejected (got {response.hex()})")
        return False
    return True


def read_spi_flash(link, chunk_index: int) -> Optional[bytes]:
    """
    Read SPI flash chunk ``chunk_index``.

    The first response after the link opens is sometimes malformed, so a
    bad checksum gets exactly one more 132-byte read for the same request.
    A second bad frame is the radio's end-of-data signal and returns None.
    """
    link.send_raw(build_read_spi_frame(chunk_index))

    payload = extract_spi_payload(link.recv_raw(DATA_FRAME_LEN))
    if payload is None:
        logger.debug(f"Bad response for SPI chunk {chunk_index}, reading again")
        payload = extract_spi_payload(link.recv_raw(DATA_FRAME_LEN))

    if payload is None:
        logger.debug(f"End of SPI data at chunk {chunk_index}")
    return payload


def write_spi_flash(link, region: SpiRegion, byte_offset: int, image: bytes) -> bool:
    """Write the 128-byte chunk of ``image`` at ``byte_offset`` using ``region``'s opcode."""
    frame = build_write_spi_frame(region.opcode, byte_offset, _chunk_at(image, byte_offset))
    link.send_raw(frame)
    response = link.recv_raw(1)
    if not is_ack(response):
        logger.debug(
            f"SPI write 0x{region.opcode:02X} at 0x{byte_offset:06X} rejected "
            f"(got {response.hex()})"
        )
        return False
    return True
