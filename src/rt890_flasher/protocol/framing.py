"""
RT-890 command framing.

Every request is a fixed-length frame whose last byte is the 8-bit
wrap-around sum of all preceding bytes:

    Erase MCU flash      [0x39 | 0x00 0x00 | 0x55 | sum]                  5 bytes
    Write MCU chunk      [0x57 | off_hi off_lo | 128 payload | sum]      132 bytes
    Read SPI chunk       [0x52 | idx_hi idx_lo | sum]                      4 bytes
    Write SPI chunk      [opcode | off_hi off_lo | 128 payload | sum]    132 bytes

SPI read responses are 132 bytes with the payload at bytes 3..130. Write
commands are answered with a single ack byte.
"""

from typing import Optional

CHUNK_SIZE = 128

ACK = 0x06

CMD_ERASE_FLASH = 0x39
CMD_WRITE_FLASH = 0x57
CMD_READ_SPI_FLASH = 0x52
ERASE_MAGIC = 0x55

ERASE_FRAME_LEN = 5
READ_REQUEST_LEN = 4
DATA_FRAME_LEN = 3 + CHUNK_SIZE + 1  # 132

PAYLOAD_START = 3
PAYLOAD_END = PAYLOAD_START + CHUNK_SIZE


def checksum(data: bytes) -> int:
    """8-bit wrap-around sum of ``data``."""
    total = 0
    for byte in data:
        total = (total + byte) & 0xFF
    return total


def with_checksum(body: bytes) -> bytes:
    """Return ``body`` with its checksum byte appended."""
    return bytes(body) + bytes([checksum(body)])


def verify_checksum(frame: bytes) -> bool:
    """True if the last byte of ``frame`` is the checksum of the rest."""
    if not frame:
        return False
    return checksum(frame[:-1]) == frame[-1]


def encode_offset(offset: int) -> bytes:
    """
    Encode an offset as the two address bytes of a frame.

    Only the low 16 bits go on the wire. SPI writes pass absolute byte
    offsets up to 0x3FFFFF; the radio resolves them relative to the region
    opcode, so the truncation is intentional.
    """
    if offset < 0:
        raise ValueError(f"Offset must be non-negative, got {offset}")
    return bytes([(offset >> 8) & 0xFF, offset & 0xFF])


def _check_payload(payload: bytes) -> None:
    if len(payload) != CHUNK_SIZE:
        raise ValueError(
            f"Payload must be exactly {CHUNK_SIZE} bytes, got {len(payload)}"
        )


def build_erase_frame() -> bytes:
    """Erase MCU flash request (bootloader mode)."""
    return with_checksum(bytes([CMD_ERASE_FLASH, 0x00, 0x00, ERASE_MAGIC]))


def build_write_flash_frame(offset: int, payload: bytes) -> bytes:
    """Write one 128-byte chunk of firmware at MCU byte ``offset``."""
    _check_payload(payload)
    return with_checksum(bytes([CMD_WRITE_FLASH]) + encode_offset(offset) + bytes(payload))


def build_read_spi_frame(chunk_index: int) -> bytes:
    """Read SPI flash chunk number ``chunk_index`` (128 bytes per chunk)."""
    if not 0 <= chunk_index <= 0xFFFF:
        raise ValueError(f"Chunk index out of range: {chunk_index}")
    return with_checksum(bytes([CMD_READ_SPI_FLASH]) + encode_offset(chunk_index))


def build_write_spi_frame(opcode: int, offset: int, payload: bytes) -> bytes:
    """Write one 128-byte chunk of SPI flash using a region ``opcode``."""
    if not 0 <= opcode <= 0xFF:
        raise ValueError(f"Opcode out of range: {opcode}")
    _check_payload(payload)
    return with_checksum(bytes([opcode]) + encode_offset(offset) + bytes(payload))


def extract_spi_payload(frame: bytes) -> Optional[bytes]:
    """Payload of a SPI read response, or None if the frame is malformed."""
    if len(frame) != DATA_FRAME_LEN or not verify_checksum(frame):
        return None
    return bytes(frame[PAYLOAD_START:PAYLOAD_END])


def is_ack(response: bytes) -> bool:
    """True only for the single success byte 0x06."""
    return len(response) == 1 and response[0] == ACK
