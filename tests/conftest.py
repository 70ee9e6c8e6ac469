"""Shared test helpers: an in-memory transport that scripts the radio side."""

from typing import Callable, List, Optional

import pytest

from rt890_flasher.protocol import RadioTimeoutError
from rt890_flasher.protocol.framing import CHUNK_SIZE, with_checksum

ACK = b"\x06"
NAK = b"\x15"


class ScriptedTransport:
    """
    Drop-in for RT890Transport that never touches a serial port.

    Every frame sent is recorded in ``sent``. ``responder`` is called with
    each frame and returns the bytes the radio queues in reply; ``preloaded``
    bytes are queued before anything is sent. Reading past the queue raises
    RadioTimeoutError, like a real read timeout.
    """

    def __init__(
        self,
        responder: Optional[Callable[[bytes], bytes]] = None,
        preloaded: bytes = b"",
    ):
        self.responder = responder
        self.rx = bytearray(preloaded)
        self.sent: List[bytes] = []
        self.opened = False
        self.closed = False

    def open(self) -> None:
        self.opened = True

    def close(self) -> None:
        self.closed = True

    def __enter__(self) -> "ScriptedTransport":
        self.open()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def send_raw(self, data: bytes) -> None:
        frame = bytes(data)
        self.sent.append(frame)
        if self.responder is not None:
            self.rx.extend(self.responder(frame))

    def recv_raw(self, length: int) -> bytes:
        if len(self.rx) < length:
            raise RadioTimeoutError("Radio did not respond (timeout)")
        out = bytes(self.rx[:length])
        del self.rx[:length]
        return out

    @property
    def bytes_sent(self) -> int:
        return sum(len(frame) for frame in self.sent)


def spi_response(payload: bytes, header: bytes = b"\x52\x00\x00") -> bytes:
    """A well-formed 132-byte SPI read response carrying ``payload``."""
    assert len(payload) == CHUNK_SIZE
    return with_checksum(header + payload)


def corrupt(frame: bytes) -> bytes:
    """Same frame with a wrong checksum byte."""
    return frame[:-1] + bytes([(frame[-1] + 1) & 0xFF])


def frame_index(frame: bytes) -> int:
    """16-bit address field of a request frame."""
    return (frame[1] << 8) | frame[2]


def dump_responder(valid_chunks: int) -> Callable[[bytes], bytes]:
    """
    Radio that answers chunk i < valid_chunks with payload [i % 256] * 128
    and answers everything after that with two malformed frames.
    """
    def respond(frame: bytes) -> bytes:
        index = frame_index(frame)
        if index < valid_chunks:
            return spi_response(bytes([index % 256]) * CHUNK_SIZE)
        bad = corrupt(spi_response(bytes(CHUNK_SIZE)))
        return bad + bad

    return respond


@pytest.fixture
def acking_transport() -> ScriptedTransport:
    """Radio that acknowledges every frame."""
    return ScriptedTransport(responder=lambda frame: ACK)


@pytest.fixture
def spi_image() -> bytes:
    """Full 4 MiB SPI image whose bytes encode their own chunk index."""
    chunks = bytearray()
    for index in range(4_194_304 // CHUNK_SIZE):
        chunks += bytes([index & 0xFF]) * CHUNK_SIZE
    return bytes(chunks)
