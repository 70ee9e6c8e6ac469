"""
RT-890 Serial Transport Layer

Handles low-level serial communication with the Radtel RT-890 service
interface (normal mode) and bootloader (bootloader mode).

This module provides:
- Serial port initialization and configuration (115200 8N1, no flow control)
- Blocking write-all and read-exact primitives
- Timeout and error handling
- Enumeration of available serial ports
"""

import logging
from typing import Optional

try:
    import serial
    import serial.tools.list_ports
except ImportError:
    raise ImportError("PySerial required: pip install pyserial")

logger = logging.getLogger(__name__)

BAUD_RATE = 115200
# Long enough for the slowest SPI region write to be acknowledged.
DEFAULT_TIMEOUT = 20.0


class RadioTransportError(Exception):
    """Base exception for transport layer errors"""
    pass


class RadioPortError(RadioTransportError):
    """Serial port could not be opened"""
    pass


class RadioTimeoutError(RadioTransportError):
    """Radio did not answer in time, or answered short"""
    pass


class RT890Transport:
    """
    Low-level serial transport for the RT-890.

    Handles:
    - Serial port management
    - Write-all / read-exact framing primitives
    - Timeout and error handling

    Example:
        with RT890Transport(port="/dev/ttyUSB0") as transport:
            transport.send_raw(frame)
            ack = transport.recv_raw(1)
    """

    def __init__(
        self,
        port: str,
        baudrate: int = BAUD_RATE,
        timeout: float = DEFAULT_TIMEOUT,
    ):
        """
        Initialize transport layer.

        Args:
            port: Serial port (e.g., "/dev/ttyUSB0", "COM3")
            baudrate: Serial baud rate (default 115200)
            timeout: Read/write timeout in seconds (default 20)
        """
        self.port = port
        self.baudrate = baudrate
        self.timeout = timeout
        self.ser: Optional[serial.Serial] = None

    def open(self) -> None:
        """
        Open serial port and configure for radio communication.

        Raises:
            RadioPortError: If port cannot be opened
        """
        try:
            self.ser = serial.Serial(
                port=self.port,
                baudrate=self.baudrate,
                bytesize=serial.EIGHTBITS,
                parity=serial.PARITY_NONE,
                stopbits=serial.STOPBITS_ONE,
                timeout=self.timeout,
                write_timeout=self.timeout,
                rtscts=False,
                xonxoff=False,
            )
            # Clear any junk in buffer
            self.ser.reset_input_buffer()
            self.ser.reset_output_buffer()

            logger.debug(
                f"Opened {self.port} at {self.baudrate} bps "
                f"(timeout={self.timeout}s)"
            )
        except serial.SerialException as e:
            raise RadioPortError(f"Cannot open port {self.port}: {e}")

    def close(self) -> None:
        """Close serial port."""
        if self.ser and self.ser.is_open:
            self.ser.close()
            logger.debug(f"Closed {self.port}")

    def __enter__(self) -> "RT890Transport":
        self.open()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def send_raw(self, data: bytes) -> None:
        """
        Send a complete frame to the radio.

        Raises:
            RadioTransportError: If the port is closed or the write is short
            RadioTimeoutError: If the write times out
        """
        if not self.ser or not self.ser.is_open:
            raise RadioTransportError("Serial port not open")

        try:
            written = self.ser.write(data)
        except serial.SerialTimeoutException as e:
            raise RadioTimeoutError(f"Write timeout: {e}")
        except serial.SerialException as e:
            raise RadioTransportError(f"Write error: {e}")

        if written != len(data):
            raise RadioTransportError(
                f"Incomplete write: sent {written}/{len(data)} bytes"
            )
        if logger.isEnabledFor(logging.DEBUG):
            logger.debug(">>> %s", bytes(data).hex().upper())

    def recv_raw(self, length: int) -> bytes:
        """
        Receive exactly ``length`` bytes from the radio.

        Raises:
            RadioTimeoutError: If fewer than ``length`` bytes arrive in time
            RadioTransportError: If the read fails
        """
        if not self.ser or not self.ser.is_open:
            raise RadioTransportError("Serial port not open")

        out = bytearray()
        try:
            while len(out) < length:
                chunk = self.ser.read(length - len(out))
                if not chunk:
                    break
                out.extend(chunk)
        except serial.SerialException as e:
            raise RadioTransportError(f"Read error: {e}")

        if len(out) == 0:
            raise RadioTimeoutError("Radio did not respond (timeout)")
        if len(out) < length:
            raise RadioTimeoutError(
                f"Short read: expected {length} bytes, got {len(out)}"
            )

        if logger.isEnabledFor(logging.DEBUG):
            logger.debug("<<< %s", bytes(out).hex().upper())
        return bytes(out)


def list_serial_ports() -> list:
    """Return the serial ports visible to the host, sorted by device name."""
    return sorted(serial.tools.list_ports.comports(), key=lambda p: p.device)

