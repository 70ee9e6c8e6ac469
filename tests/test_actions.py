"""End-to-end tests for the core actions against a scripted radio."""

from pathlib import Path

import pytest

from rt890_flasher.core import (
    ImageSizeError,
    WarningCode,
    dump_spi_flash,
    flash_firmware,
    read_firmware_image,
    restore_spi_flash,
)
from rt890_flasher.protocol import FIRMWARE_SIZE, SPI_FLASH_SIZE, RadioPortError
from rt890_flasher.protocol.framing import CHUNK_SIZE

from conftest import ACK, NAK, ScriptedTransport, dump_responder, frame_index


def _write(tmp_path: Path, name: str, data: bytes) -> Path:
    path = tmp_path / name
    path.write_bytes(data)
    return path


class TestFlashFirmwareAction:

    def test_happy_path(self, tmp_path):
        firmware_path = _write(tmp_path, "firmware.bin", bytes([0xAA]) * FIRMWARE_SIZE)
        transport = ScriptedTransport(responder=lambda frame: ACK)

        result = flash_firmware("SCRIPTED", firmware_path, transport=transport)

        assert result.ok, result.errors
        assert result.bytes_len == FIRMWARE_SIZE
        assert result.metadata["chunks"] == 472
        assert len(result.hashes["sha256"]) == 64
        writes = [frame for frame in transport.sent if frame[0] == 0x57]
        assert [frame_index(f) for f in writes] == list(range(0, 60_416, 128))
        assert transport.closed
        assert any("MCU flash erased" in line for line in result.logs)

    def test_size_mismatch_touches_nothing(self, tmp_path):
        firmware_path = _write(tmp_path, "short.bin", bytes(FIRMWARE_SIZE - 1))
        transport = ScriptedTransport()

        result = flash_firmware("SCRIPTED", firmware_path, transport=transport)

        assert not result.ok
        assert result.error_code == WarningCode.W_SIZE_MISMATCH
        assert "60,416" in result.errors[0]
        assert "60,415" in result.errors[0]
        assert transport.sent == []
        assert transport.bytes_sent == 0
        assert not transport.opened

    def test_erase_rejected(self, tmp_path):
        firmware_path = _write(tmp_path, "firmware.bin", bytes(FIRMWARE_SIZE))
        transport = ScriptedTransport(responder=lambda frame: NAK)

        result = flash_firmware("SCRIPTED", firmware_path, transport=transport)

        assert not result.ok
        assert result.error_code == WarningCode.W_NOT_BOOTLOADER_MODE
        assert "bootloader mode" in result.errors[0]
        assert not any(frame[0] == 0x57 for frame in transport.sent)
        assert transport.closed

    def test_missing_file(self, tmp_path):
        transport = ScriptedTransport()
        result = flash_firmware("SCRIPTED", tmp_path / "missing.bin", transport=transport)

        assert not result.ok
        assert result.error_code == WarningCode.W_FILE_ERROR
        assert not transport.opened


class TestDumpSpiFlashAction:

    def test_truncated_dump(self, tmp_path):
        out_path = tmp_path / "spi_backup.bin"
        transport = ScriptedTransport(responder=dump_responder(100))

        result = dump_spi_flash("SCRIPTED", out_path, transport=transport)

        assert result.ok
        data = out_path.read_bytes()
        assert len(data) == 12_800
        assert data == b"".join(bytes([i % 256]) * CHUNK_SIZE for i in range(100))
        assert result.bytes_len == 12_800
        assert result.metadata["complete"] is False
        assert any("ended early" in w for w in result.warnings)

    def test_complete_dump(self, tmp_path):
        out_path = tmp_path / "spi_backup.bin"
        transport = ScriptedTransport(responder=dump_responder(40000))

        result = dump_spi_flash("SCRIPTED", out_path, transport=transport)

        assert result.ok
        assert out_path.stat().st_size == SPI_FLASH_SIZE
        assert result.metadata["complete"] is True
        assert result.warnings == []

    def test_timeout_is_reported_with_normal_mode_hint(self, tmp_path):
        transport = ScriptedTransport()

        result = dump_spi_flash("SCRIPTED", tmp_path / "out.bin", transport=transport)

        assert not result.ok
        assert result.error_code == WarningCode.W_SERIAL_TIMEOUT
        assert "normal mode" in result.errors[0]
        assert transport.closed

    def test_port_open_failure(self, tmp_path):
        class UnopenableTransport(ScriptedTransport):
            def open(self):
                raise RadioPortError("Cannot open port /dev/ttyUSB9: no such device")

        result = dump_spi_flash("/dev/ttyUSB9", tmp_path / "out.bin", transport=UnopenableTransport())

        assert not result.ok
        assert result.error_code == WarningCode.W_DEVICE_NOT_FOUND
        assert "/dev/ttyUSB9" in result.errors[0]

    def test_output_not_creatable(self, tmp_path):
        transport = ScriptedTransport(responder=dump_responder(1))
        result = dump_spi_flash("SCRIPTED", tmp_path / "no" / "such" / "dir.bin", transport=transport)

        assert not result.ok
        assert result.error_code == WarningCode.W_FILE_ERROR
        assert transport.sent == []
        assert transport.closed


class TestRestoreSpiFlashAction:

    def test_calibration_only(self, tmp_path, spi_image, acking_transport):
        image_path = _write(tmp_path, "spi.bin", spi_image)

        result = restore_spi_flash(
            "SCRIPTED", image_path, calibration_only=True, transport=acking_transport
        )

        assert result.ok
        assert result.region == "calibration"
        assert result.bytes_len == 4096
        assert len(acking_transport.sent) == 32
        assert {frame[0] for frame in acking_transport.sent} == {0x48}
        assert any("Restart the radio" in w for w in result.warnings)

    def test_full_restore(self, tmp_path, spi_image, acking_transport):
        image_path = _write(tmp_path, "spi.bin", spi_image)

        result = restore_spi_flash("SCRIPTED", image_path, transport=acking_transport)

        assert result.ok
        assert result.region == "full"
        assert result.metadata["chunks"] == 31_360
        assert len(result.metadata["regions"]) == 9

    def test_size_mismatch_touches_nothing(self, tmp_path):
        image_path = _write(tmp_path, "spi.bin", bytes(SPI_FLASH_SIZE + 1))
        transport = ScriptedTransport()

        result = restore_spi_flash("SCRIPTED", image_path, transport=transport)

        assert not result.ok
        assert result.error_code == WarningCode.W_SIZE_MISMATCH
        assert "4,194,304" in result.errors[0]
        assert not transport.opened

    def test_rejection_reports_normal_mode(self, tmp_path, spi_image):
        image_path = _write(tmp_path, "spi.bin", spi_image)
        transport = ScriptedTransport(responder=lambda frame: NAK)

        result = restore_spi_flash("SCRIPTED", image_path, calibration_only=True, transport=transport)

        assert not result.ok
        assert result.error_code == WarningCode.W_NOT_NORMAL_MODE
        assert "normal mode" in result.errors[0]
        assert len(transport.sent) == 1


class TestReadImage:

    def test_exact_size(self, tmp_path):
        path = _write(tmp_path, "fw.bin", bytes(FIRMWARE_SIZE))
        assert len(read_firmware_image(path)) == FIRMWARE_SIZE

    def test_size_error_details(self, tmp_path):
        path = _write(tmp_path, "fw.bin", bytes(10))
        with pytest.raises(ImageSizeError) as excinfo:
            read_firmware_image(path)
        assert excinfo.value.expected == FIRMWARE_SIZE
        assert excinfo.value.actual == 10
        assert excinfo.value.path == path
