"""
RT-890 Flasher CLI

rt890-flash -l
rt890-flash -p PORT -d FILE
rt890-flash -p PORT -f FILE
rt890-flash -p PORT -r [-c] FILE
"""

import sys
import logging
from pathlib import Path
from typing import Callable, List, Optional

import click
import typer
from typer.core import TyperCommand
from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.logging import RichHandler
from rich.progress import Progress, BarColumn, TextColumn

from rt890_flasher import __version__
from rt890_flasher.protocol import DEFAULT_TIMEOUT, FIRMWARE_SIZE, SPI_FLASH_SIZE, list_serial_ports
from rt890_flasher.core import (
    OperationResult,
    dump_spi_flash,
    flash_firmware,
    restore_spi_flash,
)
from rt890_flasher.core.messages import MessageLevel, WarningItem, result_to_warnings

# Setup logging
logging.basicConfig(
    level=logging.INFO,
    format="%(message)s",
    handlers=[RichHandler(rich_tracebacks=True)],
)
logger = logging.getLogger("rt890_flasher")

# Setup Rich console
console = Console()

BANNER = f"rt890-flash {__version__}\nFlashing and dumping tool for the Radtel RT-890."

USAGE = f"""
rt890-flash -l
rt890-flash -p PORT -d FILE
rt890-flash -p PORT -f FILE
rt890-flash -p PORT -r FILE
rt890-flash -p PORT -r -c FILE

-l
List available ports, e.g. /dev/ttyUSB0

-p PORT
Port to read from, or write to.

-d FILE
Read external SPI flash to file, e.g. spi_backup.bin
Radio MUST be in normal mode.

-f FILE
Write firmware file ({FIRMWARE_SIZE:,} bytes) to MCU flash, e.g. firmware.bin
Radio MUST be in bootloader mode and will automatically restart.

-r FILE
Restore SPI flash from a full dump ({SPI_FLASH_SIZE:,} bytes), e.g. spi_backup.bin
Radio MUST be in normal mode and must be restarted manually afterwards.

-c
Used with -r. Restore only the calibration data.
"""

app = typer.Typer(add_completion=False, help="Flashing and dumping tool for the Radtel RT-890.")


def print_header(text: str) -> None:
    """Print fancy header."""
    console.print(Panel(text, expand=False, style="bold blue"))


def print_success(text: str) -> None:
    """Print success message."""
    console.print(f"✓ {text}", style="green")


def print_warning(text: str) -> None:
    """Print warning message."""
    console.print(f"⚠️  {text}", style="yellow")


def print_error(text: str) -> None:
    """Print error message."""
    console.print(f"❌ {text}", style="red")


def print_usage() -> None:
    console.print(USAGE, markup=False, highlight=False)


def print_structured_warning(warning: WarningItem, verbose: bool = False) -> None:
    """Print a structured warning with optional remediation."""
    if warning.level == MessageLevel.ERROR:
        style = "red"
        icon = "❌"
    elif warning.level == MessageLevel.WARN:
        style = "yellow"
        icon = "⚠️"
    else:
        style = "blue"
        icon = "ℹ️"

    console.print(f"{icon} [{warning.code.value}] {warning.title}", style=style, markup=False)
    if verbose and warning.detail:
        console.print(f"   {warning.detail}", style="dim")
    if verbose and warning.remediation:
        console.print(f"   → {warning.remediation}", style="cyan")


def print_warnings_from_result(result: OperationResult, verbose: bool = False) -> None:
    """Print all warnings and errors from an OperationResult."""
    for warning in result_to_warnings(result):
        print_structured_warning(warning, verbose=verbose)


def show_ports() -> None:
    """List available serial ports."""
    ports_list = list_serial_ports()

    if not ports_list:
        print_warning("No serial ports found")
        return

    table = Table(title="Ports available")
    table.add_column("Port", style="cyan")
    table.add_column("Description", style="green")
    table.add_column("Hardware ID", style="magenta")

    for port in ports_list:
        table.add_row(port.device, port.description or "-", port.hwid or "-")

    console.print(table)


def run_with_progress(
    label: str,
    action: Callable[..., OperationResult],
    **kwargs,
) -> OperationResult:
    """Run a core action with a single in-place progress line."""
    with Progress(
        TextColumn("{task.description}"),
        BarColumn(),
        TextColumn("{task.percentage:>3.0f}%"),
        console=console,
    ) as progress:
        task = progress.add_task(label, total=None)

        def on_progress(address: int, done: int, total: int) -> None:
            progress.update(
                task,
                description=f"{label} 0x{address:06X}",
                completed=done,
                total=total,
            )

        return action(progress_cb=on_progress, **kwargs)


def report_result(result: OperationResult, success_text: str, verbose: bool) -> None:
    """Print the terminal line for a result; exit non-zero on failure."""
    if verbose:
        console.print(result.to_summary(), markup=False, highlight=False)

    if result.ok:
        print_success(success_text)
        print_warnings_from_result(result, verbose=verbose)
        return

    print_warnings_from_result(result, verbose=True)
    raise typer.Exit(1)


class UsageOnErrorCommand(TyperCommand):
    """Shows the usage text instead of click's error for malformed arguments."""

    def parse_args(self, ctx: click.Context, args: List[str]) -> List[str]:
        try:
            return super().parse_args(ctx, args)
        except click.UsageError:
            print_header(BANNER)
            print_usage()
            raise typer.Exit(0)


@app.command(
    cls=UsageOnErrorCommand,
    context_settings={
        "allow_extra_args": True,
        "ignore_unknown_options": True,
        "help_option_names": ["-h", "--help"],
    },
    options_metavar="[OPTIONS] [FILE]",
)
def main_command(
    ctx: typer.Context,
    list_ports: bool = typer.Option(False, "-l", "--list", help="List available serial ports"),
    port: Optional[str] = typer.Option(None, "-p", "--port", help="Serial port, e.g. /dev/ttyUSB0 or COM3"),
    dump: bool = typer.Option(False, "-d", "--dump", help="Dump SPI flash to FILE (normal mode)"),
    flash: bool = typer.Option(False, "-f", "--flash", help="Flash firmware FILE to MCU (bootloader mode)"),
    restore: bool = typer.Option(False, "-r", "--restore", help="Restore SPI flash from FILE (normal mode)"),
    calibration: bool = typer.Option(False, "-c", "--calibration", help="With -r, restore calibration data only"),
    timeout: float = typer.Option(DEFAULT_TIMEOUT, "--timeout", help="Serial timeout in seconds"),
    verbose: bool = typer.Option(False, "-v", "--verbose", help="Debug logging and remediation hints"),
) -> None:
    """Dump, restore or flash a Radtel RT-890 over its serial cable."""
    print_header(BANNER)
    logger.setLevel(logging.DEBUG if verbose else logging.INFO)

    operations = [selected for selected in (dump, flash, restore) if selected]

    if list_ports:
        if port or operations or calibration or ctx.args:
            print_usage()
            raise typer.Exit(0)
        show_ports()
        return

    if (
        not port
        or len(operations) != 1
        or (calibration and not restore)
        or len(ctx.args) != 1
        or ctx.args[0].startswith("-")
    ):
        print_usage()
        raise typer.Exit(0)

    path = Path(ctx.args[0])
    console.print(f"Port: {port}")
    console.print(f"File: {path}")

    if dump:
        result = run_with_progress(
            "Dumping SPI flash from address",
            dump_spi_flash,
            port=port,
            output_path=path,
            timeout=timeout,
        )
        report_result(result, "SPI flash dump complete", verbose)
    elif flash:
        result = run_with_progress(
            "Flashing firmware to address",
            flash_firmware,
            port=port,
            firmware_path=path,
            timeout=timeout,
        )
        report_result(result, "Firmware flash complete. Radio should now reboot.", verbose)
    else:
        result = run_with_progress(
            "Restoring SPI flash to address",
            restore_spi_flash,
            port=port,
            image_path=path,
            calibration_only=calibration,
            timeout=timeout,
        )
        report_result(result, "SPI flash restore complete", verbose)


def main() -> None:
    """Main entry point."""
    try:
        exit_code = app(standalone_mode=False)
    except click.UsageError:
        print_header(BANNER)
        print_usage()
        sys.exit(0)
    except (KeyboardInterrupt, click.exceptions.Abort):
        console.print("\n[yellow]Operation cancelled by user[/yellow]")
        sys.exit(1)
    except Exception as e:
        console.print(f"\n[red bold]Fatal error:[/red bold] {e}")
        sys.exit(1)
    sys.exit(exit_code or 0)


if __name__ == "__main__":
    main()
