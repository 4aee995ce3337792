"""
vadbatch.cli - Typer CLI entry point.

Provides the run, scan and doctor subcommands.
"""

from __future__ import annotations

from pathlib import Path

import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from vadbatch import __version__
from vadbatch.exceptions import VadBatchError
from vadbatch.io import display_text
from vadbatch.logging import configure_logging

app = typer.Typer(
    name="vadbatch",
    help="Recursively extract speech from WAV files using external VAD APIs.\n\n"
    "Validates each file's header, then spreads jobs round-robin across the "
    "configured endpoints, mirroring the input tree under the output directory.",
    add_completion=False,
)
console = Console()
err_console = Console(stderr=True)


def version_callback(value: bool) -> None:
    if value:
        console.print(f"vadbatch {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool = typer.Option(
        False,
        "--version",
        "-v",
        help="Show version and exit",
        callback=version_callback,
        is_eager=True,
    ),
) -> None:
    """vadbatch - batch dispatcher for remote VAD services."""
    pass


@app.command("run")
def run_dispatch(
    input_dir: Path = typer.Argument(
        ..., help="Input directory containing WAV files (processed recursively)"
    ),
    output_dir: Path = typer.Argument(..., help="Output directory for speech files"),
    addr_api: list[str] = typer.Option(
        [],
        "--addr-api",
        "-a",
        help="Comma-separated list of API server addresses (repeatable)",
    ),
    model: str | None = typer.Option(None, "--model", "-m", help="Model to use for VAD"),
    config_file: Path | None = typer.Option(
        None, "--config", "-c", help="YAML file with defaults for any option"
    ),
    workers: int | None = typer.Option(
        None, "--workers", "-w", help="Parallel workers (default: one per endpoint)"
    ),
    timeout: float | None = typer.Option(
        None, "--timeout", help="Per-request timeout in seconds (default: 600)"
    ),
    extension: str | None = typer.Option(
        None, "--extension", "-e", help="Input file extension (default: wav)"
    ),
    dry_run: bool = typer.Option(
        False, "--dry-run", help="Validate and check markers without sending jobs"
    ),
    report: Path | None = typer.Option(None, "--report", help="Write a JSON run report"),
    verbose: bool = typer.Option(False, "--verbose", help="Enable debug logging"),
) -> None:
    """Dispatch every valid WAV file under INPUT_DIR to the VAD endpoints.

    Files whose output marker already exists are skipped, so an interrupted
    run can simply be started again.
    """
    configure_logging(verbose)

    from vadbatch.config import build_config
    from vadbatch.dispatch import dispatch

    try:
        config = build_config(
            config_file,
            input_dir=input_dir,
            output_dir=output_dir,
            endpoints=addr_api,
            model=model,
            workers=workers,
            timeout=timeout,
            extension=extension,
        )
        result = dispatch(config, dry_run=dry_run)
    except VadBatchError as e:
        err_console.print(f"[red]Error: {escape(display_text(str(e)))}[/red]", highlight=False)
        raise typer.Exit(1)

    if dry_run:
        from vadbatch.dispatch import FileOutcome

        pending = result.count(FileOutcome.WOULD_DISPATCH)
        console.print(f"[dim]Dry run: {pending} file(s) would be dispatched[/dim]")

    console.print(result.summary(), highlight=False)

    # Summary comes first; report problems never change the exit code
    if report:
        from vadbatch.io import write_json

        try:
            write_json(report, result.to_dict())
        except (OSError, ValueError) as e:
            err_console.print(
                f"[yellow]Warning: Could not write report {escape(display_text(report))}: "
                f"{escape(display_text(str(e)))}[/yellow]",
                highlight=False,
            )


@app.command("scan")
def scan_inputs(
    input_dir: Path = typer.Argument(..., help="Input directory to scan recursively"),
    extension: str = typer.Option("wav", "--extension", "-e", help="Input file extension"),
) -> None:
    """List candidate files and whether their headers are acceptable.

    Reads headers only; nothing is sent and no output is written.
    """
    from vadbatch.config import AudioRequirements
    from vadbatch.discovery import discover_files
    from vadbatch.exceptions import OpenError
    from vadbatch.validation import read_audio_format, resolve_input_dir

    try:
        root = resolve_input_dir(input_dir)
    except VadBatchError as e:
        err_console.print(f"[red]Error: {escape(display_text(str(e)))}[/red]", highlight=False)
        raise typer.Exit(1)

    requirements = AudioRequirements()
    files = discover_files(root, extension)

    table = Table(title=f"Candidates in {display_text(root)}")
    table.add_column("File", style="cyan")
    table.add_column("Format", style="green")
    table.add_column("Status", style="yellow")

    accepted = rejected = unreadable = 0
    for path in files:
        name = display_text(path.relative_to(root))
        try:
            fmt = read_audio_format(path)
        except OpenError:
            table.add_row(name, "-", "[red]Unreadable[/red]")
            unreadable += 1
            continue

        if fmt.matches(requirements):
            table.add_row(name, fmt.describe(), "[green]✓ OK[/green]")
            accepted += 1
        else:
            table.add_row(name, fmt.describe(), "[dim]Rejected[/dim]")
            rejected += 1

    if files:
        console.print(table)
    console.print(
        f"{len(files)} candidate(s): {accepted} accepted, "
        f"{rejected} rejected, {unreadable} unreadable",
        highlight=False,
    )


@app.command("doctor")
def run_doctor(
    addr_api: list[str] = typer.Option(
        [],
        "--addr-api",
        "-a",
        help="Comma-separated list of API server addresses (repeatable)",
    ),
    timeout: float = typer.Option(5.0, "--timeout", help="Connection timeout in seconds"),
) -> None:
    """Check that every VAD endpoint is reachable."""
    from vadbatch.client import check_endpoint
    from vadbatch.config import parse_endpoints

    endpoints = parse_endpoints(addr_api)
    if not endpoints:
        err_console.print(
            "[red]Error: At least one API address must be provided via --addr-api[/red]"
        )
        raise typer.Exit(1)

    console.print("[cyan]Checking endpoints...[/cyan]\n")

    table = Table(title="Endpoint Status")
    table.add_column("Endpoint", style="cyan")
    table.add_column("Status", style="green")
    table.add_column("Details")

    all_passed = True
    for address in endpoints:
        check = check_endpoint(address, timeout=timeout)
        if check["reachable"]:
            table.add_row(address, "✓ Reachable", f"HTTP {check['status']}")
        else:
            table.add_row(address, "✗ Unreachable", check["error"] or "")
            all_passed = False

    console.print(table)

    if all_passed:
        console.print("\n[green]✓ All endpoints reachable[/green]")
    else:
        console.print("\n[yellow]⚠ Some endpoints are unreachable[/yellow]")
        raise typer.Exit(1)


if __name__ == "__main__":
    app()
