import asyncio
from pathlib import Path

from rich.markup import escape

from archivesign.logger import get_console
from archivesign.src.core.errors import ArchiveSignError
from archivesign.src.core.process import ToolRunner
from archivesign.src.core.sign_orchestrator import SignOrchestrator
from archivesign.src.utils.config_loader import Settings, load_settings


def verify_archive_exists(archive_path: Path, console) -> bool:
    """Verify the uploaded archive exists and return status."""
    if not archive_path.is_file():
        console.print(f"[red]Error:[/] Archive not found: {archive_path}")
        return False
    return True


def create_orchestrator(settings: Settings, verbose: bool = False) -> SignOrchestrator:
    runner = ToolRunner(tools=settings.tools, timeout=settings.timeout, verbose=verbose)
    return SignOrchestrator(settings.workspace_root, runner=runner)


def print_configuration_summary(console, args, settings: Settings, kind: str) -> None:
    console.print(f"\n[bold blue]Signing Configuration ({kind}):[/]")
    console.print(f"[cyan]Input archive:[/] {args.archive_path}")
    console.print(f"[cyan]Workspace root:[/] {args.workspace or settings.workspace_root}")
    for name, path in settings.tools.items():
        console.print(f"[cyan]{name}:[/] {path}")


def _run(args, kind: str) -> int:
    console = get_console()

    if not verify_archive_exists(args.archive_path, console):
        return 1

    try:
        settings = load_settings(args.config)
    except ArchiveSignError as e:
        console.print(f"[red]Error:[/] {escape(str(e))}")
        return 1

    print_configuration_summary(console, args, settings, kind)
    orchestrator = create_orchestrator(settings, verbose=args.verbose)

    if kind == "xcarchive":
        operation = orchestrator.sign_xcarchive(args.archive_path, args.workspace)
    else:
        operation = orchestrator.sign_ipa(args.archive_path, args.workspace)

    try:
        delivery_file = asyncio.run(operation)
    except ArchiveSignError as e:
        console.print(f"\n[red]Error during signing:[/] {escape(str(e))}")
        return 1

    console.print(f"\n[green]Delivery package:[/] {delivery_file}")
    return 0


def run_xcarchive_command(args) -> int:
    """Entry point for the xcarchive command from CLI"""
    return _run(args, "xcarchive")


def run_ipa_command(args) -> int:
    """Entry point for the ipa command from CLI"""
    return _run(args, "ipa")
