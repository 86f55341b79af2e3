import asyncio

from rich.markup import escape
from rich.table import Table

from archivesign.logger import get_console
from archivesign.src.core.errors import ArchiveSignError
from archivesign.src.core.keychain import fetch_keychain_values
from archivesign.src.core.process import ToolRunner
from archivesign.src.utils.config_loader import load_settings


def mask(value: str) -> str:
    return "********" if value else ""


def run_keychain_command(args) -> int:
    """Read generic passwords from the login keychain"""
    console = get_console()
    try:
        settings = load_settings(args.config)
    except ArchiveSignError as e:
        console.print(f"[red]Error:[/] {escape(str(e))}")
        return 1

    account = args.account or settings.keychain_account
    if not account:
        console.print(
            "[red]Error:[/] No keychain account given. Pass --account or set "
            "[keychain] account in the config file."
        )
        return 1

    runner = ToolRunner(tools=settings.tools, timeout=settings.timeout, verbose=args.verbose)
    try:
        values = asyncio.run(fetch_keychain_values(runner, args.names, account))
    except ArchiveSignError as e:
        console.print(f"[red]Error:[/] {escape(str(e))}")
        return 1

    table = Table(title=f"Keychain items for {escape(account)}")
    table.add_column("Name")
    table.add_column("Value")
    for name, value in values.items():
        table.add_row(escape(name), escape(value) if args.reveal else mask(value))

    console.print(table)
    return 0
