import asyncio

from rich.markup import escape
from rich.table import Table

from archivesign.logger import get_console
from archivesign.src.core.errors import ArchiveSignError
from archivesign.src.core.identity_resolver import IdentityResolver
from archivesign.src.core.process import ToolRunner
from archivesign.src.utils.config_loader import load_settings


async def collect_identities(resolver: IdentityResolver) -> list:
    return [identity async for identity in resolver.list_valid_identities()]


def run_identities_command(args) -> int:
    """List the code-signing identities currently valid on this host"""
    console = get_console()
    try:
        settings = load_settings(args.config)
        runner = ToolRunner(tools=settings.tools, timeout=settings.timeout, verbose=args.verbose)
        identities = asyncio.run(collect_identities(IdentityResolver(runner)))
    except ArchiveSignError as e:
        console.print(f"[red]Error:[/] {escape(str(e))}")
        return 1

    if not identities:
        console.print("[yellow]No valid code-signing identities found[/]")
        return 1

    table = Table(title="Valid code-signing identities")
    table.add_column("#")
    table.add_column("Fingerprint", no_wrap=True)
    table.add_column("Name")
    for index, identity in enumerate(identities, start=1):
        table.add_row(str(index), identity.fingerprint, escape(identity.name))

    console.print(table)
    return 0
