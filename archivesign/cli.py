import argparse
import sys
from pathlib import Path
from dotenv import load_dotenv
from rich.console import Console
from rich.panel import Panel
from rich.text import Text
from rich.theme import Theme
from rich_argparse import RichHelpFormatter
from archivesign.arguments import (
    add_common_arguments,
    add_keychain_arguments,
    add_signing_arguments,
)
from archivesign.src.constants.cli_constants import (
    __version__,
    get_banner_text,
    APP_DESCRIPTION,
)


class ArchiveSignHelpFormatter(RichHelpFormatter):
    """Custom formatter for the ArchiveSign CLI with rich styling."""

    def __init__(self, prog):
        super().__init__(prog, max_help_position=30, width=100)
        self.console = Console(
            theme=Theme(
                {
                    "command": "bold cyan",
                    "argument": "green",
                    "option": "yellow",
                    "version": "blue",
                    "title": "bold magenta",
                }
            )
        )

    def start_section(self, heading):
        heading_text = Text(heading, style="title")
        super().start_section(str(heading_text))


def display_banner():
    """Display a banner for ArchiveSign."""
    console = Console()
    banner = get_banner_text()

    version_info = Text(f"v{__version__}", style="blue")
    tagline = Text(APP_DESCRIPTION, style="italic")

    panel = Panel.fit(
        Text.assemble(banner, "\n", tagline, "\n", version_info),
        border_style="green",
        padding=(1, 2),
    )
    console.print(panel)


def create_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="archivesign",
        description=f"ArchiveSign: {APP_DESCRIPTION}",
        formatter_class=ArchiveSignHelpFormatter,
        add_help=True,
    )
    parser.add_argument(
        "--version", action="version", version=f"ArchiveSign {__version__}"
    )

    subparsers = parser.add_subparsers(dest="command")

    xcarchive_parser = subparsers.add_parser(
        "xcarchive",
        help="Export and sign the xcarchives in an uploaded zip",
        formatter_class=ArchiveSignHelpFormatter,
        description="Export every .xcarchive in the upload with its options.plist and package the results.",
    )
    add_signing_arguments(xcarchive_parser)

    ipa_parser = subparsers.add_parser(
        "ipa",
        help="Re-sign the ipa files in an uploaded zip",
        formatter_class=ArchiveSignHelpFormatter,
        description="Re-sign every .ipa in the upload with the matching identity on this host.",
    )
    add_signing_arguments(ipa_parser)

    identities_parser = subparsers.add_parser(
        "identities",
        help="List valid code-signing identities",
        formatter_class=ArchiveSignHelpFormatter,
    )
    add_common_arguments(identities_parser)

    keychain_parser = subparsers.add_parser(
        "keychain",
        help="Read credentials from the keychain",
        formatter_class=ArchiveSignHelpFormatter,
    )
    add_keychain_arguments(keychain_parser)

    setup_parser = subparsers.add_parser(
        "setup",
        help="Setup ArchiveSign configuration",
        formatter_class=ArchiveSignHelpFormatter,
        description="Interactive wizard to write ~/.archivesign/config.toml.",
    )
    setup_parser.add_argument(
        "--config",
        type=Path,
        help="Path of the config file to write [default: ~/.archivesign/config.toml]",
    )

    return parser


def main(argv=None):
    argv = sys.argv[1:] if argv is None else argv
    if not argv or "-h" in argv or "--help" in argv:
        display_banner()

    load_dotenv()
    parser = create_parser()
    args = parser.parse_args(argv)

    if args.command == "xcarchive":
        from archivesign.commands.sign import run_xcarchive_command

        return run_xcarchive_command(args)
    elif args.command == "ipa":
        from archivesign.commands.sign import run_ipa_command

        return run_ipa_command(args)
    elif args.command == "identities":
        from archivesign.commands.identities import run_identities_command

        return run_identities_command(args)
    elif args.command == "keychain":
        from archivesign.commands.keychain import run_keychain_command

        return run_keychain_command(args)
    elif args.command == "setup":
        from archivesign.commands.setup import run_setup_command

        return run_setup_command(args)
    else:
        parser.print_help()
        return 1


if __name__ == "__main__":
    sys.exit(main())
