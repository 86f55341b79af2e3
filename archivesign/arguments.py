from pathlib import Path


def add_common_arguments(parser):
    """Add arguments shared by every subcommand."""
    parser.add_argument(
        "--config",
        type=Path,
        help="Path to config.toml [default: ~/.archivesign/config.toml]",
    )
    parser.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Log every tool invocation and its raw output [default: disabled]",
    )


def add_signing_arguments(parser):
    """Add all signing-related arguments to an existing parser."""
    parser.add_argument(
        "archive_path", type=Path, help="Path to the uploaded archive (zip) to sign"
    )

    parser.add_argument(
        "--workspace",
        type=Path,
        help="Directory in which the run's workspace is created [default: config or system temp dir]",
    )
    add_common_arguments(parser)


def add_keychain_arguments(parser):
    """Add arguments for fetching credentials from the keychain."""
    parser.add_argument(
        "names", nargs="+", help="Service names of the generic passwords to read"
    )
    parser.add_argument(
        "--account",
        "-a",
        help="Keychain account the items are registered with [default: from config]",
    )
    parser.add_argument(
        "--reveal",
        action="store_true",
        help="Print the secret values instead of masking them [default: disabled]",
    )
    add_common_arguments(parser)
