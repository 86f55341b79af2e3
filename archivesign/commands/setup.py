import shutil
import tempfile
import toml
from pathlib import Path
from rich.panel import Panel
from rich.prompt import Prompt, Confirm
from rich import box

from archivesign.logger import get_console
from archivesign.src.utils.config_loader import TOOL_NAMES, get_config_path

console = get_console()


def ensure_directory_exists(directory_path: Path) -> bool:
    """Create directory if it doesn't exist."""
    if not directory_path.exists():
        directory_path.mkdir(parents=True, exist_ok=True)
        return False
    return True


def create_or_update_config(config_path: Path) -> bool:
    """Create or update the config file based on user input."""
    config_data = {}
    if config_path.exists():
        try:
            config_data = toml.load(config_path)
        except (toml.TomlDecodeError, OSError) as e:
            console.print(
                f"[yellow]Warning: Could not parse existing config: {e}[/yellow]"
            )
            if not Confirm.ask(
                "Would you like to create a new configuration?", default=True
            ):
                return False
            config_data = {}

    console.print(
        Panel(
            "Let's configure your ArchiveSign settings",
            style="bold green",
            box=box.ROUNDED,
        )
    )

    # Workspace section
    console.print("\n[bold blue]Workspace Configuration[/bold blue]")
    config_data.setdefault("workspace", {})
    workspace_root = Prompt.ask(
        "Directory for signing workspaces",
        default=config_data["workspace"].get("root", tempfile.gettempdir()),
    )
    config_data["workspace"]["root"] = workspace_root
    if ensure_directory_exists(Path(workspace_root).expanduser()):
        console.print(f"[green]Using existing directory: {workspace_root}[/green]")
    else:
        console.print(f"[green]Created directory: {workspace_root}[/green]")

    # Keychain section
    console.print("\n[bold blue]Keychain Configuration[/bold blue]")
    config_data.setdefault("keychain", {})
    account = Prompt.ask(
        "Keychain account for stored credentials (leave empty to skip)",
        default=config_data["keychain"].get("account", ""),
    )
    if account:
        config_data["keychain"]["account"] = account
    else:
        config_data["keychain"].pop("account", None)

    # Tools section - only ask when the user wants to override PATH lookup
    if Confirm.ask(
        "\n[bold yellow]Do you want to override the paths of the signing tools?[/bold yellow]",
        default=False,
    ):
        config_data.setdefault("tools", {})
        for name in TOOL_NAMES:
            config_data["tools"][name] = Prompt.ask(
                f"Path to {name}",
                default=config_data["tools"].get(name) or shutil.which(name) or name,
            )

    ensure_directory_exists(config_path.parent)
    with open(config_path, "w") as f:
        toml.dump(config_data, f)

    console.print(f"\n[green]Configuration saved to {config_path}[/green]")
    return True


def run_setup_command(args) -> int:
    """Entry point for the setup command from CLI"""
    config_path = args.config or get_config_path()
    try:
        return 0 if create_or_update_config(config_path) else 1
    except KeyboardInterrupt:
        console.print("\n[yellow]Setup cancelled[/yellow]")
        return 1
