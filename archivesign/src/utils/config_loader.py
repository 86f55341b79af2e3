import os
import tempfile
from dataclasses import dataclass, field
from pathlib import Path
import toml
from typing import Dict, Any, Optional

from archivesign.src.core.errors import ConfigError

TOOL_NAMES = ("security", "codesign", "xcodebuild")


def get_config_path() -> Path:
    """Return the path to the configuration file."""
    env_path = os.environ.get("ARCHIVESIGN_CONFIG")
    if env_path:
        return Path(env_path)
    return Path.home() / ".archivesign" / "config.toml"


def load_config(config_path: Optional[Path] = None) -> Dict[str, Any]:
    """Load configuration from TOML file."""
    config_path = config_path or get_config_path()
    if not config_path.exists():
        return {}

    try:
        return toml.load(config_path)
    except (toml.TomlDecodeError, OSError) as e:
        raise ConfigError(f"Failed to load config {config_path}: {e}")


@dataclass
class Settings:
    workspace_root: Path
    keychain_account: Optional[str] = None
    tools: Dict[str, str] = field(default_factory=dict)
    timeout: Optional[float] = None


def get_workspace_root(config: Dict[str, Any]) -> Path:
    """Workspace root from environment, then config, then the temp dir."""
    env_root = os.environ.get("ARCHIVESIGN_WORKSPACE")
    if env_root:
        return Path(env_root)

    root = config.get("workspace", {}).get("root")
    if root:
        return Path(root).expanduser()

    return Path(tempfile.gettempdir())


def load_settings(config_path: Optional[Path] = None) -> Settings:
    """Collect the effective settings from config file and environment."""
    config = load_config(config_path)

    tools_config = config.get("tools", {})
    tools = {name: tools_config[name] for name in TOOL_NAMES if tools_config.get(name)}

    timeout = tools_config.get("timeout")
    if timeout is not None:
        try:
            timeout = float(timeout)
        except (TypeError, ValueError):
            raise ConfigError(f"Invalid tool timeout in config: {timeout!r}")

    account = os.environ.get("ARCHIVESIGN_KEYCHAIN_ACCOUNT") or config.get(
        "keychain", {}
    ).get("account")

    return Settings(
        workspace_root=get_workspace_root(config),
        keychain_account=account,
        tools=tools,
        timeout=timeout,
    )
