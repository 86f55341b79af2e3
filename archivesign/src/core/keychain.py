from typing import Dict, Iterable

from archivesign.src.core.errors import KeychainError, ToolInvocationError
from archivesign.src.core.process import ToolRunner


async def fetch_keychain_values(
    runner: ToolRunner, names: Iterable[str], account: str
) -> Dict[str, str]:
    """Fetch generic password values for ``names`` stored under ``account``.

    Lookups run one after another; the first missing item aborts the whole
    fetch.
    """
    values = {}
    try:
        for name in names:
            result = await runner.run(
                "security",
                "find-generic-password",
                "-w",
                "-s",
                name,
                "-a",
                account,
                check=True,
            )
            values[name] = result.stdout.strip().split("\n")[0]
    except ToolInvocationError as e:
        raise KeychainError(f"Unable to find the keychain! {e}") from e

    return values
