import re
from dataclasses import dataclass
from pathlib import Path
from typing import AsyncIterator, Optional

from archivesign.logger import get_console
from archivesign.src.core.errors import ResolutionError, ToolInvocationError
from archivesign.src.core.process import ToolRunner

# One line of `security find-identity -v -p codesigning`, e.g.
#   1) 0123...CDEF "Apple Distribution: Example Org (ABCDE12345)"
# Revoked or expired entries carry a trailing CSSMERR_ marker and are skipped.
_IDENTITY_LINE = re.compile(
    r'^\s*\d+\)\s+(?P<fingerprint>[A-F0-9]{40})\s+"(?P<name>.+)"(?!.*CSSMERR_)'
)
_AUTHORITY_PREFIX = "Authority="


@dataclass(frozen=True)
class SigningIdentity:
    fingerprint: str
    name: str

    def __str__(self) -> str:
        return f'{self.fingerprint} "{self.name}"'


def parse_identities(text: str):
    """Yield every valid identity found in find-identity output"""
    for line in text.splitlines():
        match = _IDENTITY_LINE.match(line)
        if match:
            yield SigningIdentity(match.group("fingerprint"), match.group("name"))


def parse_authority(text: str) -> str:
    """Return the first signing authority from `codesign -d --verbose=4` output"""
    for line in text.splitlines():
        line = line.strip()
        if line.startswith(_AUTHORITY_PREFIX):
            return line[len(_AUTHORITY_PREFIX) :].strip()
    return ""


class IdentityResolver:
    """Finds the code-signing identity on this host that should sign a bundle.

    The host keychain is queried fresh on every call so identity changes take
    effect on the next resolution without restarting anything.
    """

    def __init__(self, runner: ToolRunner):
        self.runner = runner
        self.console = get_console()

    async def list_valid_identities(self) -> AsyncIterator[SigningIdentity]:
        try:
            result = await self.runner.run(
                "security", "find-identity", "-v", "-p", "codesigning", check=True
            )
        except ToolInvocationError as e:
            raise ResolutionError(f"Unable to list signing identities: {e}") from e

        for identity in parse_identities(result.stdout):
            yield identity

    async def resolve_identifier_for_value(self, value: str) -> Optional[str]:
        """Fingerprint of the first valid identity whose text contains ``value``"""
        if not value:
            return None

        async for identity in self.list_valid_identities():
            if value in str(identity):
                self.console.log(f"[green]Matched signing identity:[/] {identity.name}")
                return identity.fingerprint
        return None

    async def extract_signing_identifier(self, bundle_dir: Path) -> str:
        """Authority of the existing signature on ``bundle_dir/Payload/*.app``.

        Empty when the app is unsigned or missing; codesign reports the
        details on stderr, so both streams are searched.
        """
        apps = sorted(Path(bundle_dir).glob("Payload/*.app"))
        if not apps:
            return ""

        result = await self.runner.run(
            "codesign", "-d", "--verbose=4", str(apps[0]), cwd=str(bundle_dir)
        )
        return parse_authority(result.stdout + "\n" + result.stderr)
