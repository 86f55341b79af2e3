import asyncio
import io
import inspect
import zipfile
from pathlib import Path

import pytest

from archivesign.src.core.errors import ToolInvocationError
from archivesign.src.core.process import ToolResult, ToolRunner
from archivesign.src.utils.id_generator import SequentialIdGenerator

DIST_FINGERPRINT = "0123456789ABCDEF0123456789ABCDEF01234567"
DEV_FINGERPRINT = "FEDCBA9876543210FEDCBA9876543210FEDCBA98"
DIST_NAME = "Apple Distribution: Example Org (ABCDE12345)"
DEV_NAME = "Apple Development: Jane Doe (ZYXWV98765)"

FIND_IDENTITY_OUTPUT = f"""  1) {DIST_FINGERPRINT} "{DIST_NAME}"
  2) {DEV_FINGERPRINT} "{DEV_NAME}"
     2 valid identities found
"""


class FakeRunner(ToolRunner):
    """ToolRunner double: each tool name maps to a handler(args, cwd)"""

    def __init__(self, handlers=None):
        super().__init__()
        self.handlers = dict(handlers or {})
        self.calls = []

    async def run(self, *cmd, cwd=None, check=False):
        command = [str(c) for c in cmd]
        self.calls.append((command, cwd))

        handler = self.handlers.get(command[0])
        if handler is None:
            raise ToolInvocationError(f"Unable to run {command[0]}", command=command)

        result = handler(command[1:], cwd)
        if inspect.isawaitable(result):
            result = await result
        if isinstance(result, str):
            result = ToolResult(command, 0, result, "")

        if check and not result.ok:
            raise ToolInvocationError(
                f"{command[0]} failed with status {result.returncode}",
                command=command,
                returncode=result.returncode,
                stdout=result.stdout,
                stderr=result.stderr,
            )
        return result

    def calls_to(self, tool):
        return [command for command, _ in self.calls if command[0] == tool]


def tool_result(stdout="", stderr="", returncode=0):
    return ToolResult([], returncode, stdout, stderr)


def make_zip(path: Path, files: dict) -> Path:
    """Write a zip whose members are ``files`` (name -> bytes or str)"""
    path.parent.mkdir(parents=True, exist_ok=True)
    with zipfile.ZipFile(path, "w") as zf:
        for name, content in files.items():
            zf.writestr(name, content)
    return path


def make_ipa_bytes(app_name="App", signed=True) -> bytes:
    """Minimal ipa: Payload/<app>.app with an executable and an old signature"""
    buffer = io.BytesIO()
    with zipfile.ZipFile(buffer, "w") as zf:
        zf.writestr(f"Payload/{app_name}.app/Info.plist", "<plist/>")
        zf.writestr(f"Payload/{app_name}.app/{app_name}", b"\xcf\xfa\xed\xfe")
        if signed:
            zf.writestr(
                f"Payload/{app_name}.app/_CodeSignature/CodeResources", "<plist/>"
            )
    return buffer.getvalue()


def zip_names(path: Path):
    with zipfile.ZipFile(path) as zf:
        return sorted(zf.namelist())


def run(coro):
    return asyncio.run(coro)


@pytest.fixture
def id_generator():
    return SequentialIdGenerator("run")


@pytest.fixture
def security_handler():
    def handler(args, cwd):
        assert args == ["find-identity", "-v", "-p", "codesigning"]
        return FIND_IDENTITY_OUTPUT

    return handler
