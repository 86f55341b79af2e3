import asyncio
import shlex
from dataclasses import dataclass
from typing import Mapping, Optional

from rich.markup import escape

from archivesign.logger import get_console
from archivesign.src.core.errors import ToolInvocationError


@dataclass
class ToolResult:
    """Captured outcome of one external tool run"""

    command: list
    returncode: int
    stdout: str
    stderr: str

    @property
    def ok(self) -> bool:
        return self.returncode == 0


class ToolRunner:
    """Runs external tools as asyncio subprocesses.

    Tool names can be remapped (for example to an absolute ``xcodebuild``
    path from the config file). A tool that cannot be spawned always raises
    ``ToolInvocationError``; a non-zero exit only raises when ``check`` is set.
    """

    def __init__(
        self,
        tools: Optional[Mapping[str, str]] = None,
        timeout: Optional[float] = None,
        verbose: bool = False,
    ):
        self.tools = dict(tools or {})
        self.timeout = timeout
        self.verbose = verbose
        self.console = get_console()

    async def run(
        self, *cmd: str, cwd: Optional[str] = None, check: bool = False
    ) -> ToolResult:
        command = [self.tools.get(cmd[0], cmd[0]), *(str(c) for c in cmd[1:])]
        if self.verbose:
            self.console.log(f"[cyan]Running:[/] {shlex.join(command)}")

        try:
            process = await asyncio.create_subprocess_exec(
                *command,
                cwd=cwd,
                stdin=asyncio.subprocess.DEVNULL,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except OSError as e:
            raise ToolInvocationError(
                f"Unable to run {command[0]}: {e}", command=command
            ) from e

        try:
            stdout, stderr = await asyncio.wait_for(
                process.communicate(), timeout=self.timeout
            )
        except asyncio.TimeoutError as e:
            process.kill()
            await process.wait()
            raise ToolInvocationError(
                f"{command[0]} did not finish within {self.timeout}s", command=command
            ) from e

        result = ToolResult(
            command=command,
            returncode=process.returncode,
            stdout=stdout.decode(errors="ignore"),
            stderr=stderr.decode(errors="ignore"),
        )

        if self.verbose and (result.stdout or result.stderr):
            self.console.log(
                f"[dim]stdout:[/]\n{escape(result.stdout)}\n"
                f"[dim]stderr:[/]\n{escape(result.stderr)}"
            )

        if check and not result.ok:
            raise ToolInvocationError(
                f"{command[0]} failed with status {result.returncode}\n"
                f"Command: {shlex.join(command)}\n"
                f"Stdout: {result.stdout}\nStderr: {result.stderr}",
                command=command,
                returncode=result.returncode,
                stdout=result.stdout,
                stderr=result.stderr,
            )
        return result
