import asyncio
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, Sequence

from rich.markup import escape

from archivesign.logger import get_console
from archivesign.src.core.errors import UnexpectedToolOutput
from archivesign.src.core.process import ToolResult, ToolRunner

SIGNED_DIR = "signed"
EXPORT_OPTIONS_FILE = "options.plist"

# Literal contract with `xcodebuild -exportArchive` output. A successful
# report contains this marker and its first line reads
# "Exported <Name> to: <path>", four whitespace separated tokens.
EXPORT_SUCCEEDED_MARKER = "EXPORT SUCCEEDED"
EXPORT_REPORT_TOKENS = 4


@dataclass
class ExportResult:
    bundle: Path
    succeeded: bool
    artifact: Optional[Path] = None
    output: str = ""


def parse_export_output(bundle: Path, output: str) -> ExportResult:
    """Interpret one export report; raises on a malformed success report"""
    if EXPORT_SUCCEEDED_MARKER not in output:
        return ExportResult(bundle=bundle, succeeded=False, output=output)

    first_line = output.strip().split("\n")[0]
    components = first_line.split()
    if len(components) != EXPORT_REPORT_TOKENS:
        raise UnexpectedToolOutput(
            f"Unexpected response from archive export of {bundle.name}: {first_line!r}"
        )
    return ExportResult(
        bundle=bundle, succeeded=True, artifact=Path(components[-1]), output=output
    )


def export_dir_name(bundle: Path) -> str:
    """Output directory name for a bundle: its basename up to the first dot"""
    return bundle.name.split(".")[0]


class XcarchiveExporter:
    """Exports every located xcarchive concurrently with xcodebuild"""

    def __init__(self, runner: ToolRunner):
        self.runner = runner
        self.console = get_console()

    async def export_one(self, bundle: Path, workspace: Path) -> ToolResult:
        export_path = workspace / SIGNED_DIR / export_dir_name(bundle)
        self.console.log(f"[yellow]Exporting[/] {bundle.name} -> {export_path}")
        return await self.runner.run(
            "xcodebuild",
            "-exportArchive",
            "-archivePath",
            str(bundle),
            "-exportPath",
            str(export_path),
            "-exportOptionsPlist",
            str(workspace / EXPORT_OPTIONS_FILE),
            check=True,
        )

    async def export_all(
        self, bundles: Sequence[Path], workspace: Path
    ) -> List[ExportResult]:
        """Run all exports and wait for every one of them.

        Reports without the success marker are dropped from the result. A
        spawn failure, a non-zero exit or a malformed success report fails
        the whole batch.
        """
        outputs = await asyncio.gather(
            *(self.export_one(bundle, workspace) for bundle in bundles)
        )

        results = []
        for bundle, output in zip(bundles, outputs):
            result = parse_export_output(bundle, output.stdout)
            if result.succeeded:
                self.console.log(f"[green]Exported[/] {bundle.name}: {result.artifact}")
                results.append(result)
            else:
                self.console.log(f"[red]Export did not succeed for[/] {bundle.name}")
                if self.runner.verbose:
                    self.console.log(escape(output.stderr or output.stdout))
        return results
