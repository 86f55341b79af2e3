from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import List, Optional

from rich.markup import escape

from archivesign.logger import get_console
from archivesign.src.archive.extractor import extract_archive
from archivesign.src.archive.locator import BundleKind, find_bundles
from archivesign.src.archive.packager import package_for_delivery
from archivesign.src.core.errors import ArchiveSignError, NoBundlesFound, SigningFailed
from archivesign.src.core.identity_resolver import IdentityResolver
from archivesign.src.core.process import ToolRunner
from archivesign.src.signing.export_engine import SIGNED_DIR, XcarchiveExporter
from archivesign.src.signing.resign_engine import IpaResigner
from archivesign.src.utils.id_generator import IdentifierGenerator, ShortIdGenerator


class PipelineState(Enum):
    START = "start"
    EXTRACTED = "extracted"
    LOCATED = "located"
    PROCESSED = "processed"
    PACKAGED = "packaged"
    FAILED = "failed"


@dataclass
class PipelineRun:
    """State of a single ``sign_*`` call"""

    kind: BundleKind
    archive_path: Path
    state: PipelineState = PipelineState.START


class SignOrchestrator:
    """Runs the extract, locate, sign and package pipeline for one upload.

    ``sign_xcarchive`` hides the cause of a failure behind ``SigningFailed``
    (the cause is logged), while ``sign_ipa`` lets the original error
    propagate to the caller.

    Each call gets its own ``PipelineRun``, so concurrent calls on one
    instance do not share state. Runs are kept in ``runs`` in call order.
    """

    def __init__(
        self,
        workspace_root: Path,
        runner: Optional[ToolRunner] = None,
        id_generator: Optional[IdentifierGenerator] = None,
    ):
        self.console = get_console()
        self.workspace_root = Path(workspace_root)
        self.runner = runner or ToolRunner()
        self.id_generator = id_generator or ShortIdGenerator()
        self.resolver = IdentityResolver(self.runner)
        self.exporter = XcarchiveExporter(self.runner)
        self.resigner = IpaResigner(self.runner, self.resolver)
        self.runs: List[PipelineRun] = []

    def _start(self, kind: BundleKind, archive_path: Path) -> PipelineRun:
        pipeline = PipelineRun(kind, Path(archive_path))
        self.runs.append(pipeline)
        return pipeline

    def _transition(self, pipeline: PipelineRun, state: PipelineState) -> None:
        pipeline.state = state
        colour = "red" if state is PipelineState.FAILED else "blue"
        self.console.log(
            f"[{colour}]Pipeline {state.value}[/] ({escape(pipeline.archive_path.name)})"
        )

    def _locate(self, pipeline: PipelineRun, workspace: Path):
        kind = pipeline.kind
        bundles = find_bundles(workspace, kind)
        if not bundles:
            raise NoBundlesFound(f"Unable to find {kind.value} bundle(s) in package")
        self.console.log(f"[cyan]Found {len(bundles)} {kind.value} bundle(s)[/]")
        self._transition(pipeline, PipelineState.LOCATED)
        return bundles

    async def sign_xcarchive(
        self, archive_path: Path, workspace: Optional[Path] = None
    ) -> Path:
        """Export every xcarchive in the upload and package the results"""
        pipeline = self._start(BundleKind.XCARCHIVE, archive_path)
        try:
            apath = await extract_archive(
                archive_path, workspace or self.workspace_root, self.id_generator
            )
            self._transition(pipeline, PipelineState.EXTRACTED)

            bundles = self._locate(pipeline, apath)

            results = await self.exporter.export_all(bundles, apath)
            self._transition(pipeline, PipelineState.PROCESSED)

            signed_dir = apath / SIGNED_DIR
            signed_dir.mkdir(parents=True, exist_ok=True)
            delivery_file = await package_for_delivery(
                signed_dir, [r.artifact for r in results], self.id_generator
            )
            self._transition(pipeline, PipelineState.PACKAGED)
            return delivery_file
        except Exception as e:
            # Any stage error, ours or not, reaches the caller as SigningFailed
            self.console.log(f"[red]{escape(type(e).__name__)}: {escape(str(e))}[/]")
            self._transition(pipeline, PipelineState.FAILED)
            raise SigningFailed("Unable to sign xcarchive package") from None

    async def sign_ipa(self, archive_path: Path, workspace: Optional[Path] = None) -> Path:
        """Re-sign every ipa in the upload and package the results"""
        pipeline = self._start(BundleKind.IPA, archive_path)
        try:
            apath = await extract_archive(
                archive_path, workspace or self.workspace_root, self.id_generator
            )
            self._transition(pipeline, PipelineState.EXTRACTED)

            bundles = self._locate(pipeline, apath)

            items = await self.resigner.resign_all(bundles, apath)
            self._transition(pipeline, PipelineState.PROCESSED)

            delivery_file = await package_for_delivery(apath, items, self.id_generator)
            self._transition(pipeline, PipelineState.PACKAGED)
            return delivery_file
        except ArchiveSignError:
            self._transition(pipeline, PipelineState.FAILED)
            raise
