import asyncio
import os
import shutil
from pathlib import Path
from typing import List, Sequence

from archivesign.logger import get_console
from archivesign.src.archive.extractor import unzip_into
from archivesign.src.archive.packager import zip_directory_contents
from archivesign.src.core.errors import ExtractionError, NoMatchingIdentity, PackagingError
from archivesign.src.core.identity_resolver import IdentityResolver
from archivesign.src.core.process import ToolRunner
from archivesign.src.signing.export_engine import SIGNED_DIR


class IpaResigner:
    """Re-signs ipa files one at a time with an identity found on this host"""

    def __init__(self, runner: ToolRunner, resolver: IdentityResolver):
        self.runner = runner
        self.resolver = resolver
        self.console = get_console()

    async def resign_one(self, ipa_path: Path, out_dir: Path, workspace: Path) -> str:
        """Re-sign ``ipa_path`` and leave the result in ``workspace``.

        Returns the file name of the re-signed ipa, which is the original one.
        """
        out_file_name = ipa_path.name

        # An ipa is a zip; unpack it to reach Payload/*.app
        out_dir.mkdir(parents=True, exist_ok=True)
        await asyncio.to_thread(unzip_into, ipa_path, out_dir)
        apps = sorted(out_dir.glob("Payload/*.app"))
        if not apps:
            raise ExtractionError(f"No application bundle found in {ipa_path.name}")

        cert_identifier = await self.resolver.extract_signing_identifier(out_dir)
        signing_identifier = await self.resolver.resolve_identifier_for_value(
            cert_identifier
        )
        if not signing_identifier:
            raise NoMatchingIdentity(
                f"No match to current signing identity for {out_file_name} "
                f"(signed by {cert_identifier or 'nobody'!r})"
            )

        for app in apps:
            shutil.rmtree(app / "_CodeSignature", ignore_errors=True)

        self.console.log(f"[yellow]Signing[/] {out_file_name} with {signing_identifier}")
        await self.runner.run(
            "codesign",
            "-f",
            "-s",
            signing_identifier,
            *(str(app.relative_to(out_dir)) for app in apps),
            cwd=str(out_dir),
            check=True,
        )

        packed = out_dir / out_file_name
        await asyncio.to_thread(zip_directory_contents, out_dir, packed)
        os.replace(packed, workspace / out_file_name)
        self.console.log(f"[green]Re-signed[/] {out_file_name}")
        return out_file_name

    async def resign_all(self, bundles: Sequence[Path], workspace: Path) -> List[str]:
        """Re-sign bundles strictly in order; the first failure aborts the run.

        Results share the workspace root, so two bundles with the same file
        name raise ``PackagingError`` before anything is signed.
        """
        names = [bundle.name for bundle in bundles]
        duplicates = sorted({name for name in names if names.count(name) > 1})
        if duplicates:
            raise PackagingError(f"Duplicate ipa name(s) in package: {', '.join(duplicates)}")

        items = []
        for index, bundle in enumerate(bundles):
            out_dir = workspace / SIGNED_DIR / str(index)
            items.append(await self.resign_one(bundle, out_dir, workspace))
        return items
