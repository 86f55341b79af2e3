import asyncio
import os
import stat
import zipfile
from pathlib import Path

from archivesign.logger import get_console
from archivesign.src.core.errors import ExtractionError
from archivesign.src.utils.id_generator import IdentifierGenerator


def _member_mode(info: zipfile.ZipInfo) -> int:
    return (info.external_attr >> 16) & 0xFFFF


def unzip_into(archive_path: Path, target_dir: Path) -> None:
    """Extract a zip archive into ``target_dir`` keeping unix modes and symlinks"""
    target = target_dir.resolve()
    try:
        with zipfile.ZipFile(archive_path) as zf:
            for info in zf.infolist():
                destination = (target / info.filename).resolve()
                if destination != target and target not in destination.parents:
                    raise ExtractionError(
                        f"Refusing to extract {info.filename} outside of {target}"
                    )

                mode = _member_mode(info)
                if stat.S_ISLNK(mode):
                    destination.parent.mkdir(parents=True, exist_ok=True)
                    os.symlink(zf.read(info).decode("utf-8"), target / info.filename)
                    continue

                extracted = zf.extract(info, target)
                if mode and not info.is_dir():
                    os.chmod(extracted, stat.S_IMODE(mode))
    except (OSError, zipfile.BadZipFile) as e:
        raise ExtractionError(f"Unable to extract {archive_path}: {e}") from e


async def extract_archive(
    archive_path: Path, workspace_root: Path, id_generator: IdentifierGenerator
) -> Path:
    """Unpack an uploaded archive into a new, uniquely named workspace"""
    workspace = Path(workspace_root) / id_generator()
    try:
        workspace.mkdir(parents=True, exist_ok=False)
    except OSError as e:
        raise ExtractionError(f"Unable to create workspace {workspace}: {e}") from e

    get_console().log(f"[yellow]Extracting[/] {archive_path} -> {workspace}")
    await asyncio.to_thread(unzip_into, Path(archive_path), workspace)
    return workspace
