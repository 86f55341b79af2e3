import asyncio
import os
import stat
import zipfile
from pathlib import Path
from typing import Iterable, List, Set

from archivesign.logger import get_console
from archivesign.src.core.errors import PackagingError
from archivesign.src.utils.id_generator import IdentifierGenerator

DELIVERY_EXTENSION = ".zip"
COMPRESSION_LEVEL = 6
# Already compressed containers are stored as-is
STORED_SUFFIXES = (".ipa",)
SYMLINK_ATTR = (stat.S_IFLNK | 0o777) << 16


def _compression_for(name: str) -> int:
    if name.lower().endswith(STORED_SUFFIXES):
        return zipfile.ZIP_STORED
    return zipfile.ZIP_DEFLATED


def _write_symlink(zf: zipfile.ZipFile, source: Path, arcname: str) -> None:
    # Stored as a link, the target path is the entry data
    info = zipfile.ZipInfo(arcname)
    info.create_system = 3
    info.external_attr = SYMLINK_ATTR
    zf.writestr(info, os.readlink(source))


def _write_file(zf: zipfile.ZipFile, source: Path, arcname: str) -> None:
    zf.write(
        source,
        arcname,
        compress_type=_compression_for(arcname),
        compresslevel=COMPRESSION_LEVEL,
    )


def _add_to_zip(zf: zipfile.ZipFile, source: Path, arcname: str) -> None:
    if source.is_symlink():
        _write_symlink(zf, source, arcname)
        return
    if not source.is_dir():
        _write_file(zf, source, arcname)
        return

    zf.write(source, arcname)
    for dirpath, dirnames, filenames in os.walk(source):
        dirnames.sort()
        current = Path(dirpath)
        relative = Path(arcname) / current.relative_to(source)
        for name in list(dirnames):
            if (current / name).is_symlink():
                _write_symlink(zf, current / name, str(relative / name))
                dirnames.remove(name)
            else:
                zf.write(current / name, str(relative / name))
        for name in sorted(filenames):
            if (current / name).is_symlink():
                _write_symlink(zf, current / name, str(relative / name))
            else:
                _write_file(zf, current / name, str(relative / name))


def write_zip(zip_path: Path, base_dir: Path, items: Iterable[Path]) -> None:
    """Write ``items`` into ``zip_path``, each stored under its basename.

    Two items sharing a basename raise ``PackagingError``.
    """
    seen: Set[str] = set()
    try:
        with zipfile.ZipFile(zip_path, "w") as zf:
            for item in items:
                source = base_dir / item
                if not source.exists() and not source.is_symlink():
                    raise PackagingError(f"Missing item for delivery package: {source}")
                if source.name in seen:
                    raise PackagingError(
                        f"Duplicate item name in delivery package: {source.name}"
                    )
                seen.add(source.name)
                _add_to_zip(zf, source, source.name)
    except (OSError, zipfile.LargeZipFile) as e:
        zip_path.unlink(missing_ok=True)
        raise PackagingError(f"Unable to create delivery package: {e}") from e
    except PackagingError:
        zip_path.unlink(missing_ok=True)
        raise


def zip_directory_contents(directory: Path, zip_path: Path) -> None:
    """Zip everything inside ``directory`` (not the directory itself)"""
    items: List[Path] = sorted(p.relative_to(directory) for p in directory.iterdir())
    write_zip(zip_path, directory, items)


async def package_for_delivery(
    directory: Path, items: Iterable, id_generator: IdentifierGenerator
) -> Path:
    """Package signed artifacts into a new delivery zip inside ``directory``.

    Relative items are resolved against ``directory``; absolute paths are used
    as they are. Directories are added recursively.
    """
    directory = Path(directory)
    delivery_file = directory / f"{id_generator()}{DELIVERY_EXTENSION}"
    paths = [Path(item) for item in items]

    get_console().log(
        f"[yellow]Packaging {len(paths)} item(s) for delivery:[/] {delivery_file}"
    )
    await asyncio.to_thread(write_zip, delivery_file, directory, paths)
    return delivery_file
