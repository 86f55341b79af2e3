import os
from enum import Enum
from pathlib import Path
from typing import List

from archivesign.src.core.errors import LocatorError

# Resource-fork shadow directory written by the macOS archiver
MACOS_METADATA_DIR = "__MACOSX"


class BundleKind(Enum):
    XCARCHIVE = ".xcarchive"
    IPA = ".ipa"

    @property
    def is_directory(self) -> bool:
        return self is BundleKind.XCARCHIVE


def _is_metadata_shadow(path: Path) -> bool:
    return MACOS_METADATA_DIR in path.parts


def find_bundles(workspace_dir: Path, kind: BundleKind) -> List[Path]:
    """Recursively find bundles of ``kind`` below ``workspace_dir``.

    Matching is a case-insensitive suffix check: ``.xcarchive`` matches
    directories, ``.ipa`` matches files. An empty list is a valid result.
    """

    def on_error(error: OSError):
        raise LocatorError(f"Unable to search {workspace_dir}: {error}") from error

    root = Path(workspace_dir).resolve()
    if not root.is_dir():
        raise LocatorError(f"Workspace does not exist: {root}")

    suffix = kind.value
    found = []
    for dirpath, dirnames, filenames in os.walk(root, onerror=on_error):
        dirnames.sort()
        current = Path(dirpath)

        if kind.is_directory:
            for name in list(dirnames):
                if name.lower().endswith(suffix):
                    found.append(current / name)
                    # The archive's own contents are never bundles themselves
                    dirnames.remove(name)
        else:
            for name in sorted(filenames):
                if name.lower().endswith(suffix):
                    found.append(current / name)

    return [path for path in found if not _is_metadata_shadow(path)]
