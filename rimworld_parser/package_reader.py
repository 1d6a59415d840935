"""Source reader for RimWorld installations, def folders, and zip files."""
import logging
import os
import shutil
import tempfile
import zipfile
from dataclasses import dataclass
from typing import List, Optional

from rimworld_parser.domain.models import SourceFile

logger = logging.getLogger(__name__)


class PackageReadError(Exception):
    """Error reading package."""
    pass


@dataclass
class PackageContents:
    """Package contents."""
    files: List[SourceFile]
    package_name: str
    total_files: int
    game_version: str
    temp_dir: Optional[str] = None


class PackageReader:
    """Collects the XML def files under a RimWorld install, folder, or zip.

    When the given directory has a ``Data`` folder (a game install), only
    that folder is scanned. Source paths are relative, POSIX-style, and
    sorted so downstream aggregation is deterministic.
    """

    def __init__(self):
        self.skip_folders = {'.git', '__MACOSX', 'Textures', 'Sounds', 'Languages'}

    def read(self, path: str) -> PackageContents:
        """Read package contents."""
        if not os.path.exists(path):
            raise PackageReadError(f"Path does not exist: {path}")

        temp_dir = None
        try:
            root = path
            if os.path.isfile(path):
                temp_dir = tempfile.mkdtemp()
                with zipfile.ZipFile(path, 'r') as zip_file:
                    zip_file.extractall(temp_dir)
                root = temp_dir

            scan_root = os.path.join(root, 'Data')
            if not os.path.isdir(scan_root):
                scan_root = root

            files = []
            total_files = 0
            for current, dirs, names in os.walk(scan_root):
                dirs[:] = sorted(d for d in dirs if d not in self.skip_folders)
                for name in names:
                    total_files += 1
                    if not name.lower().endswith('.xml'):
                        continue
                    full_path = os.path.join(current, name)
                    rel_path = os.path.relpath(full_path, scan_root).replace(os.sep, '/')
                    with open(full_path, 'rb') as f:
                        files.append(SourceFile(rel_path, f.read()))

            files.sort(key=lambda f: f.path)
            logger.info("Found %d XML files (%d files total) under %s", len(files), total_files, scan_root)
            return PackageContents(
                files=files,
                package_name=os.path.basename(os.path.normpath(path)),
                total_files=total_files,
                game_version=self._read_version(root),
                temp_dir=temp_dir,
            )
        except (OSError, zipfile.BadZipFile) as e:
            self.cleanup(temp_dir)
            raise PackageReadError(f"Failed to read package: {e}")

    def cleanup(self, temp_dir: Optional[str]):
        """Clean up temporary directory."""
        if temp_dir and os.path.exists(temp_dir):
            shutil.rmtree(temp_dir)

    @staticmethod
    def _read_version(root: str) -> str:
        version_path = os.path.join(root, 'Version.txt')
        try:
            with open(version_path, 'r', encoding='utf-8') as f:
                return f.read().strip() or 'Unknown'
        except OSError:
            return 'Unknown'
