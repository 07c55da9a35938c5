"""Bounded recursive discovery of documents in a folder tree"""
import logging
import os
from datetime import datetime
from pathlib import Path
from typing import List, Optional, Sequence, Union

from .config import SCAN_EXTENSION, SCAN_MAX_DEPTH, SCAN_MAX_FILES, SKIP_DIRS, SKIP_PREFIXES
from .models import FileDescriptor

logger = logging.getLogger(__name__)


class FolderScanner:
    """Depth-first scan with a depth limit, a result cap and a directory denylist"""

    def __init__(self,
                 extension: str = SCAN_EXTENSION,
                 max_depth: int = SCAN_MAX_DEPTH,
                 skip_dirs: Sequence[str] = SKIP_DIRS,
                 skip_prefixes: Sequence[str] = SKIP_PREFIXES):
        self.extension = extension.lower()
        self.max_depth = max_depth
        self.skip_dirs = tuple(d.lower() for d in skip_dirs)
        self.skip_prefixes = tuple(skip_prefixes)

    def scan(self, folder_path: Union[str, Path], depth: int = 0, remaining: int = SCAN_MAX_FILES) -> List[str]:
        """
        Collect matching files under folder_path

        Args:
            folder_path: Directory to scan
            depth: Depth of folder_path below the scan root
            remaining: Files this call may still return

        Returns:
            At most `remaining` file paths, files of this directory first
        """
        files: List[str] = []
        if depth > self.max_depth:
            logger.debug(f"Skipping deep directory: {folder_path} (depth: {depth})")
            return files
        if remaining <= 0:
            return files

        try:
            with os.scandir(folder_path) as it:
                entries = sorted(it, key=lambda entry: entry.name)
        except OSError as e:
            logger.warning(f"Error scanning folder {folder_path}: {e}")
            return files

        logger.debug(f"Scanning folder: {folder_path} (depth: {depth}, {len(entries)} items)")
        visible = [entry for entry in entries if not entry.name.startswith(self.skip_prefixes)]

        for entry in visible:
            try:
                if entry.is_file() and entry.name.lower().endswith(self.extension):
                    files.append(entry.path)
                    if len(files) >= remaining:
                        logger.info(f"Reached maximum files limit ({remaining}), stopping scan")
                        return files
            except OSError:
                continue

        for entry in visible:
            if self._is_skipped_dir(entry.name):
                continue
            try:
                if not entry.is_dir():
                    continue
            except OSError:
                continue
            files.extend(self.scan(entry.path, depth + 1, remaining - len(files)))
            if len(files) >= remaining:
                break

        return files

    def _is_skipped_dir(self, name: str) -> bool:
        lowered = name.lower()
        return any(skip in lowered for skip in self.skip_dirs)


def scan_folder(root_path: Union[str, Path],
                max_files: int = SCAN_MAX_FILES,
                scanner: Optional[FolderScanner] = None) -> List[FileDescriptor]:
    """
    Scan a folder tree for documents and describe each match

    Raises:
        FileNotFoundError: root_path does not exist or is not a directory
    """
    root = Path(root_path)
    if not root.is_dir():
        raise FileNotFoundError(f"Folder not found: {root_path}")

    scanner = scanner or FolderScanner()
    logger.info(f"Starting recursive scan for {scanner.extension} files: {root}")
    paths = scanner.scan(root, 0, max_files)

    descriptors = []
    for path in paths:
        try:
            stats = os.stat(path)
        except OSError as e:
            logger.warning(f"Error getting stats for {path}: {e}")
            continue
        descriptors.append(FileDescriptor(
            path=path,
            name=os.path.basename(path),
            size=stats.st_size,
            modified=datetime.fromtimestamp(stats.st_mtime),
            relative_path=os.path.relpath(path, root),
        ))

    logger.info(f"Found {len(descriptors)} file(s) under {root}")
    return descriptors
