"""Read access to extension package archives.

Extension packages are VSIX-style zip containers. Entries are addressed by
their archive-internal names, which always use forward slashes regardless
of the host platform.
"""

from __future__ import annotations

import zipfile
import zlib
from pathlib import Path
from types import TracebackType
from typing import Dict, List, Optional, Type, Union

from cogmd.utils.exceptions import EntryNotFoundError, InvalidArchiveError


class ExtensionArchive:
    """Random-access handle on an extension package archive.

    The zip central directory is indexed once when the archive is opened,
    so entry lookups never rescan the container.

    Attributes:
        path: Path to the archive file
    """

    def __init__(self, zip_file: zipfile.ZipFile, path: Path) -> None:
        """Wrap an already opened zip file.

        Use :meth:`open` rather than calling this directly.

        Args:
            zip_file: Open zip file
            path: Path the zip file was opened from
        """
        self.path = path
        self._zip_file: Optional[zipfile.ZipFile] = zip_file
        self._entries: Dict[str, zipfile.ZipInfo] = {
            info.filename: info for info in zip_file.infolist() if not info.is_dir()
        }

    @classmethod
    def open(cls, path: Union[str, Path]) -> ExtensionArchive:
        """Open an extension package archive.

        Args:
            path: Path to the archive file

        Returns:
            Archive handle; close it (or use it as a context manager) when done

        Raises:
            InvalidArchiveError: If the file is missing, unreadable, or not a
                valid zip container
        """
        path = Path(path)
        try:
            zip_file = zipfile.ZipFile(path, "r")
        except FileNotFoundError as e:
            raise InvalidArchiveError(
                f"Package archive not found: {path}", archive_path=str(path)
            ) from e
        except (zipfile.BadZipFile, zipfile.LargeZipFile, OSError, ValueError) as e:
            raise InvalidArchiveError(
                f"Invalid package archive {path}: {e}", archive_path=str(path)
            ) from e

        try:
            return cls(zip_file, path)
        except Exception:
            zip_file.close()
            raise

    @property
    def closed(self) -> bool:
        """Whether the underlying file handle has been released."""
        return self._zip_file is None

    def close(self) -> None:
        """Release the underlying file handle. Safe to call repeatedly."""
        if self._zip_file is not None:
            self._zip_file.close()
            self._zip_file = None

    def __enter__(self) -> ExtensionArchive:
        return self

    def __exit__(
            self,
            exc_type: Optional[Type[BaseException]],
            exc_value: Optional[BaseException],
            traceback: Optional[TracebackType],
    ) -> None:
        self.close()

    def entry_names(self) -> List[str]:
        """Get the names of all file entries, in archive order."""
        return list(self._entries)

    def has_entry(self, name: str) -> bool:
        """Check whether the archive contains a file entry called ``name``."""
        return name in self._entries

    def read_entry(self, name: str) -> bytes:
        """Read and decompress a single entry.

        Args:
            name: Archive-internal entry name (forward-slash separated)

        Returns:
            The entry's raw bytes

        Raises:
            EntryNotFoundError: If the entry does not exist or its data cannot
                be decompressed
            InvalidArchiveError: If the archive has already been closed
        """
        if self._zip_file is None:
            raise InvalidArchiveError(
                "Package archive is closed", archive_path=str(self.path)
            )

        info = self._entries.get(name)
        if info is None:
            raise EntryNotFoundError(
                f"Entry not found in package archive: {name}",
                entry_name=name,
                archive_path=str(self.path),
            )

        try:
            with self._zip_file.open(info, "r") as entry:
                return entry.read()
        except (zipfile.BadZipFile, zlib.error, NotImplementedError, RuntimeError, EOFError, OSError) as e:
            raise EntryNotFoundError(
                f"Entry {name} could not be read: {e}",
                entry_name=name,
                archive_path=str(self.path),
            ) from e

    def __repr__(self) -> str:
        state = "closed" if self.closed else f"{len(self._entries)} entries"
        return f"<ExtensionArchive {self.path} ({state})>"
