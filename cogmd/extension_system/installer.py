"""Extension installation.

This module wires the installation pipeline together: open the package
archive, parse its manifest, extract the supported contributions into the
extension's install directory and report what was installed.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Optional, Union

import structlog

from cogmd.extension_system.archive import ExtensionArchive
from cogmd.extension_system.extractor import extract_contributions
from cogmd.extension_system.manifest import MANIFEST_ENTRY, ExtensionManifest, parse_manifest
from cogmd.extension_system.report import ExtensionInfo, build_extension_info
from cogmd.utils.exceptions import DirectoryUnwritableError, HomeDirectoryError

DEFAULT_EXTENSIONS_SUBDIRECTORY = ".cogmd/extensions"


def resolve_home_directory(override: Optional[Union[str, Path]] = None) -> Path:
    """Resolve the home directory extensions are installed under.

    Args:
        override: Explicit home directory; ``~`` is expanded

    Returns:
        The home directory

    Raises:
        HomeDirectoryError: If no override is given and the platform cannot
            determine the user's home directory
    """
    if override:
        return Path(override).expanduser()
    try:
        return Path.home()
    except (RuntimeError, KeyError, OSError) as e:
        raise HomeDirectoryError(f"Cannot find home directory: {e}") from e


def extensions_root(
        home_dir: Union[str, Path],
        subdirectory: str = DEFAULT_EXTENSIONS_SUBDIRECTORY,
) -> Path:
    """Directory under which every extension gets its own install directory."""
    return Path(home_dir).joinpath(*subdirectory.split("/"))


class ExtensionInstaller:
    """Installer for VSIX-style extension packages.

    Each call to :meth:`install_extension` is independent and keeps no state
    on the installer, so different extensions may be installed concurrently.
    Installs of the same extension must be serialized by the caller.

    Attributes:
        extensions_dir: Directory containing the per-extension install directories
        manifest_entry: Archive-internal name of the manifest
    """

    def __init__(
            self,
            extensions_dir: Union[str, Path],
            manifest_entry: str = MANIFEST_ENTRY,
            logger: Optional[Any] = None
    ) -> None:
        """Initialize the extension installer.

        The extensions directory is not created until an install needs it.

        Args:
            extensions_dir: Directory where extensions will be installed
            manifest_entry: Archive-internal name of the manifest
            logger: Structured logger (defaults to this module's structlog logger)
        """
        self.extensions_dir = Path(extensions_dir)
        self.manifest_entry = manifest_entry
        self.logger = logger or structlog.get_logger(__name__)

    @classmethod
    def for_home(
            cls,
            home_dir: Optional[Union[str, Path]] = None,
            logger: Optional[Any] = None
    ) -> ExtensionInstaller:
        """Create an installer for ``<home>/.cogmd/extensions``.

        Raises:
            HomeDirectoryError: If the home directory cannot be resolved
        """
        return cls(extensions_root(resolve_home_directory(home_dir)), logger=logger)

    @classmethod
    def from_config(
            cls,
            config_manager: Any,
            home_dir: Optional[Union[str, Path]] = None,
            logger: Optional[Any] = None
    ) -> ExtensionInstaller:
        """Create an installer from the ``extensions`` configuration section.

        Args:
            config_manager: Initialized configuration manager
            home_dir: Home directory; takes precedence over the configured one
            logger: Structured logger

        Raises:
            HomeDirectoryError: If the home directory cannot be resolved
        """
        config = config_manager.get("extensions", {}) or {}
        home = resolve_home_directory(home_dir or config.get("home_directory"))
        return cls(
            extensions_root(
                home, config.get("root_subdirectory") or DEFAULT_EXTENSIONS_SUBDIRECTORY
            ),
            manifest_entry=config.get("manifest_entry") or MANIFEST_ENTRY,
            logger=logger,
        )

    def get_extension_dir(self, extension_name: str) -> Path:
        """Get the install directory for an extension.

        Args:
            extension_name: Name of the extension

        Returns:
            Path to the extension's install directory
        """
        return self.extensions_dir / extension_name

    def inspect_extension(self, package_path: Union[str, Path]) -> ExtensionManifest:
        """Read an extension package's manifest without installing anything.

        Raises:
            InvalidArchiveError: If the package cannot be opened
            MissingManifestError: If the package has no manifest
            MalformedManifestError: If the manifest cannot be decoded
        """
        with ExtensionArchive.open(package_path) as archive:
            return parse_manifest(archive, self.manifest_entry)

    def install_extension(self, package_path: Union[str, Path]) -> ExtensionInfo:
        """Install the themes, grammars and snippets of an extension package.

        Assets that are declared but missing from the package, or that cannot
        be written, are skipped and left out of the returned report.

        Args:
            package_path: Path to the extension package

        Returns:
            Description of what was installed

        Raises:
            InvalidArchiveError: If the package cannot be opened
            MissingManifestError: If the package has no manifest
            MalformedManifestError: If the manifest cannot be decoded
            DirectoryUnwritableError: If the install directory cannot be created
        """
        package_path = Path(package_path)
        log = self.logger.bind(package=str(package_path))

        with ExtensionArchive.open(package_path) as archive:
            manifest = parse_manifest(archive, self.manifest_entry)
            install_dir = self.get_extension_dir(manifest.name)
            self._ensure_install_dir(install_dir, manifest.name, package_path)

            log = log.bind(extension=manifest.name)
            result = extract_contributions(
                archive, manifest.contributes, install_dir, log=log
            )

        info = build_extension_info(manifest, result, install_dir)
        log.info(
            "Installed extension",
            display_name=info.display_name,
            themes=len(info.themes),
            grammars=len(info.grammars),
            snippets=len(info.snippets),
            skipped=len(result.failures()),
            install_path=info.install_path,
        )
        return info

    @staticmethod
    def _ensure_install_dir(install_dir: Path, extension_name: str, package_path: Path) -> None:
        try:
            install_dir.mkdir(parents=True, exist_ok=True)
        except (OSError, ValueError) as e:
            raise DirectoryUnwritableError(
                f"Cannot create install directory {install_dir}: {e}",
                extension_name=extension_name,
                archive_path=str(package_path),
                directory=str(install_dir),
            ) from e


def install_extension(
        package_path: Union[str, Path],
        home_dir: Optional[Union[str, Path]] = None,
) -> ExtensionInfo:
    """Install an extension package under ``<home>/.cogmd/extensions``.

    Args:
        package_path: Path to the extension package
        home_dir: Home directory; resolved from the platform when omitted

    Returns:
        Description of what was installed
    """
    return ExtensionInstaller.for_home(home_dir).install_extension(package_path)
