"""Utility functions and classes for CogMD."""

from cogmd.utils.exceptions import (
    AssetUnavailableError,
    CogmdError,
    ConfigurationError,
    DirectoryUnwritableError,
    EntryNotFoundError,
    ExtensionError,
    HomeDirectoryError,
    InvalidArchiveError,
    MalformedManifestError,
    ManagerError,
    ManagerInitializationError,
    ManagerShutdownError,
    MissingManifestError,
)
