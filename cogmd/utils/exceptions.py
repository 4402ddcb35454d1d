from __future__ import annotations

from typing import Any, Dict, Optional


class CogmdError(Exception):
    """Base exception for all CogMD errors."""

    def __init__(self, message: str, *args: Any, **kwargs: Any) -> None:
        """
        Initialize exception.

        Args:
            message: Error message
            *args: Additional positional arguments to pass to Exception
            **kwargs: Additional error information
        """
        self.message = message
        details: Dict[str, Any] = dict(kwargs.pop("details", None) or {})
        details.update({k: v for k, v in kwargs.items() if v is not None})
        self.details = details
        super().__init__(message, *args)

    @property
    def code(self) -> str:
        """Machine-readable error code."""
        return type(self).__name__

    def __str__(self) -> str:
        """String representation."""
        return f"{self.message}"


class ManagerError(CogmdError):
    """Base exception for manager-related errors."""

    def __init__(self, message: str, manager_name: Optional[str] = None, **kwargs: Any) -> None:
        """
        Initialize manager error.

        Args:
            message: Error message
            manager_name: Name of the affected manager
            **kwargs: Additional error information
        """
        super().__init__(message, manager_name=manager_name, **kwargs)
        self.manager_name = manager_name

    def __str__(self) -> str:
        """String representation."""
        if self.manager_name:
            return f"{self.message} (Manager: {self.manager_name})"
        return super().__str__()


class ManagerInitializationError(ManagerError):
    """Exception raised when a manager fails to initialize."""

    pass


class ManagerShutdownError(ManagerError):
    """Exception raised when a manager fails to shut down cleanly."""

    pass


class ConfigurationError(CogmdError):
    """Exception raised for configuration-related errors."""

    def __init__(
            self, message: str, *args: Any, config_key: Optional[str] = None, **kwargs: Any
    ) -> None:
        """Initialize a ConfigurationError.

        Args:
            message: A descriptive error message.
            *args: Additional positional arguments to pass to the parent Exception.
            config_key: The configuration key that caused the error.
            **kwargs: Additional keyword arguments to pass to the parent Exception.
        """
        details = kwargs.pop("details", {})
        if config_key:
            details["config_key"] = config_key
        super().__init__(message, *args, details=details, **kwargs)


class HomeDirectoryError(CogmdError):
    """Exception raised when the user's home directory cannot be resolved."""

    pass


class ExtensionError(CogmdError):
    """Exception raised for extension installation errors."""

    def __init__(
            self,
            message: str,
            *args: Any,
            extension_name: Optional[str] = None,
            archive_path: Optional[str] = None,
            **kwargs: Any,
    ) -> None:
        """Initialize an ExtensionError.

        Args:
            message: A descriptive error message.
            *args: Additional positional arguments to pass to the parent Exception.
            extension_name: The name of the extension being installed.
            archive_path: The package archive the error relates to.
            **kwargs: Additional keyword arguments to pass to the parent Exception.
        """
        details = kwargs.pop("details", {})
        if extension_name:
            details["extension_name"] = extension_name
        if archive_path:
            details["archive_path"] = str(archive_path)
        super().__init__(message, *args, details=details, **kwargs)
        self.extension_name = extension_name
        self.archive_path = archive_path


class InvalidArchiveError(ExtensionError):
    """The package archive cannot be opened or is not a valid zip container."""

    pass


class EntryNotFoundError(ExtensionError):
    """A named entry is absent from (or unreadable in) the package archive."""

    def __init__(self, message: str, *args: Any, entry_name: Optional[str] = None, **kwargs: Any) -> None:
        details = kwargs.pop("details", {})
        if entry_name:
            details["entry_name"] = entry_name
        super().__init__(message, *args, details=details, **kwargs)
        self.entry_name = entry_name


class MissingManifestError(ExtensionError):
    """The package archive has no ``extension/package.json`` entry."""

    pass


class MalformedManifestError(ExtensionError):
    """The manifest entry is present but cannot be used."""

    pass


class AssetUnavailableError(ExtensionError):
    """A declared asset could not be extracted.

    This is never raised out of an install; it is recorded on the
    per-asset outcome and the asset is left out of the report.
    """

    def __init__(self, message: str, *args: Any, asset_path: Optional[str] = None, **kwargs: Any) -> None:
        details = kwargs.pop("details", {})
        if asset_path:
            details["asset_path"] = asset_path
        super().__init__(message, *args, details=details, **kwargs)
        self.asset_path = asset_path


class DirectoryUnwritableError(ExtensionError):
    """The install directory cannot be created."""

    def __init__(self, message: str, *args: Any, directory: Optional[str] = None, **kwargs: Any) -> None:
        details = kwargs.pop("details", {})
        if directory:
            details["directory"] = str(directory)
        super().__init__(message, *args, details=details, **kwargs)
        self.directory = directory
