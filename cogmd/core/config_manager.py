from __future__ import annotations

import json
import logging
import os
import pathlib
from copy import deepcopy
from typing import Any, Callable, Dict, List, Optional, Set, Union

import yaml
from pydantic import BaseModel, Field, ValidationError, model_validator

from cogmd.core.base import CogmdManager
from cogmd.utils.exceptions import ConfigurationError, ManagerInitializationError


class ConfigSchema(BaseModel):
    """Schema for validating configuration data.

    This model defines the expected structure and default values for the
    installer configuration.
    """
    extensions: Dict[str, Any] = Field(
        default_factory=lambda: {
            'home_directory': None,
            'root_subdirectory': '.cogmd/extensions',
            'manifest_entry': 'extension/package.json',
        },
        description='Extension installation settings',
    )
    logging: Dict[str, Any] = Field(
        default_factory=lambda: {
            'level': 'INFO',
            'format': 'text',
            'file': {
                'enabled': False,
                'path': 'logs/cogmd.log',
                'rotation': '10 MB',
                'retention': '30 days',
            },
            'console': {
                'enabled': True,
                'level': 'INFO',
            },
        },
        description='Logging settings',
    )

    @model_validator(mode='after')
    def validate_extensions(self) -> 'ConfigSchema':
        """Validate the extension install locations."""
        root = self.extensions.get('root_subdirectory')
        if not isinstance(root, str) or not root.strip():
            raise ValueError('extensions.root_subdirectory must be a non-empty string')
        if pathlib.PurePath(root).is_absolute():
            raise ValueError('extensions.root_subdirectory must be relative to the home directory')

        manifest_entry = self.extensions.get('manifest_entry')
        if not isinstance(manifest_entry, str) or not manifest_entry.strip():
            raise ValueError('extensions.manifest_entry must be a non-empty string')

        home = self.extensions.get('home_directory')
        if home is not None and not isinstance(home, str):
            raise ValueError('extensions.home_directory must be a string path')
        return self


class ConfigManager(CogmdManager):
    """Configuration manager for the installer.

    This manager handles loading, validating, and providing access to
    configuration settings from files and environment variables.

    Environment overrides use the prefix followed by the key path joined
    with double underscores, e.g. ``COGMD_EXTENSIONS__HOME_DIRECTORY``.

    Attributes:
        _config_path: Path to the configuration file
        _env_prefix: Prefix for environment variables
        _config: The loaded configuration
        _loaded_from_file: Whether configuration was loaded from a file
        _env_vars_applied: Set of applied environment variables
        _listeners: Dictionary of config change listeners
    """

    ENV_SEPARATOR = '__'

    def __init__(
            self,
            config_path: Optional[Union[str, pathlib.Path]] = None,
            env_prefix: str = 'COGMD_'
    ) -> None:
        """Initialize the configuration manager.

        Args:
            config_path: Path to the configuration file
            env_prefix: Prefix for environment variables
        """
        super().__init__(name='config_manager')
        self._config_path = pathlib.Path(config_path) if config_path else pathlib.Path('cogmd.yaml')
        self._env_prefix = env_prefix
        self._config: Dict[str, Any] = {}
        self._loaded_from_file = False
        self._env_vars_applied: Set[str] = set()
        self._listeners: Dict[str, List[Callable[[str, Any], None]]] = {}

    def initialize(self) -> None:
        """Initialize the configuration manager.

        Loads configuration from default schema, file, and environment variables.

        Raises:
            ManagerInitializationError: If initialization fails
        """
        try:
            self._config = ConfigSchema().model_dump()
            self._load_from_file()
            self._apply_env_vars()
            self._validate_config()

            self._initialized = True
            self._healthy = True
        except Exception as e:
            raise ManagerInitializationError(
                f'Failed to initialize ConfigManager: {str(e)}',
                manager_name=self.name
            ) from e

    def _load_from_file(self) -> None:
        """Load configuration from a file.

        Raises:
            ConfigurationError: If the file cannot be parsed
        """
        if not self._config_path.exists():
            return

        try:
            content = self._config_path.read_text(encoding='utf-8')

            if self._config_path.suffix.lower() in ('.yaml', '.yml'):
                file_config = yaml.safe_load(content)
            elif self._config_path.suffix.lower() == '.json':
                file_config = json.loads(content)
            else:
                raise ConfigurationError(
                    f'Unsupported config file format: {self._config_path.suffix}',
                    config_key='config_path'
                )
        except (yaml.YAMLError, json.JSONDecodeError) as e:
            raise ConfigurationError(
                f'Error parsing config file {self._config_path}: {str(e)}',
                config_key='config_path'
            ) from e

        if file_config is None:
            return
        if not isinstance(file_config, dict):
            raise ConfigurationError(
                f'Config file {self._config_path} must contain a mapping',
                config_key='config_path'
            )

        self._merge_config(file_config)
        self._loaded_from_file = True

    def _apply_env_vars(self) -> None:
        """Override configuration values with environment variables."""
        for env_name, env_value in os.environ.items():
            if not env_name.startswith(self._env_prefix):
                continue

            config_path = env_name[len(self._env_prefix):].lower().split(self.ENV_SEPARATOR)
            if not all(config_path):
                continue
            self._set_nested_value(self._config, config_path, self._parse_env_value(env_value))
            self._env_vars_applied.add(env_name)

    @staticmethod
    def _parse_env_value(value: str) -> Any:
        """Parse environment variable values into appropriate types.

        Args:
            value: The string value from the environment

        Returns:
            The parsed value (bool, int, float, or string)
        """
        if value.lower() in ('true', 'yes', 'on'):
            return True
        if value.lower() in ('false', 'no', 'off'):
            return False

        try:
            if value.isdigit() or (value.startswith('-') and value[1:].isdigit()):
                return int(value)
            return float(value)
        except ValueError:
            return value

    def _set_nested_value(self, config: Dict[str, Any], path: List[str], value: Any) -> None:
        """Set a nested value in the configuration dictionary.

        Args:
            config: The configuration dictionary
            path: List of keys forming the path to the value
            value: The value to set
        """
        if not path:
            return

        if len(path) == 1:
            config[path[0]] = value
            return

        key = path[0]
        if not isinstance(config.get(key), dict):
            config[key] = {}

        self._set_nested_value(config[key], path[1:], value)

    def _validate_config(self) -> None:
        """Validate the configuration against the schema.

        Raises:
            ConfigurationError: If the configuration is invalid
        """
        try:
            self._config = ConfigSchema(**self._config).model_dump()
        except ValidationError as e:
            errors = e.errors()
            error_details = ', '.join((
                f"{'.'.join((str(loc) for loc in error['loc']))}: {error['msg']}"
                for error in errors
            ))
            raise ConfigurationError(
                f'Invalid configuration: {error_details}',
                details={'validation_errors': errors}
            ) from e

    def get(self, key: str, default: Any = None) -> Any:
        """Get a configuration value by key.

        Args:
            key: The configuration key (dot-separated for nested values)
            default: Default value if the key doesn't exist

        Returns:
            The configuration value or default

        Raises:
            ConfigurationError: If the manager isn't initialized
        """
        if not self._initialized:
            raise ConfigurationError(
                'Cannot access configuration before initialization',
                config_key=key
            )

        result: Any = self._config
        try:
            for part in key.split('.'):
                result = result[part]
            return deepcopy(result)
        except (KeyError, TypeError):
            return default

    def set(self, key: str, value: Any) -> None:
        """Set a configuration value by key.

        The change is validated and kept in memory only.

        Args:
            key: The configuration key (dot-separated for nested values)
            value: The value to set

        Raises:
            ConfigurationError: If the manager isn't initialized or the value is invalid
        """
        if not self._initialized:
            raise ConfigurationError(
                'Cannot modify configuration before initialization',
                config_key=key
            )

        new_config = deepcopy(self._config)
        self._set_nested_value(new_config, key.split('.'), value)

        try:
            self._config = ConfigSchema(**new_config).model_dump()
        except ValidationError as e:
            raise ConfigurationError(
                f'Invalid configuration value for {key}: {str(e)}',
                config_key=key,
                details={'validation_errors': e.errors()}
            ) from e

        self._notify_listeners(key, value)

    def _merge_config(
            self,
            from_config: Dict[str, Any],
            to_config: Optional[Dict[str, Any]] = None
    ) -> None:
        """Merge a configuration dictionary into another.

        Args:
            from_config: The source configuration
            to_config: The target configuration (defaults to self._config)
        """
        if to_config is None:
            to_config = self._config

        for key, value in from_config.items():
            if isinstance(to_config.get(key), dict) and isinstance(value, dict):
                self._merge_config(value, to_config[key])
            elif value not in [None, '', {}]:
                to_config[key] = value

    def register_listener(self, key: str, callback: Callable[[str, Any], None]) -> None:
        """Register a listener for configuration changes.

        Args:
            key: The configuration key to listen for
            callback: Function called with ``(key, value)`` when the key changes
        """
        callbacks = self._listeners.setdefault(key, [])
        if callback not in callbacks:
            callbacks.append(callback)

    def unregister_listener(self, key: str, callback: Callable[[str, Any], None]) -> None:
        """Unregister a listener for configuration changes.

        Args:
            key: The configuration key
            callback: The callback function to unregister
        """
        if key in self._listeners and callback in self._listeners[key]:
            self._listeners[key].remove(callback)
            if not self._listeners[key]:
                del self._listeners[key]

    def _notify_listeners(self, key: str, value: Any) -> None:
        """Notify listeners registered for ``key`` or one of its parents."""
        for listener_key, callbacks in list(self._listeners.items()):
            if key != listener_key and not key.startswith(f'{listener_key}.'):
                continue
            for callback in list(callbacks):
                try:
                    callback(key, value)
                except Exception:
                    logging.getLogger(__name__).exception(
                        'Error in config listener for %s', key
                    )

    def shutdown(self) -> None:
        """Shut down the configuration manager."""
        self._listeners.clear()
        self._initialized = False
        self._healthy = False

    def status(self) -> Dict[str, Any]:
        """Get the status of the configuration manager.

        Returns:
            Dictionary with status information
        """
        status = super().status()
        status.update({
            'config_file': str(self._config_path) if self._loaded_from_file else None,
            'loaded_from_file': self._loaded_from_file,
            'env_vars_applied': len(self._env_vars_applied),
            'listeners': sum(len(callbacks) for callbacks in self._listeners.values()),
        })
        return status
