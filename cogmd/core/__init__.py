"""Core package containing the configuration and logging managers."""

from cogmd.core.base import BaseManager, CogmdManager
from cogmd.core.config_manager import ConfigManager, ConfigSchema
from cogmd.core.logging_manager import LoggingManager
