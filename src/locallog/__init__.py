"""Logger local estruturado: ficheiros rotativos, retenção e exportação.

Re-exports da API pública.
"""

from .config.settings import LoggerConfig, load_config
from .core.errors import (
    ArchiveLimitError,
    EmptySelectionError,
    InvalidPasswordError,
    LocalLogError,
    LogIOError,
    UnsupportedFeatureError,
)
from .core.levels import LogLevel
from .core.logger import LocalLogger
from .system.selection import DateInterval

__all__ = [
    "ArchiveLimitError",
    "DateInterval",
    "EmptySelectionError",
    "InvalidPasswordError",
    "LocalLogError",
    "LocalLogger",
    "LogIOError",
    "LogLevel",
    "LoggerConfig",
    "UnsupportedFeatureError",
    "load_config",
]
