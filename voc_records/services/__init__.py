"""
Services package for VOC Records.
This package contains the service classes that wire the conversion
pipeline to logging and configuration.
"""

# Interfaces
from .interfaces import IConfigService, ILogger, IPrepareService

# Concrete implementations
from .config_service import ConfigService, PrepareConfig
from .logging_service import LoggingService, NullLogger, MemoryLogger
from .prepare_service import PrepareService

__all__ = [
    # Interfaces
    'IConfigService', 'ILogger', 'IPrepareService',

    # Implementations
    'ConfigService', 'LoggingService', 'PrepareService',

    # Configuration classes
    'PrepareConfig',

    # Logging utilities
    'NullLogger', 'MemoryLogger',
]
