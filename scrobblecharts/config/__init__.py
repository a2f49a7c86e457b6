"""Configuration module for scrobblecharts.

Public API:
----------
settings: Settings instance
    Pydantic settings object with nested configuration

get_config(key: str, default=None) -> Any
    Flat-key configuration access function

get_logger(name: str) -> Logger
    Get a context-aware logger for your module

setup_loguru_logger(verbose: bool = False) -> None
    Configure Loguru logger for the application

resilient_operation(operation_name: str)
    Decorator for logging failures of external API calls

log_startup_info() -> None
    Log configuration at startup

Usage:
------
```python
from scrobblecharts.config import settings
page_size = settings.api.lastfm_page_size

from scrobblecharts.config import get_config
page_size = get_config("LASTFM_RECENT_TRACKS_PAGE_SIZE", 200)

from scrobblecharts.config import get_logger
logger = get_logger(__name__)
```
"""

from .logging import (
    get_logger,
    log_startup_info,
    resilient_operation,
    setup_loguru_logger,
)
from .settings import get_config, settings

__all__ = [
    "get_config",
    "get_logger",
    "log_startup_info",
    "resilient_operation",
    "settings",
    "setup_loguru_logger",
]
