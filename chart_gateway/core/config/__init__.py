"""
Configuration Module

Centralized, type-safe configuration for the chart gateway.

Components:
-----------
- **settings.py**: Pydantic-based configuration with environment variable loading
- **constants.py**: Lifecycle states, SSE event kinds, Chart-IMG vocabulary

Usage:
------
```python
from chart_gateway.core.config import get_settings
from chart_gateway.core.config.constants import ChartStatus, EventKind

settings = get_settings()
heartbeat = settings.streaming.SSE_HEARTBEAT_INTERVAL
```
"""

from chart_gateway.core.config.settings import Settings, get_settings, reload_settings

__all__ = ["Settings", "get_settings", "reload_settings"]
