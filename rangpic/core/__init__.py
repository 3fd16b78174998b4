"""
Core infrastructure components for the application.

This module contains database pooling, the repository base class,
logging setup and route discovery. Request-scoped dependencies live in
``rangpic.core.dependencies`` and the app lifespan in ``rangpic.core.lifespan``.
"""

from .base_repository import BaseRepository
from .database import AsyncDBPool
from .logging_config import setup_logging
from .route_discovery import RouterDiscoveryError, discover_routers, register_routers

__all__ = [
    "AsyncDBPool",
    "BaseRepository",
    "RouterDiscoveryError",
    "discover_routers",
    "register_routers",
    "setup_logging",
]
