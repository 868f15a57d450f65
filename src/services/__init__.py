"""
Service Layer Package

Business logic services that sit between the command line entry point and
the stores.

Core Services:
- ProgressService: activity events, award pipeline, progress queries
- ServiceContainer: owns one instance of each store and service
"""

from src.services.container import ServiceContainer, build_container, create_remote_store
from src.services.progress_service import ProgressService

__all__ = [
    "ServiceContainer",
    "build_container",
    "create_remote_store",
    "ProgressService",
]
