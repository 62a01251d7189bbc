"""Allocation system backend API integration."""

from .client import BackendClient, TeacherImportApi
from .config import BackendConfig, resolve_config

__all__ = [
    "BackendClient",
    "BackendConfig",
    "TeacherImportApi",
    "resolve_config",
]
