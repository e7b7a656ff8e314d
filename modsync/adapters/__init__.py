"""Adapters — package-manager bindings.

Public re-exports for convenient access.
"""

from modsync.adapters.base import AdapterError, ExecutionContext, PackageAdapter
from modsync.adapters.mock import MockPackageAdapter
from modsync.adapters.registry import AdapterRegistry

__all__ = [
    "AdapterError",
    "AdapterRegistry",
    "ExecutionContext",
    "MockPackageAdapter",
    "PackageAdapter",
]
