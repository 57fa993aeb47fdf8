"""
Persistent state storage for tokenvest deployments.
"""

from .storage_manager import StorageManager

__all__ = ["StorageManager"]
