"""
Storage Adapters - Local task file persistence.
"""

from .json_store import JsonTaskStore


__all__ = ["JsonTaskStore"]
