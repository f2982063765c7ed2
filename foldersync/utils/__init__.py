"""Utility modules for the folder synchronization tool."""

from foldersync.utils.retry import retry_call

__all__ = ["retry_call"]
