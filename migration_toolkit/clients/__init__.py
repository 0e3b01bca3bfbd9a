"""Clients of content management APIs."""

from .base import ManagementClientBase
from .management_client import ManagementClient

__all__ = ["ManagementClientBase", "ManagementClient"]
