"""
Roulette Services - Host integration.

- host_client: ProfileHost over the host application's REST API (httpx)
"""

from .host_client import HttpProfileHost

__all__ = ["HttpProfileHost"]
