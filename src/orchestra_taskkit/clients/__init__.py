"""Shared client modules for orchestra-taskkit.

These provide the HTTP wrapper and the orchestration API client
that tasks compose into their logic.
"""

from orchestra_taskkit.clients.api import ApiClient, Credentials, build_client
from orchestra_taskkit.clients.http import HTTPResponse, request

__all__ = ["ApiClient", "Credentials", "build_client", "request", "HTTPResponse"]
