"""Python client for the Real Estate API."""

from client.session import ApiClient, SessionExpired

__all__ = ["ApiClient", "SessionExpired"]
