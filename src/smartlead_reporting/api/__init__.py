"""Smartlead API domain surface."""

from .client import SmartleadAPI, create_api_client

__all__ = ["SmartleadAPI", "create_api_client"]
