"""Clients for external services."""

from .clc import CLCClient, CLCConfig, StatusService

__all__ = [
    "CLCClient",
    "CLCConfig",
    "StatusService",
]
