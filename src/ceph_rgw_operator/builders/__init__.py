"""Builders for records and clients."""

from .provider import create_clients_from_spec

__all__ = ["create_clients_from_spec"]
