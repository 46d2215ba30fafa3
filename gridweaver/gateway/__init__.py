"""Definition gateway module."""

from gridweaver.gateway.adapters import FileStorageAdapter, StorageAdapter
from gridweaver.gateway.db import SqlStorageAdapter
from gridweaver.gateway.gateway import (
    DEFAULT_SECRET_HEADER,
    DefinitionGateway,
    ReadGuard,
    configure_definition_gateway,
    get_definition_gateway,
    get_secret_header,
    validate_definition,
    validate_patch,
)

__all__ = [
    "DEFAULT_SECRET_HEADER",
    "DefinitionGateway",
    "FileStorageAdapter",
    "ReadGuard",
    "SqlStorageAdapter",
    "StorageAdapter",
    "configure_definition_gateway",
    "get_definition_gateway",
    "get_secret_header",
    "validate_definition",
    "validate_patch",
]
