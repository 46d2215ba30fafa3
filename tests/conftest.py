"""
Shared pytest fixtures for GridWeaver tests.

This module provides:
- A sample serialized table definition document
- A renderer registry and a recording action callback
- File-backed gateways (mutations enabled and disabled)
"""

import copy
from typing import Any

import pytest

from gridweaver.gateway.adapters import FileStorageAdapter
from gridweaver.gateway.gateway import DefinitionGateway

SECRET = "s3cret"


class StatusBadge:
    """Stand-in for a UI renderer component."""


class RecordingCallback:
    def __init__(self):
        self.calls: list[tuple[str, Any]] = []

    def __call__(self, action: str, payload: Any) -> None:
        self.calls.append((action, payload))


SAMPLE_DOCUMENT: dict[str, Any] = {
    "http": {"url": "/v1/users", "params": {"tenant": "acme"}},
    "columnDefs": [
        {"field": "id", "headerName": "ID", "width": 80},
        {
            "field": "name",
            "headerName": "Name",
            "formatter": ["value | capitalize"],
        },
        {
            "field": "status",
            "renderer": "StatusBadge",
            "rendererParams": {"tone": "muted"},
            "pinned": "right",
        },
        {
            "field": "createdAt",
            "headerName": "Created",
            "formatter": ["value | date:'YYYY-MM-DD'"],
        },
    ],
    "defaultSort": {"colId": "createdAt", "sort": "desc"},
}


@pytest.fixture
def sample_document() -> dict[str, Any]:
    return copy.deepcopy(SAMPLE_DOCUMENT)


@pytest.fixture
def renderer_registry() -> dict[str, Any]:
    return {"StatusBadge": StatusBadge}


@pytest.fixture
def action_callback() -> RecordingCallback:
    return RecordingCallback()


@pytest.fixture
def secret() -> str:
    return SECRET


@pytest.fixture
def file_adapter(tmp_path) -> FileStorageAdapter:
    return FileStorageAdapter(tmp_path / "definitions")


@pytest.fixture
def gateway(file_adapter) -> DefinitionGateway:
    return DefinitionGateway(file_adapter, mutation_secret=SECRET)


@pytest.fixture
def read_only_gateway(file_adapter) -> DefinitionGateway:
    return DefinitionGateway(file_adapter)
