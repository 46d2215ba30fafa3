"""Definition gateway - guarded, validated CRUD over a storage adapter.

Order of checks:
- create/update/delete: mutation guard -> schema validation -> adapter
- read/list: read guard -> adapter

Mutations are disabled entirely unless a secret was configured. Stored
documents are never modified on read; hydration artifacts never reach
storage.

Configuration (environment, read by get_definition_gateway()):
    GRIDWEAVER_MUTATION_SECRET: enables create/update/delete
    GRIDWEAVER_SECRET_HEADER: header carrying the secret (API layer)
    GRIDWEAVER_STORAGE: 'file' (default) or 'sql'
    GRIDWEAVER_DEFINITIONS_DIR: directory for the file adapter
    GRIDWEAVER_DATABASE_URL: database URL for the sql adapter
"""

import hmac
import logging
import os
from pathlib import Path
from typing import Any, Callable, Mapping, Optional, Union

from pydantic import ValidationError as PydanticValidationError

from gridweaver.definitions.schemas import (
    SerializedColumnSpec,
    SerializedTableDefinition,
    SerializedTableDefinitionPatch,
)
from gridweaver.errors import (
    CompileError,
    FieldError,
    Forbidden,
    Unauthorized,
    ValidationError,
)
from gridweaver.expressions.compiler import compile_expression

from .adapters import FileStorageAdapter, StorageAdapter
from .db import SqlStorageAdapter

logger = logging.getLogger(__name__)

DEFAULT_SECRET_HEADER = "X-GridWeaver-Secret"

# (definition_id, request context) -> allowed?
ReadGuard = Callable[[str, Mapping[str, Any]], bool]


def _formatter_errors(columns: Optional[list[SerializedColumnSpec]]) -> list[FieldError]:
    """Compile every stored formatter so broken expressions never reach storage."""
    errors: list[FieldError] = []
    for i, column in enumerate(columns or []):
        for j, source in enumerate(column.formatter or []):
            try:
                compile_expression(source)
            except CompileError as e:
                errors.append(FieldError(path=f"columnDefs.{i}.formatter.{j}", message=e.reason))
    return errors


def validate_definition(
    payload: Union[SerializedTableDefinition, Mapping[str, Any]],
) -> SerializedTableDefinition:
    """Validate a full definition document.

    Raises:
        ValidationError: Naming every offending field path.
    """
    if isinstance(payload, SerializedTableDefinition):
        definition = payload
    else:
        try:
            definition = SerializedTableDefinition.model_validate(payload)
        except PydanticValidationError as e:
            raise ValidationError.from_pydantic(e) from e

    errors = _formatter_errors(definition.column_defs)
    if errors:
        raise ValidationError(errors)
    return definition


def validate_patch(
    partial: Union[SerializedTableDefinitionPatch, Mapping[str, Any]],
) -> SerializedTableDefinitionPatch:
    """Validate a partial update; only supplied fields are checked."""
    if isinstance(partial, SerializedTableDefinitionPatch):
        patch = partial
    else:
        try:
            patch = SerializedTableDefinitionPatch.model_validate(partial)
        except PydanticValidationError as e:
            raise ValidationError.from_pydantic(e) from e

    errors = _formatter_errors(patch.column_defs)
    if errors:
        raise ValidationError(errors)
    return patch


class DefinitionGateway:
    """Storage-agnostic CRUD for serialized table definitions."""

    def __init__(
        self,
        adapter: StorageAdapter,
        *,
        mutation_secret: Optional[str] = None,
        read_guard: Optional[ReadGuard] = None,
    ):
        self.adapter = adapter
        self.mutation_secret = mutation_secret or None
        self.read_guard = read_guard

    @property
    def mutation_enabled(self) -> bool:
        return self.mutation_secret is not None

    def _check_mutation(self, secret: Optional[str]) -> None:
        if self.mutation_secret is None:
            logger.warning("Rejected mutation: mutations are disabled (no secret configured)")
            raise Unauthorized("Mutations are disabled")
        if secret is None or not hmac.compare_digest(
            secret.encode("utf-8"), self.mutation_secret.encode("utf-8")
        ):
            logger.warning("Rejected mutation: missing or invalid secret")
            raise Unauthorized("Missing or invalid secret")

    def _check_read(self, definition_id: str, context: Optional[Mapping[str, Any]]) -> None:
        if self.read_guard is None:
            return
        if not self.read_guard(definition_id, context or {}):
            logger.warning(f"Read guard rejected access to table definition {definition_id}")
            raise Forbidden(f"Access to table definition '{definition_id}' is forbidden")

    def create(
        self,
        payload: Union[SerializedTableDefinition, Mapping[str, Any]],
        secret: Optional[str] = None,
    ) -> str:
        """Validate and store a new definition, returning its id."""
        self._check_mutation(secret)
        definition = validate_definition(payload)
        definition_id = self.adapter.create(definition.to_document())
        logger.info(f"Created table definition: {definition_id}")
        return definition_id

    def read(
        self,
        definition_id: str,
        context: Optional[Mapping[str, Any]] = None,
    ) -> Optional[SerializedTableDefinition]:
        """Read a definition as a schema instance (None when absent)."""
        document = self.read_document(definition_id, context)
        if document is None:
            return None
        try:
            return SerializedTableDefinition.model_validate(document)
        except PydanticValidationError as e:
            raise ValidationError.from_pydantic(e) from e

    def read_document(
        self,
        definition_id: str,
        context: Optional[Mapping[str, Any]] = None,
    ) -> Optional[dict[str, Any]]:
        """Read the stored document exactly as persisted."""
        self._check_read(definition_id, context)
        return self.adapter.read(definition_id)

    def update(
        self,
        definition_id: str,
        partial: Union[SerializedTableDefinitionPatch, Mapping[str, Any]],
        secret: Optional[str] = None,
    ) -> None:
        """Validate and apply a partial update."""
        self._check_mutation(secret)
        patch = validate_patch(partial)
        self.adapter.update(definition_id, patch.to_document())
        logger.info(f"Updated table definition: {definition_id}")

    def delete(self, definition_id: str, secret: Optional[str] = None) -> None:
        self._check_mutation(secret)
        self.adapter.delete(definition_id)
        logger.info(f"Deleted table definition: {definition_id}")

    def list_ids(self, context: Optional[Mapping[str, Any]] = None) -> list[str]:
        """Ids of stored definitions the read guard allows."""
        ids = self.adapter.list_ids()
        if self.read_guard is None:
            return ids
        return [i for i in ids if self.read_guard(i, context or {})]


def get_secret_header() -> str:
    return os.environ.get("GRIDWEAVER_SECRET_HEADER", DEFAULT_SECRET_HEADER)


def create_storage_adapter() -> StorageAdapter:
    """Build the storage adapter selected by the environment."""
    storage = os.environ.get("GRIDWEAVER_STORAGE", "file").lower()
    if storage == "sql":
        return SqlStorageAdapter(database_url=os.environ.get("GRIDWEAVER_DATABASE_URL", ""))
    if storage != "file":
        logger.warning(f"Unknown GRIDWEAVER_STORAGE '{storage}', using file storage")

    definitions_dir = os.environ.get("GRIDWEAVER_DEFINITIONS_DIR")
    return FileStorageAdapter(Path(definitions_dir) if definitions_dir else None)


# Global gateway instance
_gateway: Optional[DefinitionGateway] = None


def get_definition_gateway() -> DefinitionGateway:
    """Get the global gateway instance, configured from the environment."""
    global _gateway
    if _gateway is None:
        secret = os.environ.get("GRIDWEAVER_MUTATION_SECRET")
        _gateway = DefinitionGateway(create_storage_adapter(), mutation_secret=secret)
        if _gateway.mutation_enabled:
            logger.info("Table definition mutations enabled")
        else:
            logger.warning(
                "GRIDWEAVER_MUTATION_SECRET not set - table definitions are read-only"
            )
    return _gateway


def configure_definition_gateway(gateway: Optional[DefinitionGateway]) -> None:
    """Install a gateway (e.g. one with a read guard); None resets to the environment default."""
    global _gateway
    _gateway = gateway
