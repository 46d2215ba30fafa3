"""Definition loader - fetch a serialized definition over HTTP and hydrate it.

Transport failures are raised as TransportError, malformed documents as
ValidationError. Neither is ever turned into an empty table.
"""

import logging
from typing import Any, Mapping, Optional

import httpx
from pydantic import ValidationError as PydanticValidationError

from gridweaver.definitions.live import ActionCallback, LiveTableDefinition
from gridweaver.definitions.schemas import SerializedTableDefinition
from gridweaver.errors import TransportError, ValidationError

from .hydrator import hydrate

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 30.0


async def fetch_table_definition(
    url: str,
    *,
    client: Optional[httpx.AsyncClient] = None,
    timeout: float = DEFAULT_TIMEOUT,
) -> SerializedTableDefinition:
    """Fetch and validate a serialized table definition.

    Raises:
        TransportError: On network failure, non-2xx status or a non-JSON body
        ValidationError: If the document does not match the schema
    """
    try:
        if client is not None:
            response = await client.get(url)
        else:
            async with httpx.AsyncClient(timeout=timeout) as own_client:
                response = await own_client.get(url)
        response.raise_for_status()
        document = response.json()
    except httpx.HTTPStatusError as e:
        status = e.response.status_code
        logger.error(f"Failed to fetch table definition {url}: HTTP {status}")
        raise TransportError(
            f"Failed to fetch table definition: {e.response.reason_phrase or status}",
            status_code=status,
        ) from e
    except httpx.HTTPError as e:
        logger.error(f"Failed to fetch table definition {url}: {e}")
        raise TransportError(f"Failed to fetch table definition: {e}") from e
    except ValueError as e:
        logger.error(f"Table definition {url} is not valid JSON: {e}")
        raise TransportError(f"Table definition is not valid JSON: {e}") from e

    try:
        return SerializedTableDefinition.model_validate(document)
    except PydanticValidationError as e:
        raise ValidationError.from_pydantic(e) from e


async def load_table_definition(
    url: str,
    renderer_registry: Mapping[str, Any],
    action_callback: Optional[ActionCallback] = None,
    *,
    client: Optional[httpx.AsyncClient] = None,
    base_url: Optional[str] = None,
    strict: bool = False,
) -> LiveTableDefinition:
    """Fetch a definition and hydrate it in one step.

    The same ``client`` is reused for page fetches when given.
    """
    serialized = await fetch_table_definition(url, client=client)
    logger.info(f"Loaded table definition from {url} ({len(serialized.column_defs)} columns)")
    return hydrate(
        serialized,
        renderer_registry,
        action_callback,
        strict=strict,
        base_url=base_url,
        client=client,
    )
