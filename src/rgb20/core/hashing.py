"""
Canonical JSON serialization and hashing helpers for RGB20 content ids.

Provides a single canonical JSON policy and SHA-256 helpers to derive stable,
order-insensitive identifiers for schemata, genesis records and transitions.
This module is zero-IO and uses only the Python standard library.

Notes:
    - Canonical JSON:
        - sort_keys=True
        - separators=(",", ":")
        - ensure_ascii=False
    - Hashing is performed over the UTF-8 encoded canonical JSON string.
    - Commitment payloads use numeric wire codes (never enum names) so ids
      cannot drift when a serialized value is renamed.
    - Schema ids are computed through an injectable ``SchemaHasher`` so the
      ledger layer can substitute its own strict encoder; ``hash_schema`` is
      the default collaborator.
"""

from __future__ import annotations

import hashlib
import json
from collections.abc import Callable, Mapping
from typing import Any

__all__ = [
    "SchemaHasher",
    "json_dumps_canonical",
    "hash_payload",
    "hash_schema",
    "hash_node",
]

# Maps a schema commitment payload to its content-derived id.
SchemaHasher = Callable[[Mapping[str, Any]], str]


def json_dumps_canonical(obj: Any) -> str:
    """
    Serialize an object to a canonical JSON string.

    Args:
        obj (Any): JSON-serializable object.

    Returns:
        str: Canonical JSON string with sort_keys=True, compact separators,
        and ensure_ascii=False.

    Notes:
        This function assumes the input is JSON-serializable and does not perform
        coercion of unsupported types.
    """
    return json.dumps(obj, sort_keys=True, separators=(",", ":"), ensure_ascii=False)


def _sha256_hexdigest(s: str) -> str:
    """Compute SHA-256 hex digest of a UTF-8 string."""
    h = hashlib.sha256()
    h.update(s.encode("utf-8"))
    return h.hexdigest()


def hash_payload(payload: Mapping[str, Any]) -> str:
    """
    Compute a stable hash for a mapping by hashing its canonical JSON.

    Args:
        payload (Mapping[str, Any]): Mapping (e.g., dict) to hash.

    Returns:
        str: SHA-256 hex digest over the canonical JSON serialization.

    Notes:
        Re-ordering keys in the mapping does not change the result.
    """
    return _sha256_hexdigest(json_dumps_canonical(dict(payload)))


def hash_schema(payload: Mapping[str, Any]) -> str:
    """
    Default schema id: domain-separated hash of a schema commitment payload.

    Args:
        payload (Mapping[str, Any]): Output of ``Schema.commitment_payload()``.

    Returns:
        str: SHA-256 hex digest.

    Examples:
        >>> from rgb20.core.hashing import hash_schema
        >>> hash_schema({"a": 1}) == hash_schema({"a": 1})
        True
        >>> hash_schema({"a": 1}) == hash_node({"a": 1})
        False
    """
    return hash_payload({"rgb:schema": dict(payload)})


def hash_node(payload: Mapping[str, Any]) -> str:
    """
    Node id (genesis or transition): domain-separated hash of a node commitment payload.

    Args:
        payload (Mapping[str, Any]): Output of a node's ``commitment_payload()``.

    Returns:
        str: SHA-256 hex digest.
    """
    return hash_payload({"rgb:node": dict(payload)})
