"""
Lightweight typing aliases used across RGB20 models.

Provides minimal NewTypes and aliases to improve readability and static checks.
This module contains no runtime logic and is zero-IO.

Notes:
    - All ids are lowercase hex SHA-256 digests produced by canonical
      hashing (see rgb20.core.hashing) or supplied by the ledger layer (Txid).

Examples:
    >>> from rgb20.core.typing import NodeId, JsonDict
    >>> def short(node: NodeId) -> str:
    ...     return node[:8]
    >>> short(NodeId("ab" * 32))
    'abababab'
"""

from __future__ import annotations

from typing import Any, NewType

__all__ = [
    "SchemaId",
    "ContractId",
    "NodeId",
    "Txid",
    "JsonDict",
]

SchemaId = NewType("SchemaId", str)
# Contract id equals the genesis node id.
ContractId = NewType("ContractId", str)
NodeId = NewType("NodeId", str)
Txid = NewType("Txid", str)

# Convenient JSON-like mapping alias. Kept intentionally broad for serde boundaries.
JsonDict = dict[str, Any]
