"""
JSON/YAML serialization and deserialization for RGB20 models.

Provides `json_loads` as a thin wrapper around the stdlib `json` module,
re-exports `json_dumps_canonical` from `rgb20.core.hashing` to keep a single
canonical JSON policy, and adds `dump_model` / `load_model` for exporting
schemata, genesis records and cached views as JSON or YAML text.

Notes:
    - Use `json_dumps_canonical` for deterministic JSON strings prior to hashing.
    - YAML goes through PyYAML's safe dumper/loader over the model's JSON-mode
      dump, so both formats carry identical data.
    - Binary strict encoding and bech32 are owned by the ledger layer, not here.
"""

from __future__ import annotations

import json
from typing import Any, Literal, TypeVar

import yaml
from pydantic import BaseModel

# Re-export canonical dumps to keep a single canonicalization policy.
from .hashing import json_dumps_canonical  # noqa: F401

__all__ = [
    "ExportFormat",
    "json_loads",
    "json_dumps_canonical",
    "dump_model",
    "load_model",
]

ExportFormat = Literal["json", "yaml"]

M = TypeVar("M", bound=BaseModel)


def json_loads(s: str) -> Any:
    """
    Deserialize a JSON string to Python objects using the stdlib json module.

    Args:
        s (str): JSON string to parse.

    Returns:
        Any: Decoded Python object (dict, list, str, int, float, bool, or None).
    """
    return json.loads(s)


def dump_model(model: BaseModel, fmt: ExportFormat = "json") -> str:
    """
    Export a model as canonical JSON or as YAML.

    Args:
        model (BaseModel): Any RGB20 pydantic model (Schema, Genesis, Asset, ...).
        fmt (Literal["json","yaml"]): Output format.

    Returns:
        str: Serialized text.

    Raises:
        ValueError: If fmt is not a supported format.

    Examples:
        >>> from rgb20.catalog import SchemaCatalog
        >>> from rgb20.core.grammar import SchemaVariant
        >>> text = dump_model(SchemaCatalog().build(SchemaVariant.SIMPLE), "yaml")
        >>> "transfer" in text
        True
    """
    data = model.model_dump(mode="json")
    if fmt == "json":
        return json_dumps_canonical(data)
    if fmt == "yaml":
        return yaml.safe_dump(data, sort_keys=True, allow_unicode=True)
    raise ValueError(f"unsupported export format {fmt!r}; expected 'json' or 'yaml'")


def load_model(cls: type[M], text: str, fmt: ExportFormat = "json") -> M:
    """
    Parse text produced by `dump_model` back into a validated model.

    Args:
        cls (type[BaseModel]): Target model class.
        text (str): Serialized text.
        fmt (Literal["json","yaml"]): Input format.

    Returns:
        BaseModel: Validated instance of cls.

    Raises:
        ValueError: If fmt is not a supported format.
        pydantic.ValidationError: If the data does not match cls.
    """
    if fmt == "json":
        return cls.model_validate_json(text)
    if fmt == "yaml":
        return cls.model_validate(yaml.safe_load(text))
    raise ValueError(f"unsupported export format {fmt!r}; expected 'json' or 'yaml'")
