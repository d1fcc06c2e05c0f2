"""
RGB20 schema catalog: builds the three contract schema variants and checks
that a restricted variant is a legal narrowing of its root.

Variants
- full: root schema. Secondary issuance, epochs, burn, burn & replace,
  renomination and rights split.
- inflationary: restricted. Same genesis; secondary issuance and burn are
  kept, replacement is dropped (no burn_and_replace transition, epochs
  produce only burn rights, rights split cannot move epoch rights).
- simple: restricted. Genesis grants asset allocations only; the single
  allowed transition is transfer.

Restriction rule (verify_restriction)
- Every field, right and transition type used by the restricted schema
  must be known to the root.
- Each occurrence range of the restricted schema may not exceed the
  root's upper bound for that type. Lower bounds are free: a restriction
  may relax a required element or drop it entirely, as it may drop whole
  transition types.
- Value types and right state kinds must agree with the root.

The catalog is referentially transparent: the same variant always yields an
equal schema, and therefore the same content-derived id.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from enum import Enum

from .core.errors import SchemaMismatch, WrongSchemaId
from .core.grammar import (
    FieldType,
    Occurrence,
    OwnedRightType,
    SchemaVariant,
    StateKind,
    TransitionType,
    ValueType,
)
from .core.hashing import SchemaHasher, hash_schema
from .core.schema import GenesisSchema, Schema, TransitionSchema
from .core.typing import SchemaId

__all__ = [
    "SchemaCatalog",
    "build",
    "verify_restriction",
]

logger = logging.getLogger(__name__)

F = FieldType
R = OwnedRightType
T = TransitionType
O = Occurrence  # noqa: E741


def _genesis(variant: SchemaVariant) -> GenesisSchema:
    metadata = {
        F.TICKER: O.ONCE,
        F.NAME: O.ONCE,
        F.RICARDIAN_CONTRACT: O.NONE_OR_ONCE,
        F.PRECISION: O.ONCE,
        F.TIMESTAMP: O.ONCE,
        # Needed to verify the pedersen commitments of the allocations
        F.ISSUED_SUPPLY: O.ONCE,
    }
    if variant is SchemaVariant.SIMPLE:
        return GenesisSchema(metadata=metadata, owned_rights={R.ASSETS: O.NONE_OR_MORE})
    return GenesisSchema(
        metadata=metadata,
        owned_rights={
            R.INFLATION: O.NONE_OR_MORE,
            R.OPEN_EPOCH: O.NONE_OR_ONCE,
            R.ASSETS: O.NONE_OR_MORE,
            R.RENOMINATION: O.NONE_OR_ONCE,
        },
    )


def _issue() -> TransitionSchema:
    return TransitionSchema(
        metadata={F.ISSUED_SUPPLY: O.ONCE},
        closes={R.INFLATION: O.ONCE_OR_MORE},
        owned_rights={
            R.INFLATION: O.NONE_OR_MORE,
            R.OPEN_EPOCH: O.NONE_OR_ONCE,
            R.ASSETS: O.NONE_OR_MORE,
        },
    )


def _transfer() -> TransitionSchema:
    return TransitionSchema(
        closes={R.ASSETS: O.ONCE_OR_MORE},
        owned_rights={R.ASSETS: O.NONE_OR_MORE},
    )


def _epoch(with_next_epoch: bool) -> TransitionSchema:
    owned = {R.BURN_REPLACE: O.NONE_OR_ONCE}
    if with_next_epoch:
        owned = {R.OPEN_EPOCH: O.NONE_OR_ONCE, **owned}
    return TransitionSchema(closes={R.OPEN_EPOCH: O.ONCE}, owned_rights=owned)


def _burn_metadata() -> dict[FieldType, Occurrence]:
    return {
        F.BURNED_SUPPLY: O.ONCE,
        # Burned assets should be aggregated into a single UTXO, but a burn
        # after a mistake may have to cover several
        F.BURN_UTXO: O.ONCE_OR_MORE,
        F.HISTORY_PROOF_FORMAT: O.ONCE,
        F.HISTORY_PROOF: O.NONE_OR_MORE,
    }


def _burn() -> TransitionSchema:
    return TransitionSchema(
        metadata=_burn_metadata(),
        closes={R.BURN_REPLACE: O.ONCE},
        owned_rights={R.BURN_REPLACE: O.NONE_OR_ONCE},
    )


def _burn_and_replace() -> TransitionSchema:
    return TransitionSchema(
        metadata={**_burn_metadata(), F.ISSUED_SUPPLY: O.ONCE},
        closes={R.BURN_REPLACE: O.ONCE},
        owned_rights={R.BURN_REPLACE: O.NONE_OR_ONCE, R.ASSETS: O.ONCE_OR_MORE},
    )


def _renomination() -> TransitionSchema:
    return TransitionSchema(
        metadata={
            F.TICKER: O.NONE_OR_ONCE,
            F.NAME: O.NONE_OR_ONCE,
            F.RICARDIAN_CONTRACT: O.NONE_OR_ONCE,
            F.PRECISION: O.NONE_OR_ONCE,
        },
        closes={R.RENOMINATION: O.ONCE},
        owned_rights={R.RENOMINATION: O.NONE_OR_ONCE},
    )


def _rights_split(with_epoch: bool) -> TransitionSchema:
    # Splits rights that were allocated to the same UTXO; without it either
    # the assets or the co-located rights would be lost on spend.
    rights = {
        R.INFLATION: O.NONE_OR_MORE,
        R.ASSETS: O.NONE_OR_MORE,
        R.OPEN_EPOCH: O.NONE_OR_ONCE,
        R.BURN_REPLACE: O.NONE_OR_MORE,
        R.RENOMINATION: O.NONE_OR_ONCE,
    }
    if not with_epoch:
        del rights[R.OPEN_EPOCH]
    return TransitionSchema(closes=dict(rights), owned_rights=dict(rights))


_FIELD_TYPES: dict[FieldType, ValueType] = {
    # 26^8 > 208 trillion tickers from the latin alphabet alone
    F.TICKER: ValueType.ASCII_STRING,
    F.NAME: ValueType.ASCII_STRING,
    # Contract text, URL, or hex double-SHA256 of the text optionally followed by "\n<url>"
    F.RICARDIAN_CONTRACT: ValueType.ASCII_STRING,
    F.PRECISION: ValueType.U8,
    # Allocated amounts are hidden behind pedersen commitments
    F.ISSUED_SUPPLY: ValueType.U64,
    F.BURNED_SUPPLY: ValueType.U64,
    F.TIMESTAMP: ValueType.I64,
    F.HISTORY_PROOF: ValueType.BYTES,
    F.HISTORY_PROOF_FORMAT: ValueType.U8,
    F.BURN_UTXO: ValueType.OUTPOINT,
}

_RIGHT_STATES: dict[OwnedRightType, StateKind] = {
    # Remaining issuance allowed on this path; u64::MAX / n for "no limit"
    R.INFLATION: StateKind.DISCRETE_FINITE_FIELD,
    R.ASSETS: StateKind.DISCRETE_FINITE_FIELD,
    R.OPEN_EPOCH: StateKind.DECLARATIVE,
    R.BURN_REPLACE: StateKind.DECLARATIVE,
    R.RENOMINATION: StateKind.DECLARATIVE,
}

_SIMPLE_FIELDS = (
    F.TICKER,
    F.NAME,
    F.RICARDIAN_CONTRACT,
    F.PRECISION,
    F.ISSUED_SUPPLY,
    F.TIMESTAMP,
)


def _check_ranges(
    sub: Mapping[Enum, Occurrence], root: Mapping[Enum, Occurrence], where: str
) -> None:
    for kind, occ in sub.items():
        label = f"{where}:{kind.value}"
        if kind not in root:
            raise SchemaMismatch(label, "type is unknown to the root schema")
        if not root[kind].caps(occ):
            raise SchemaMismatch(
                label, f"range {occ.value} exceeds the upper bound of root range {root[kind].value}"
            )


def _check_descriptors(sub: Mapping[Enum, Enum], root: Mapping[Enum, Enum], where: str) -> None:
    for kind, desc in sub.items():
        label = f"{where}:{kind.value}"
        if kind not in root:
            raise SchemaMismatch(label, "type is unknown to the root schema")
        if root[kind] is not desc:
            raise SchemaMismatch(label, f"{desc.value} differs from root {root[kind].value}")


def verify_restriction(sub: Schema, root: Schema) -> None:
    """
    Check that `sub` is a legal narrowing of `root`.

    Args:
        sub (Schema): Restricted schema.
        root (Schema): Root schema.

    Raises:
        SchemaMismatch: On the first offending type; `offending` names it.

    Examples:
        >>> from rgb20.catalog import SchemaCatalog, verify_restriction
        >>> from rgb20.core.grammar import SchemaVariant
        >>> cat = SchemaCatalog()
        >>> verify_restriction(cat.build(SchemaVariant.SIMPLE), cat.build(SchemaVariant.FULL))
    """
    _check_descriptors(sub.field_types, root.field_types, "field_types")
    _check_descriptors(sub.owned_right_types, root.owned_right_types, "owned_right_types")
    _check_ranges(sub.genesis.metadata, root.genesis.metadata, "genesis.metadata")
    _check_ranges(sub.genesis.owned_rights, root.genesis.owned_rights, "genesis.owned_rights")
    for kind in sub.genesis.public_rights:
        if kind not in root.genesis.public_rights:
            raise SchemaMismatch(f"genesis.public_rights:{kind.value}", "not public in root")
    for t, ts in sub.transitions.items():
        if t not in root.transitions:
            raise SchemaMismatch(f"transition:{t.value}", "transition is unknown to the root schema")
        rs = root.transitions[t]
        where = f"transition:{t.value}"
        _check_ranges(ts.metadata, rs.metadata, f"{where}.metadata")
        _check_ranges(ts.closes, rs.closes, f"{where}.closes")
        _check_ranges(ts.owned_rights, rs.owned_rights, f"{where}.owned_rights")


class SchemaCatalog:
    """
    Builder for the RGB20 schema variants.

    Args:
        hasher (SchemaHasher): Collaborator computing a schema id from a
            schema commitment payload. Defaults to rgb20.core.hashing.hash_schema;
            the ledger layer injects its strict encoder here.

    Examples:
        >>> from rgb20.catalog import SchemaCatalog
        >>> from rgb20.core.grammar import SchemaVariant
        >>> cat = SchemaCatalog()
        >>> full = cat.build(SchemaVariant.FULL)
        >>> full.root_id is None
        True
        >>> cat.build(SchemaVariant.SIMPLE).root_id == cat.root_id
        True
    """

    def __init__(self, hasher: SchemaHasher = hash_schema) -> None:
        self._hasher = hasher

    def schema_id(self, schema: Schema) -> SchemaId:
        """Content-derived id of `schema` computed by the injected hasher."""
        return SchemaId(self._hasher(schema.commitment_payload()))

    @property
    def root_id(self) -> SchemaId:
        return self.schema_id(self.build(SchemaVariant.FULL))

    def build(self, variant: SchemaVariant) -> Schema:
        """
        Build the schema for `variant`.

        Args:
            variant (SchemaVariant): full, inflationary or simple.

        Returns:
            Schema: Freshly built schema; restricted variants reference the root id.
        """
        if variant is SchemaVariant.FULL:
            return Schema(
                genesis=_genesis(variant),
                transitions={
                    T.ISSUE: _issue(),
                    T.TRANSFER: _transfer(),
                    T.EPOCH: _epoch(with_next_epoch=True),
                    T.BURN: _burn(),
                    T.BURN_AND_REPLACE: _burn_and_replace(),
                    T.RENOMINATION: _renomination(),
                    T.RIGHTS_SPLIT: _rights_split(with_epoch=True),
                },
                field_types=dict(_FIELD_TYPES),
                owned_right_types=dict(_RIGHT_STATES),
            )
        if variant is SchemaVariant.INFLATIONARY:
            return Schema(
                root_id=self.root_id,
                genesis=_genesis(variant),
                transitions={
                    T.ISSUE: _issue(),
                    T.TRANSFER: _transfer(),
                    T.EPOCH: _epoch(with_next_epoch=False),
                    T.BURN: _burn(),
                    T.RENOMINATION: _renomination(),
                    T.RIGHTS_SPLIT: _rights_split(with_epoch=False),
                },
                field_types=dict(_FIELD_TYPES),
                owned_right_types=dict(_RIGHT_STATES),
            )
        return Schema(
            root_id=self.root_id,
            genesis=_genesis(variant),
            transitions={T.TRANSFER: _transfer()},
            field_types={f: _FIELD_TYPES[f] for f in _SIMPLE_FIELDS},
            owned_right_types={R.ASSETS: _RIGHT_STATES[R.ASSETS]},
        )

    def ids(self) -> dict[SchemaVariant, SchemaId]:
        """Schema id of every variant."""
        return {v: self.schema_id(self.build(v)) for v in SchemaVariant}

    def variant_of(self, schema_id: str) -> SchemaVariant:
        """
        Identify the variant a schema id belongs to.

        Raises:
            WrongSchemaId: If the id matches none of the RGB20 schemata.
        """
        for variant, sid in self.ids().items():
            if sid == schema_id:
                return variant
        raise WrongSchemaId(f"schema {schema_id} is not an RGB20 schema")

    def verify(self, variant: SchemaVariant) -> None:
        """Check a restricted variant against the root (no-op for the root itself)."""
        if variant is SchemaVariant.FULL:
            return
        verify_restriction(self.build(variant), self.build(SchemaVariant.FULL))
        logger.debug("schema variant %s verified against root", variant.value)


def build(variant: SchemaVariant) -> Schema:
    """Build `variant` with the default hasher."""
    return SchemaCatalog().build(variant)
