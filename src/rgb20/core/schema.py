"""
Pydantic v2 models for RGB20 contract schemata.

Responsibilities
- Define GenesisSchema, TransitionSchema and Schema: occurrence constraints
  for metadata, owned rights and closed rights, plus per-type value
  descriptors and state kinds.
- Produce a code-keyed commitment payload from which schema ids are derived.
- Check concrete occurrence counts of a genesis or transition against the
  declared constraints.

Style
- Zero-IO (stdlib + pydantic only).
- Models are frozen; a schema is a value, never mutated after construction.

References
- grammar: rgb20.core.grammar (enums, occurrence arithmetic, wire codes)
- errors: rgb20.core.errors (UnsatisfiedSchemaRequirement)
- catalog: rgb20.catalog (the three RGB20 variants)
"""

from __future__ import annotations

from collections.abc import Mapping
from enum import Enum
from typing import Any, TypeVar

from pydantic import BaseModel, ConfigDict, Field

from .errors import UnsatisfiedSchemaRequirement
from .grammar import FieldType, Occurrence, OwnedRightType, StateKind, TransitionType, ValueType
from .typing import JsonDict, SchemaId

__all__ = [
    "GenesisSchema",
    "TransitionSchema",
    "Schema",
    "check_occurrences",
]

E = TypeVar("E", bound=Enum)


def _coded(mapping: Mapping[Any, Any]) -> dict[str, Any]:
    """Re-key an enum-keyed mapping by wire code; enum values become their serialized form."""
    out: dict[str, Any] = {}
    for key, value in mapping.items():
        out[str(key.code)] = value.value if isinstance(value, Enum) else value
    return out


def check_occurrences(declared: Mapping[E, Occurrence], counts: Mapping[E, int], where: str) -> None:
    """
    Check actual per-type counts against declared occurrence constraints.

    Args:
        declared (Mapping[Enum, Occurrence]): Declared constraint per type.
        counts (Mapping[Enum, int]): Actual number of occurrences per type.
        where (str): Context label used in error messages (e.g. "genesis.metadata").

    Raises:
        UnsatisfiedSchemaRequirement: If a type is present but undeclared, or a
            declared constraint is not met (including missing required types).
    """
    for kind, n in counts.items():
        if n and kind not in declared:
            raise UnsatisfiedSchemaRequirement(f"{where}: {kind.value} is not allowed here")
    for kind, occ in declared.items():
        n = counts.get(kind, 0)
        if not occ.allows(n):
            raise UnsatisfiedSchemaRequirement(
                f"{where}: {kind.value} occurs {n} time(s), schema requires {occ.value}"
            )


class GenesisSchema(BaseModel):
    """
    Constraints on a contract genesis.

    Attributes:
        metadata (dict[FieldType, Occurrence]): Required/optional metadata fields.
        owned_rights (dict[OwnedRightType, Occurrence]): Rights created by genesis.
        public_rights (list[OwnedRightType]): Publicly disclosable right types.
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    metadata: dict[FieldType, Occurrence] = Field(default_factory=dict)
    owned_rights: dict[OwnedRightType, Occurrence] = Field(default_factory=dict)
    public_rights: list[OwnedRightType] = Field(default_factory=list)

    def commitment_payload(self) -> JsonDict:
        return {
            "metadata": _coded(self.metadata),
            "owned_rights": _coded(self.owned_rights),
            "public_rights": sorted(t.code for t in self.public_rights),
        }

    def check(
        self,
        metadata: Mapping[FieldType, int],
        owned_rights: Mapping[OwnedRightType, int],
        where: str = "genesis",
    ) -> None:
        """Raise UnsatisfiedSchemaRequirement unless the counts satisfy this schema."""
        check_occurrences(self.metadata, metadata, f"{where}.metadata")
        check_occurrences(self.owned_rights, owned_rights, f"{where}.owned_rights")


class TransitionSchema(GenesisSchema):
    """
    Constraints on one state transition type.

    Attributes:
        closes (dict[OwnedRightType, Occurrence]): Rights the transition must consume.

    Notes:
        Inherits metadata/owned_rights/public_rights from GenesisSchema.
    """

    closes: dict[OwnedRightType, Occurrence] = Field(default_factory=dict)

    def commitment_payload(self) -> JsonDict:
        payload = super().commitment_payload()
        payload["closes"] = _coded(self.closes)
        return payload

    def check_transition(
        self,
        metadata: Mapping[FieldType, int],
        owned_rights: Mapping[OwnedRightType, int],
        closes: Mapping[OwnedRightType, int],
        where: str,
    ) -> None:
        """Raise UnsatisfiedSchemaRequirement unless the counts satisfy this schema."""
        self.check(metadata, owned_rights, where)
        check_occurrences(self.closes, closes, f"{where}.closes")


class Schema(BaseModel):
    """
    Complete contract schema.

    Attributes:
        root_id (SchemaId | None): Id of the root schema; None for a root schema.
        genesis (GenesisSchema): Genesis constraints.
        transitions (dict[TransitionType, TransitionSchema]): Allowed transitions.
        field_types (dict[FieldType, ValueType]): Value descriptor per field type.
        owned_right_types (dict[OwnedRightType, StateKind]): State kind per right type.

    Notes:
        The schema id is content-derived and is computed by an injected hasher
        over `commitment_payload()` (see SchemaCatalog.schema_id); it is never
        stored on the model.

    Examples:
        >>> from rgb20.catalog import SchemaCatalog
        >>> from rgb20.core.grammar import SchemaVariant, TransitionType
        >>> simple = SchemaCatalog().build(SchemaVariant.SIMPLE)
        >>> list(simple.transitions) == [TransitionType.TRANSFER]
        True
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    root_id: SchemaId | None = None
    genesis: GenesisSchema
    transitions: dict[TransitionType, TransitionSchema] = Field(default_factory=dict)
    field_types: dict[FieldType, ValueType] = Field(default_factory=dict)
    owned_right_types: dict[OwnedRightType, StateKind] = Field(default_factory=dict)

    def commitment_payload(self) -> JsonDict:
        """Code-keyed, order-insensitive payload from which the schema id is derived."""
        return {
            "root_id": self.root_id,
            "genesis": self.genesis.commitment_payload(),
            "transitions": {
                str(t.code): ts.commitment_payload() for t, ts in self.transitions.items()
            },
            "field_types": _coded(self.field_types),
            "owned_right_types": _coded(self.owned_right_types),
        }

    def transition(self, transition_type: TransitionType) -> TransitionSchema:
        """
        Get the constraints for a transition type.

        Raises:
            UnsatisfiedSchemaRequirement: If the schema does not define the type.
        """
        try:
            return self.transitions[transition_type]
        except KeyError:
            raise UnsatisfiedSchemaRequirement(
                f"transition type {transition_type.value} is not defined by this schema"
            ) from None
