"""
Pydantic v2 models for RGB20 ledger data: outpoints, seals, owned right
assignments, genesis records and state transitions.

Responsibilities
- Define the immutable value objects the ledger/consignment layer hands to
  this core (Genesis, Transition) and the pieces they are made of.
- Derive content ids (contract id, transition node id) from code-keyed
  commitment payloads via rgb20.core.hashing.
- Index owned rights by stable RightRef identifiers (node id, right type,
  position) so the projector can compute frontiers as set differences.

Style
- Zero-IO (stdlib + pydantic only).
- Models are frozen; validators raise ValueError-family errors which pydantic
  surfaces as ValidationError.

Notes
- Seals take one of three forms: revealed (txid + vout), witness-relative
  (vout only, resolved against the transition's witness txid) or concealed
  (blinded hash only).
- Assignment amounts may be concealed behind a commitment; checking such
  commitments is deferred to the external validation layer.
"""

from __future__ import annotations

from collections import Counter
from collections.abc import Iterator
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from .constants import U64_MAX
from .grammar import FieldType, OwnedRightType, TransitionType, assert_txid
from .hashing import hash_node
from .typing import ContractId, JsonDict, NodeId, SchemaId, Txid

__all__ = [
    "OutPoint",
    "Seal",
    "Assignment",
    "RightRef",
    "FieldValue",
    "Genesis",
    "Transition",
]


class OutPoint(BaseModel):
    """
    Reference to a specific output of a ledger transaction.

    Attributes:
        txid (str): 64 lowercase hex characters.
        vout (int): Output index (>= 0).

    Examples:
        >>> from rgb20.core.contract import OutPoint
        >>> op = OutPoint.parse("aa" * 32 + ":1")
        >>> op.vout, str(op) == "aa" * 32 + ":1"
        (1, True)
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    txid: Txid
    vout: int = Field(..., ge=0)

    @field_validator("txid", mode="before")
    @classmethod
    def _check_txid(cls, v: Any) -> str:
        return assert_txid(str(v).lower())

    @classmethod
    def parse(cls, s: str) -> OutPoint:
        """
        Parse "<txid>:<vout>".

        Raises:
            ValueError: If the string is not in outpoint form.
        """
        txid, sep, vout = (s or "").strip().rpartition(":")
        if not sep or not vout.isdigit():
            raise ValueError(f"outpoint must be '<txid>:<vout>', got {s!r}")
        return cls(txid=txid, vout=int(vout))

    def __str__(self) -> str:
        return f"{self.txid}:{self.vout}"


class Seal(BaseModel):
    """
    Single-use seal binding an owned right to an outpoint.

    Attributes:
        txid (str | None): Revealed txid; None for witness-relative or concealed seals.
        vout (int | None): Revealed output index; None for concealed seals.
        concealed (str | None): Blinded seal hash; set only for concealed seals.

    Raises:
        pydantic.ValidationError: If the fields do not form exactly one seal kind.
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    txid: Txid | None = None
    vout: int | None = Field(default=None, ge=0)
    concealed: str | None = None

    @field_validator("txid", mode="before")
    @classmethod
    def _check_txid(cls, v: Any) -> Any:
        if v is None:
            return v
        return assert_txid(str(v).lower())

    @model_validator(mode="after")
    def _check_form(self) -> Seal:
        if self.concealed is not None:
            if self.txid is not None or self.vout is not None:
                raise ValueError("concealed seal must not reveal txid/vout")
        elif self.vout is None:
            raise ValueError("revealed seal requires vout")
        return self

    @classmethod
    def revealed(cls, outpoint: OutPoint) -> Seal:
        return cls(txid=outpoint.txid, vout=outpoint.vout)

    @classmethod
    def witness(cls, vout: int) -> Seal:
        """Seal on output `vout` of the (future) witness transaction."""
        return cls(vout=vout)

    @classmethod
    def blinded(cls, concealed: str) -> Seal:
        return cls(concealed=concealed)

    @property
    def is_concealed(self) -> bool:
        return self.concealed is not None

    @property
    def is_witness_relative(self) -> bool:
        return self.concealed is None and self.txid is None

    def outpoint(self, witness_txid: str | None = None) -> OutPoint | None:
        """
        Resolve to an outpoint.

        Returns:
            OutPoint | None: None for concealed seals, or for witness-relative
            seals when no witness txid is given.
        """
        if self.is_concealed or self.vout is None:
            return None
        if self.txid is not None:
            return OutPoint(txid=self.txid, vout=self.vout)
        if witness_txid is None:
            return None
        return OutPoint(txid=witness_txid, vout=self.vout)


class Assignment(BaseModel):
    """
    One owned right instance created by a genesis or transition.

    Attributes:
        right_type (OwnedRightType): Kind of right.
        seal (Seal): Seal controlling the right.
        amount (int | None): Revealed discrete value (assets amount, inflation cap).
        amount_commitment (str | None): Blinded value commitment when the amount is concealed.

    Notes:
        Declarative rights (renomination, open_epoch, burn_replace) carry neither
        amount nor commitment.
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    right_type: OwnedRightType
    seal: Seal
    amount: int | None = Field(default=None, ge=0, le=U64_MAX)
    amount_commitment: str | None = None

    @model_validator(mode="after")
    def _check_value(self) -> Assignment:
        if self.amount is not None and self.amount_commitment is not None:
            raise ValueError("assignment must not carry both a revealed amount and a commitment")
        return self

    @property
    def is_amount_concealed(self) -> bool:
        return self.amount is None and self.amount_commitment is not None


class RightRef(BaseModel):
    """
    Stable opaque identifier of an owned right.

    Attributes:
        node_id (NodeId): Genesis (contract id) or transition node id that created the right.
        right_type (OwnedRightType): Right type.
        index (int): Position among the node's assignments of that right type.
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    node_id: NodeId
    right_type: OwnedRightType
    index: int = Field(..., ge=0)

    def __str__(self) -> str:
        return f"{self.node_id}/{self.right_type.value}#{self.index}"


FieldValue = int | str | OutPoint


def _coded_metadata(metadata: dict[FieldType, list[FieldValue]]) -> JsonDict:
    return {
        str(ft.code): [v.model_dump(mode="json") if isinstance(v, OutPoint) else v for v in values]
        for ft, values in metadata.items()
    }


def _coded_assignments(assignments: list[Assignment]) -> list[JsonDict]:
    coded: list[JsonDict] = []
    for a in assignments:
        entry = a.model_dump(mode="json")
        entry["right_type"] = a.right_type.code
        coded.append(entry)
    return coded


class _Node(BaseModel):
    """Shared metadata/owned-rights accessors for genesis and transitions."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    metadata: dict[FieldType, list[FieldValue]] = Field(default_factory=dict)
    owned_rights: list[Assignment] = Field(default_factory=list)

    @property
    def node_id(self) -> NodeId:  # pragma: no cover - overridden
        raise NotImplementedError

    def field_values(self, field_type: FieldType) -> list[FieldValue]:
        return list(self.metadata.get(field_type, []))

    def first_value(self, field_type: FieldType) -> FieldValue | None:
        values = self.metadata.get(field_type)
        return values[0] if values else None

    def rights_of(self, right_type: OwnedRightType) -> list[Assignment]:
        return [a for a in self.owned_rights if a.right_type is right_type]

    def iter_rights(self) -> Iterator[tuple[RightRef, Assignment]]:
        """Yield every assignment with its RightRef, in declaration order."""
        positions: Counter[OwnedRightType] = Counter()
        node_id = self.node_id
        for a in self.owned_rights:
            ref = RightRef(node_id=node_id, right_type=a.right_type, index=positions[a.right_type])
            positions[a.right_type] += 1
            yield ref, a

    def metadata_counts(self) -> Counter[FieldType]:
        return Counter({ft: len(values) for ft, values in self.metadata.items()})

    def rights_counts(self) -> Counter[OwnedRightType]:
        return Counter(a.right_type for a in self.owned_rights)


class Genesis(_Node):
    """
    Founding record of a contract.

    Attributes:
        schema_id (SchemaId): Id of the schema the contract commits to.
        network (str): Ledger network label (e.g. "signet", "bitcoin").
        metadata (dict[FieldType, list[FieldValue]]): Genesis metadata.
        owned_rights (list[Assignment]): Rights created at genesis.

    Notes:
        contract_id is the content hash of the genesis commitment payload and
        doubles as the genesis node id.
    """

    schema_id: SchemaId
    network: str = "signet"

    def commitment_payload(self) -> JsonDict:
        return {
            "schema_id": self.schema_id,
            "network": self.network,
            "metadata": _coded_metadata(self.metadata),
            "owned_rights": _coded_assignments(self.owned_rights),
        }

    @property
    def contract_id(self) -> ContractId:
        return ContractId(hash_node(self.commitment_payload()))

    @property
    def node_id(self) -> NodeId:
        return NodeId(self.contract_id)


class Transition(_Node):
    """
    State transition closing existing rights and creating new ones.

    Attributes:
        contract_id (ContractId): Contract the transition belongs to.
        transition_type (TransitionType): Transition type.
        closes (list[RightRef]): Rights consumed by this transition.
        witness_txid (Txid | None): Witness transaction committing the
            transition; None while the transition is still a draft.

    Notes:
        node_id excludes witness_txid, so a draft and its sealed form share an id.
    """

    contract_id: ContractId
    transition_type: TransitionType
    closes: list[RightRef] = Field(default_factory=list)
    witness_txid: Txid | None = None

    @field_validator("witness_txid", mode="before")
    @classmethod
    def _check_witness(cls, v: Any) -> Any:
        if v is None:
            return v
        return assert_txid(str(v).lower(), "witness_txid")

    def commitment_payload(self) -> JsonDict:
        return {
            "contract_id": self.contract_id,
            "transition_type": self.transition_type.code,
            "metadata": _coded_metadata(self.metadata),
            "closes": [
                {"node_id": r.node_id, "right_type": r.right_type.code, "index": r.index}
                for r in self.closes
            ],
            "owned_rights": _coded_assignments(self.owned_rights),
        }

    @property
    def node_id(self) -> NodeId:
        return NodeId(hash_node(self.commitment_payload()))

    def closes_counts(self) -> Counter[OwnedRightType]:
        return Counter(r.right_type for r in self.closes)

    def sealed(self, witness_txid: str) -> Transition:
        """Return a copy committed by `witness_txid`."""
        return self.model_copy(update={"witness_txid": assert_txid(witness_txid, "witness_txid")})
