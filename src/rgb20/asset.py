"""
Projected asset view and the projector that folds ledger data into it.

Responsibilities
- Asset / Allocation: read-only cache of a contract's state (nomination,
  allocations, supply counters, capability flags).
- ContractStateProjector: folds a genesis and an unordered set of accepted
  transitions into an Asset, re-checking domain consistency on the way.

Frontier
- Every owned right is indexed by its RightRef. The frontier (unspent
  rights) is the set of created refs minus the set of closed refs; nothing
  holds references between transitions.
- Transitions are folded in an order consistent with their closes
  dependencies, so a right is always created before it is closed.

Limitations
- Concealed amounts (commitments) are not verified here; asset allocations
  with concealed amounts or seals are skipped from `known_allocations`.
- `is_total_supply_known` is best effort: false iff some unspent inflation
  right carries the unbounded cap.

Examples
--------
>>> from rgb20.asset import ContractStateProjector
>>> projector = ContractStateProjector()
>>> # asset = projector.project(genesis, transitions)
>>> # asset.spendable_supply, asset.allocations_frame()
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import NamedTuple

import polars as pl
from pydantic import BaseModel, ConfigDict, Field

from .catalog import SchemaCatalog
from .config import Rgb20Settings
from .core.constants import PRECISION_MAX, TIMESTAMP_MAX, U64_MAX, UNBOUNDED_INFLATION_CAP
from .core.contract import Assignment, Genesis, OutPoint, RightRef, Transition, _Node
from .core.errors import (
    BurnSealConfidential,
    EpochSealConfidential,
    GenesisSeal,
    InflationAssignmentConfidential,
    InsufficientRights,
    NotAllEpochsExposed,
    UnsatisfiedSchemaRequirement,
)
from .core.grammar import FieldType, OwnedRightType, SchemaVariant, TransitionType
from .core.schema import Schema
from .core.typing import ContractId, NodeId, SchemaId
from .nomination import NominationTracker, Renomination

__all__ = [
    "Allocation",
    "Asset",
    "ContractStateProjector",
]

logger = logging.getLogger(__name__)

R = OwnedRightType
T = TransitionType


class Allocation(BaseModel):
    """
    One unspent owned right located at an outpoint.

    Attributes:
        right (RightRef): Identifier of the right.
        outpoint (OutPoint | None): Controlling outpoint; None when the seal
            is concealed (only possible for non-asset rights).
        amount (int | None): Revealed value (asset amount or inflation cap);
            None for declarative rights.
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    right: RightRef
    outpoint: OutPoint | None = None
    amount: int | None = Field(default=None, ge=0, le=U64_MAX)

    @property
    def right_type(self) -> OwnedRightType:
        return self.right.right_type


class Asset(BaseModel):
    """
    Cached view of an RGB20 contract, produced by ContractStateProjector.

    Attributes:
        contract_id (ContractId): Contract id (genesis node id).
        schema_id (SchemaId): Schema the genesis commits to.
        variant (SchemaVariant): Schema variant matching schema_id.
        network (str): Ledger network label from genesis.
        issued_at (datetime): Genesis timestamp (UTC).
        ticker (str): Current ticker (after renominations).
        name (str): Current name.
        ricardian_contract (str | None): Current contract text.
        precision (int): Current decimal precision.
        renominations (list[Renomination]): Renomination history, epoch 1 first.
        known_allocations (list[Allocation]): Unspent revealed asset allocations.
        known_rights (list[Allocation]): Unspent non-asset rights.
        epochs (list[NodeId]): Epoch transitions, in fold order.
        known_supply (int): Sum of issued supply over genesis, issue and
            burn & replace transitions.
        max_supply (int): known_supply plus remaining inflation caps (saturating).
        burned_supply (int): Sum of burned supply of burn transitions.
        replaced_supply (int): Sum of burned supply of burn & replace transitions.
        is_total_supply_known (bool): Best-effort flag (see module notes).
        can_be_renominated, can_be_inflated, can_be_burned, can_be_replaced (bool):
            Structural capability flags derived from unspent rights.
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    contract_id: ContractId
    schema_id: SchemaId
    variant: SchemaVariant
    network: str
    issued_at: datetime

    ticker: str
    name: str
    ricardian_contract: str | None = None
    precision: int = Field(..., ge=0, le=PRECISION_MAX)
    renominations: list[Renomination] = Field(default_factory=list)

    known_allocations: list[Allocation] = Field(default_factory=list)
    known_rights: list[Allocation] = Field(default_factory=list)
    epochs: list[NodeId] = Field(default_factory=list)

    known_supply: int = Field(..., ge=0)
    max_supply: int = Field(..., ge=0, le=U64_MAX)
    burned_supply: int = Field(default=0, ge=0)
    replaced_supply: int = Field(default=0, ge=0)
    is_total_supply_known: bool = True

    can_be_renominated: bool = False
    can_be_inflated: bool = False
    can_be_burned: bool = False
    can_be_replaced: bool = False

    @property
    def spendable_supply(self) -> int:
        """Supply still in circulation: known minus burned and replaced."""
        return self.known_supply - self.burned_supply - self.replaced_supply

    def allocations_by_outpoint(self) -> dict[OutPoint, list[Allocation]]:
        out: dict[OutPoint, list[Allocation]] = {}
        for a in self.known_allocations:
            if a.outpoint is not None:
                out.setdefault(a.outpoint, []).append(a)
        return out

    def rights_at(
        self, outpoint: OutPoint, right_type: OwnedRightType | None = None
    ) -> list[Allocation]:
        """All unspent rights (assets included) controlled by `outpoint`."""
        return [
            a
            for a in (*self.known_allocations, *self.known_rights)
            if a.outpoint == outpoint and (right_type is None or a.right_type is right_type)
        ]

    def allocations_frame(self) -> pl.DataFrame:
        """
        Known allocations as a polars DataFrame.

        Returns:
            pl.DataFrame: Columns outpoint, txid, vout, amount, node_id; one
            row per allocation, in projection order.
        """
        rows = [
            {
                "outpoint": str(a.outpoint),
                "txid": a.outpoint.txid,
                "vout": a.outpoint.vout,
                "amount": a.amount,
                "node_id": a.right.node_id,
            }
            for a in self.known_allocations
            if a.outpoint is not None
        ]
        return pl.DataFrame(
            rows,
            schema={
                "outpoint": pl.String,
                "txid": pl.String,
                "vout": pl.UInt32,
                "amount": pl.UInt64,
                "node_id": pl.String,
            },
        )


class _Created(NamedTuple):
    assignment: Assignment
    outpoint: OutPoint | None


@dataclass
class _Fold:
    """Mutable accumulator private to a single project() call."""

    created: dict[RightRef, _Created] = field(default_factory=dict)
    spent: set[RightRef] = field(default_factory=set)
    nodes: set[NodeId] = field(default_factory=set)
    epoch_of: dict[RightRef, NodeId] = field(default_factory=dict)
    epochs: list[NodeId] = field(default_factory=list)
    known_supply: int = 0
    burned_supply: int = 0
    replaced_supply: int = 0

    def register(self, node: _Node, witness_txid: str | None = None) -> None:
        for ref, a in node.iter_rights():
            self.created[ref] = _Created(a, a.seal.outpoint(witness_txid))
        self.nodes.add(node.node_id)

    def unspent(self) -> list[tuple[RightRef, _Created]]:
        return [(ref, c) for ref, c in self.created.items() if ref not in self.spent]


def _amount(node: _Node, field_type: FieldType, where: str) -> int:
    value = node.first_value(field_type)
    if isinstance(value, bool) or not isinstance(value, int) or not 0 <= value <= U64_MAX:
        raise UnsatisfiedSchemaRequirement(
            f"{where}: {field_type.value} must be a u64 amount, got {value!r}"
        )
    return value


def _check_declarative_seals(node: _Node, node_id: str) -> None:
    for a in node.owned_rights:
        if not a.seal.is_concealed:
            continue
        if a.right_type in (R.OPEN_EPOCH, R.RENOMINATION):
            raise EpochSealConfidential(node_id, f"{a.right_type.value} seal is concealed")
        if a.right_type is R.BURN_REPLACE:
            raise BurnSealConfidential(node_id, "burn_replace seal is concealed")


def _ordered(contract_id: ContractId, transitions: Sequence[Transition]) -> list[Transition]:
    """Order transitions so that every closed right is created first; input order breaks ties."""
    by_id: dict[NodeId, Transition] = {}
    for t in transitions:
        nid = t.node_id
        if t.contract_id != contract_id:
            raise UnsatisfiedSchemaRequirement(f"transition {nid} belongs to contract {t.contract_id}")
        if t.witness_txid is None:
            raise UnsatisfiedSchemaRequirement(f"transition {nid} is not committed to a witness")
        if nid in by_id:
            raise UnsatisfiedSchemaRequirement(f"transition {nid} is supplied more than once")
        by_id[nid] = t

    deps = {nid: {r.node_id for r in t.closes if r.node_id in by_id} for nid, t in by_id.items()}
    order: list[Transition] = []
    done: set[NodeId] = set()
    remaining = list(by_id)
    while remaining:
        ready = [nid for nid in remaining if deps[nid] <= done]
        if not ready:
            raise UnsatisfiedSchemaRequirement(
                f"transitions {', '.join(sorted(remaining))} form a closes cycle"
            )
        for nid in ready:
            order.append(by_id[nid])
            done.add(nid)
        remaining = [nid for nid in remaining if nid not in done]
    return order


class ContractStateProjector:
    """
    Folds genesis plus accepted transitions into an Asset.

    Args:
        catalog (SchemaCatalog | None): Catalog used to recognize the schema variant.
        settings (Rgb20Settings | None): Timestamp floor; Rgb20Settings.load() when None.

    Notes:
        Stateless between calls; project() may run concurrently for
        different contracts. Any failure aborts the whole projection.
    """

    def __init__(
        self, catalog: SchemaCatalog | None = None, settings: Rgb20Settings | None = None
    ) -> None:
        self._catalog = catalog or SchemaCatalog()
        self._settings = settings or Rgb20Settings.load()
        self._tracker = NominationTracker(self._catalog, self._settings)

    def project(self, genesis: Genesis, transitions: Sequence[Transition] = ()) -> Asset:
        """
        Project the contract state.

        Args:
            genesis (Genesis): Contract genesis.
            transitions (Sequence[Transition]): Accepted, witness-committed
                transitions of this contract, in any order.

        Returns:
            Asset: Fresh cached view.

        Raises:
            WrongSchemaId: If genesis does not commit to an RGB20 schema.
            UnsatisfiedSchemaRequirement: On missing/malformed metadata, broken
                occurrence constraints, foreign or uncommitted transitions.
            GenesisSeal: If a genesis seal is witness-relative.
            EpochSealConfidential, BurnSealConfidential,
            InflationAssignmentConfidential: If required data is concealed.
            NotAllEpochsExposed: If a burn refers to an epoch that was not supplied.
            InsufficientRights: On double spends or unknown/insufficient rights.
        """
        variant = self._catalog.variant_of(genesis.schema_id)
        schema = self._catalog.build(variant)
        contract_id = genesis.contract_id
        nomination = self._tracker.from_genesis(genesis)

        state = _Fold()
        state.known_supply = _amount(genesis, FieldType.ISSUED_SUPPLY, "genesis")
        issued_at = self._issued_at(genesis)
        schema.genesis.check(genesis.metadata_counts(), genesis.rights_counts())
        for a in genesis.owned_rights:
            if a.seal.is_witness_relative:
                raise GenesisSeal(f"genesis {a.right_type.value} seal refers to a witness transaction")
        _check_declarative_seals(genesis, contract_id)
        state.register(genesis)

        ordered = _ordered(contract_id, transitions)
        for t in ordered:
            self._fold(state, schema, t)

        if state.burned_supply + state.replaced_supply > state.known_supply:
            raise UnsatisfiedSchemaRequirement(
                f"burned ({state.burned_supply}) and replaced ({state.replaced_supply}) supply "
                f"exceed known supply ({state.known_supply})"
            )

        renominations = self._tracker.chain(genesis, ordered, nomination)
        if renominations:
            nomination = renominations[-1].nomination

        allocations: list[Allocation] = []
        rights: list[Allocation] = []
        caps = 0
        unbounded = False
        concealed = 0
        for ref, c in state.unspent():
            a = c.assignment
            if ref.right_type is R.ASSETS:
                if c.outpoint is None or a.amount is None:
                    concealed += 1
                    continue
                allocations.append(Allocation(right=ref, outpoint=c.outpoint, amount=a.amount))
                continue
            if ref.right_type is R.INFLATION:
                if a.amount is None:
                    raise InflationAssignmentConfidential(ref.node_id, "unspent inflation cap is concealed")
                caps += a.amount
                unbounded = unbounded or a.amount == UNBOUNDED_INFLATION_CAP
            rights.append(Allocation(right=ref, outpoint=c.outpoint, amount=a.amount))
        if concealed:
            logger.debug("skipped %d concealed asset allocation(s) of %s", concealed, contract_id)

        present = {r.right_type for r in rights}
        asset = Asset(
            contract_id=contract_id,
            schema_id=genesis.schema_id,
            variant=variant,
            network=genesis.network,
            issued_at=issued_at,
            ticker=nomination.ticker,
            name=nomination.name,
            ricardian_contract=nomination.ricardian_contract,
            precision=nomination.decimal_precision,
            renominations=renominations,
            known_allocations=allocations,
            known_rights=rights,
            epochs=list(state.epochs),
            known_supply=state.known_supply,
            max_supply=min(U64_MAX, state.known_supply + caps),
            burned_supply=state.burned_supply,
            replaced_supply=state.replaced_supply,
            is_total_supply_known=not unbounded,
            can_be_renominated=R.RENOMINATION in present,
            can_be_inflated=R.INFLATION in present,
            can_be_burned=R.BURN_REPLACE in present,
            can_be_replaced=variant is SchemaVariant.FULL and R.BURN_REPLACE in present,
        )
        logger.info(
            "projected %s (%s): %d transition(s), %d allocation(s), known supply %d",
            asset.ticker,
            variant.value,
            len(ordered),
            len(allocations),
            asset.known_supply,
        )
        return asset

    def _issued_at(self, genesis: Genesis) -> datetime:
        ts = genesis.first_value(FieldType.TIMESTAMP)
        if isinstance(ts, bool) or not isinstance(ts, int):
            raise UnsatisfiedSchemaRequirement(f"genesis: timestamp must be an integer, got {ts!r}")
        if ts < self._settings.timestamp_floor:
            raise UnsatisfiedSchemaRequirement(
                f"genesis: timestamp {ts} precedes {self._settings.timestamp_floor}"
            )
        if ts > TIMESTAMP_MAX:
            raise UnsatisfiedSchemaRequirement(f"genesis: timestamp {ts} exceeds {TIMESTAMP_MAX}")
        try:
            return datetime.fromtimestamp(ts, tz=timezone.utc)
        except (OverflowError, OSError, ValueError):
            raise UnsatisfiedSchemaRequirement(
                f"genesis: timestamp {ts} is not a representable date"
            ) from None

    def _fold(self, state: _Fold, schema: Schema, t: Transition) -> None:
        nid = t.node_id
        where = f"transition {nid}"
        schema.transition(t.transition_type).check_transition(
            t.metadata_counts(), t.rights_counts(), t.closes_counts(), where
        )
        if len(set(t.closes)) != len(t.closes):
            raise InsufficientRights(f"{where} closes the same right twice")

        closed: list[tuple[RightRef, _Created]] = []
        for ref in t.closes:
            if ref in state.spent:
                raise InsufficientRights(f"{where} closes already spent right {ref}")
            c = state.created.get(ref)
            if c is None:
                if ref.node_id not in state.nodes and ref.right_type is R.BURN_REPLACE:
                    raise NotAllEpochsExposed(f"{where} burns under epoch {ref.node_id} which is not supplied")
                raise InsufficientRights(f"{where} closes unknown right {ref}")
            closed.append((ref, c))

        _check_declarative_seals(t, nid)
        state.spent.update(ref for ref, _ in closed)
        state.register(t, t.witness_txid)

        tt = t.transition_type
        if tt is T.ISSUE:
            self._fold_issue(state, t, closed, where)
        elif tt is T.EPOCH:
            state.epochs.append(nid)
            for ref, _ in t.iter_rights():
                if ref.right_type is R.BURN_REPLACE:
                    state.epoch_of[ref] = nid
        elif tt in (T.BURN, T.BURN_AND_REPLACE, T.RIGHTS_SPLIT):
            self._inherit_epoch(state, t, closed)
            if tt is not T.RIGHTS_SPLIT:
                self._fold_burn(state, t, where)
        logger.debug("folded %s %s", tt.value, nid)

    def _fold_issue(
        self, state: _Fold, t: Transition, closed: list[tuple[RightRef, _Created]], where: str
    ) -> None:
        issued = _amount(t, FieldType.ISSUED_SUPPLY, where)
        available = 0
        for ref, c in closed:
            if ref.right_type is not R.INFLATION:
                continue
            if c.assignment.amount is None:
                raise InflationAssignmentConfidential(ref.node_id, f"closed by {t.node_id}")
            available += c.assignment.amount
        carried = 0
        for a in t.rights_of(R.INFLATION):
            if a.amount is None:
                raise InflationAssignmentConfidential(t.node_id, "new inflation cap is concealed")
            carried += a.amount
        if issued + carried > available:
            raise InsufficientRights(
                f"{where} issues {issued} and carries {carried} over closed inflation caps of {available}"
            )
        state.known_supply += issued

    def _fold_burn(self, state: _Fold, t: Transition, where: str) -> None:
        burned = _amount(t, FieldType.BURNED_SUPPLY, where)
        for value in t.field_values(FieldType.BURN_UTXO):
            if not isinstance(value, OutPoint):
                raise UnsatisfiedSchemaRequirement(f"{where}: burn_utxo must be an outpoint, got {value!r}")
        if t.transition_type is T.BURN_AND_REPLACE:
            state.replaced_supply += burned
            state.known_supply += _amount(t, FieldType.ISSUED_SUPPLY, where)
        else:
            state.burned_supply += burned

    @staticmethod
    def _inherit_epoch(state: _Fold, t: Transition, closed: list[tuple[RightRef, _Created]]) -> None:
        epoch = next(
            (state.epoch_of[ref] for ref, _ in closed if ref in state.epoch_of),
            None,
        )
        if epoch is None:
            return
        for ref, _ in t.iter_rights():
            if ref.right_type is R.BURN_REPLACE:
                state.epoch_of[ref] = epoch
