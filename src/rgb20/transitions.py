"""
Drafting of new RGB20 state transitions.

Responsibilities
- fold_outpoint_values: sum (outpoint, amount) intents per outpoint.
- TransitionDraft: an unsealed transition plus the outpoints it spends.
- TransitionDrafter: builds schema-compliant issue, transfer and
  renomination drafts from caller intents and the latest projected Asset.

Notes
- Drafts are never sealed here. The commitment layer binds a draft to a
  witness transaction (Transition.sealed) before it becomes ledger data.
- Output order is significant: produced rights keep the caller-supplied
  order, which determines positional assignment in the sealed output.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence

from pydantic import BaseModel, ConfigDict, Field

from .asset import Allocation, Asset
from .catalog import SchemaCatalog
from .config import Rgb20Settings
from .core.constants import PRECISION_MAX, U64_MAX
from .core.contract import Assignment, FieldValue, OutPoint, RightRef, Seal, Transition
from .core.errors import InsufficientRights, UnsatisfiedSchemaRequirement
from .core.grammar import FieldType, OwnedRightType, TransitionType, is_valid_ticker
from .core.schema import TransitionSchema
from .core.typing import ContractId, NodeId
from .nomination import NominationTracker

__all__ = [
    "SealTarget",
    "fold_outpoint_values",
    "TransitionDraft",
    "TransitionDrafter",
]

logger = logging.getLogger(__name__)

R = OwnedRightType

SealTarget = Seal | OutPoint


def fold_outpoint_values(pairs: Iterable[tuple[OutPoint, int]]) -> dict[OutPoint, int]:
    """
    Sum amounts per outpoint, keeping first-seen order.

    Raises:
        UnsatisfiedSchemaRequirement: If an amount is negative or a sum overflows u64.

    Examples:
        >>> from rgb20.core.contract import OutPoint
        >>> a, b = OutPoint(txid="aa" * 32, vout=0), OutPoint(txid="bb" * 32, vout=1)
        >>> fold_outpoint_values([(a, 5), (a, 7), (b, 3)]) == {a: 12, b: 3}
        True
    """
    folded: dict[OutPoint, int] = {}
    for outpoint, amount in pairs:
        if amount < 0:
            raise UnsatisfiedSchemaRequirement(f"negative amount {amount} for {outpoint}")
        total = folded.get(outpoint, 0) + amount
        if total > U64_MAX:
            raise UnsatisfiedSchemaRequirement(f"amount for {outpoint} overflows u64")
        folded[outpoint] = total
    return folded


def _seal(target: SealTarget) -> Seal:
    return target if isinstance(target, Seal) else Seal.revealed(target)


def _assignments(right_type: OwnedRightType, outputs: Iterable[tuple[SealTarget, int]]) -> list[Assignment]:
    out: list[Assignment] = []
    for target, amount in outputs:
        if amount < 0 or amount > U64_MAX:
            raise UnsatisfiedSchemaRequirement(f"{right_type.value} amount {amount} is not a u64 value")
        out.append(Assignment(right_type=right_type, seal=_seal(target), amount=amount))
    return out


class TransitionDraft(BaseModel):
    """
    Unsealed candidate transition.

    Attributes:
        contract_id (ContractId): Contract the draft belongs to.
        transition_type (TransitionType): Drafted transition type.
        closes (list[OutPoint]): Outpoints spent by the draft (de-duplicated, in order).
        parent_rights (list[RightRef]): Rights closed by the draft.
        metadata (dict[FieldType, list[FieldValue]]): Transition metadata.
        owned_rights (list[Assignment]): Produced rights, in output order.
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    contract_id: ContractId
    transition_type: TransitionType
    closes: list[OutPoint] = Field(default_factory=list)
    parent_rights: list[RightRef] = Field(default_factory=list)
    metadata: dict[FieldType, list[FieldValue]] = Field(default_factory=dict)
    owned_rights: list[Assignment] = Field(default_factory=list)

    def to_transition(self) -> Transition:
        """The transition to hand to the commitment layer (witness not yet set)."""
        return Transition(
            contract_id=self.contract_id,
            transition_type=self.transition_type,
            metadata=self.metadata,
            closes=self.parent_rights,
            owned_rights=self.owned_rights,
        )

    @property
    def node_id(self) -> NodeId:
        return self.to_transition().node_id


class TransitionDrafter:
    """
    Builds transition drafts against a projected Asset.

    Args:
        asset (Asset): Latest projection; decides which rights are spendable.
        catalog (SchemaCatalog | None): Catalog providing the asset's schema.
        settings (Rgb20Settings | None): Length limits for renomination data;
            Rgb20Settings.load() when None.
    """

    def __init__(
        self,
        asset: Asset,
        catalog: SchemaCatalog | None = None,
        settings: Rgb20Settings | None = None,
    ) -> None:
        catalog = catalog or SchemaCatalog()
        self._asset = asset
        self._schema = catalog.build(asset.variant)
        self._tracker = NominationTracker(catalog, settings)

    def _transition_schema(self, transition_type: TransitionType) -> TransitionSchema:
        return self._schema.transition(transition_type)

    def _finish(self, draft: TransitionDraft) -> TransitionDraft:
        t = draft.to_transition()
        self._transition_schema(draft.transition_type).check_transition(
            t.metadata_counts(), t.rights_counts(), t.closes_counts(), f"{draft.transition_type.value} draft"
        )
        logger.info(
            "drafted %s for %s: closes %d right(s), produces %d",
            draft.transition_type.value,
            self._asset.ticker,
            len(draft.parent_rights),
            len(draft.owned_rights),
        )
        return draft

    def draft_issue(
        self,
        inflation_intents: Sequence[tuple[OutPoint, int]],
        resulting_allocations: Sequence[tuple[SealTarget, int]],
        total_issued: int,
        inflation_change: Sequence[tuple[SealTarget, int]] = (),
        epoch_seal: SealTarget | None = None,
    ) -> TransitionDraft:
        """
        Draft a secondary issuance.

        Args:
            inflation_intents: (outpoint, amount) pairs; pairs sharing an
                outpoint are folded, since one transition closes at most one
                inflation right per outpoint.
            resulting_allocations: New asset allocations, in output order.
            total_issued: IssuedSupply of the draft. Must equal the sum of
                resulting allocations; that equality is checked by the
                commitment layer, not here.
            inflation_change: Inflation rights carried forward (seal, cap).
            epoch_seal: Seal for a new open_epoch right, if any.

        Raises:
            UnsatisfiedSchemaRequirement: If the variant has no issue
                transition or no inflation right is closed.
            InsufficientRights: If an outpoint holds no unspent inflation
                right, or the closed caps cannot cover issued plus carried amounts.
        """
        self._transition_schema(TransitionType.ISSUE)
        if total_issued < 0 or total_issued > U64_MAX:
            raise UnsatisfiedSchemaRequirement(f"total issued {total_issued} is not a u64 value")
        folded = fold_outpoint_values(inflation_intents)
        if not folded:
            raise UnsatisfiedSchemaRequirement("issue must close at least one inflation right")

        parents: list[Allocation] = []
        for outpoint, amount in folded.items():
            candidates = self._asset.rights_at(outpoint, R.INFLATION)
            if not candidates:
                raise InsufficientRights(f"no unspent inflation right at {outpoint}")
            right = next((r for r in candidates if (r.amount or 0) >= amount), None)
            if right is None:
                raise InsufficientRights(f"inflation right at {outpoint} cannot cover {amount}")
            parents.append(right)

        available = sum(r.amount or 0 for r in parents)
        change = _assignments(R.INFLATION, inflation_change)
        carried = sum(a.amount or 0 for a in change)
        if total_issued + carried > available:
            raise InsufficientRights(
                f"closed inflation caps {available} cannot cover {total_issued} issued plus {carried} carried"
            )

        owned = _assignments(R.ASSETS, resulting_allocations) + change
        if epoch_seal is not None:
            owned.append(Assignment(right_type=R.OPEN_EPOCH, seal=_seal(epoch_seal)))
        return self._finish(
            TransitionDraft(
                contract_id=self._asset.contract_id,
                transition_type=TransitionType.ISSUE,
                closes=list(folded),
                parent_rights=[r.right for r in parents],
                metadata={FieldType.ISSUED_SUPPLY: [total_issued]},
                owned_rights=owned,
            )
        )

    def draft_transfer(
        self,
        spend_outpoints: Sequence[OutPoint],
        beneficiaries: Sequence[tuple[SealTarget, int]],
        change: Sequence[tuple[SealTarget, int]] = (),
    ) -> TransitionDraft:
        """
        Draft an asset transfer.

        Args:
            spend_outpoints: Outpoints whose asset allocations are spent; the
                draft closes exactly these.
            beneficiaries: (seal, amount) outputs for the receivers.
            change: (seal, amount) outputs returned to the sender.

        Returns:
            TransitionDraft: Produced rights are beneficiaries ++ change, in order.

        Raises:
            UnsatisfiedSchemaRequirement: If nothing is spent, or revealed
                outputs are less than the spent amount.
            InsufficientRights: If an outpoint holds no unspent asset
                allocation, is listed twice, or outputs exceed the spent amount.
        """
        if not spend_outpoints:
            raise UnsatisfiedSchemaRequirement("transfer must spend at least one outpoint")
        if len(set(spend_outpoints)) != len(spend_outpoints):
            raise InsufficientRights("transfer spends the same outpoint twice")

        held = self._asset.allocations_by_outpoint()
        parents: list[Allocation] = []
        for outpoint in spend_outpoints:
            allocations = held.get(outpoint)
            if not allocations:
                raise InsufficientRights(f"no unspent asset allocation at {outpoint}")
            parents.extend(allocations)
            others = [r for r in self._asset.rights_at(outpoint) if r.right_type is not R.ASSETS]
            if others:
                logger.warning(
                    "spending %s also closes the seal of %d co-located right(s) (%s); use rights_split first",
                    outpoint,
                    len(others),
                    ", ".join(sorted({r.right_type.value for r in others})),
                )

        owned = _assignments(R.ASSETS, [*beneficiaries, *change])
        spent = sum(a.amount or 0 for a in parents)
        produced = sum(a.amount or 0 for a in owned)
        if produced > spent:
            raise InsufficientRights(f"outputs {produced} exceed spent allocations {spent}")
        if produced < spent:
            raise UnsatisfiedSchemaRequirement(
                f"outputs {produced} leave {spent - produced} of spent allocations unassigned"
            )
        return self._finish(
            TransitionDraft(
                contract_id=self._asset.contract_id,
                transition_type=TransitionType.TRANSFER,
                closes=list(spend_outpoints),
                parent_rights=[a.right for a in parents],
                owned_rights=owned,
            )
        )

    def draft_renomination(
        self,
        ticker: str | None = None,
        name: str | None = None,
        ricardian_contract: str | None = None,
        precision: int | None = None,
        next_seal: SealTarget | None = None,
    ) -> TransitionDraft:
        """
        Draft a renomination closing the current renomination right.

        Only fields that differ from the current nomination are emitted;
        omitting `next_seal` terminates the renomination chain.

        Raises:
            InsufficientRights: If the asset has no unspent renomination right.
            UnsatisfiedSchemaRequirement: On a malformed ticker, name or precision,
                or a name or contract text over the configured length.
        """
        self._transition_schema(TransitionType.RENOMINATION)
        right = next((r for r in self._asset.known_rights if r.right_type is R.RENOMINATION), None)
        if right is None:
            raise InsufficientRights("asset has no unspent renomination right")

        asset = self._asset
        metadata: dict[FieldType, list[FieldValue]] = {}
        if ticker is not None and ticker != asset.ticker:
            if not is_valid_ticker(ticker):
                raise UnsatisfiedSchemaRequirement(f"invalid ticker {ticker!r}")
            metadata[FieldType.TICKER] = [ticker]
        if name is not None and name != asset.name:
            if not name or not name.isascii():
                raise UnsatisfiedSchemaRequirement("name must be non-empty ASCII")
            metadata[FieldType.NAME] = [name]
        if ricardian_contract is not None and ricardian_contract != asset.ricardian_contract:
            metadata[FieldType.RICARDIAN_CONTRACT] = [ricardian_contract]
        if precision is not None and precision != asset.precision:
            if not 0 <= precision <= PRECISION_MAX:
                raise UnsatisfiedSchemaRequirement(f"precision {precision} is out of range")
            metadata[FieldType.PRECISION] = [precision]
        self._tracker.check_limits(
            name if FieldType.NAME in metadata else None,
            ricardian_contract if FieldType.RICARDIAN_CONTRACT in metadata else None,
            "renomination draft",
        )

        owned: list[Assignment] = []
        if next_seal is not None:
            owned.append(Assignment(right_type=R.RENOMINATION, seal=_seal(next_seal)))
        return self._finish(
            TransitionDraft(
                contract_id=asset.contract_id,
                transition_type=TransitionType.RENOMINATION,
                closes=[right.outpoint] if right.outpoint is not None else [],
                parent_rights=[right.right],
                metadata=metadata,
                owned_rights=owned,
            )
        )
