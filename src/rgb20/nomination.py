"""
Asset nomination: naming, ticker, Ricardian contract and decimal precision.

Responsibilities
- Nomination: the value object holding the descriptive metadata of an asset.
- Renomination: one link of the renomination chain (epoch number, the seal it
  closed, the seal controlling the next renomination, the witness, and the
  resulting nomination).
- NominationTracker: reads the initial nomination from genesis and chains
  renomination transitions into an ordered epoch history.

Chain rules
- Epoch 1 closes the renomination right granted at genesis; without such a
  right, any renomination transition is invalid.
- Epoch k > 1 closes the right declared as "next" by epoch k - 1.
- An epoch without a next right terminates the chain; renomination
  transitions left over after termination are rejected, never ignored.
- Fields absent from a renomination inherit the previous value.
- A rights split may move the current renomination right to a new seal
  without opening an epoch; the chain continues from the moved right.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .catalog import SchemaCatalog
from .config import Rgb20Settings
from .core.constants import PRECISION_MAX
from .core.contract import Genesis, OutPoint, RightRef, Transition
from .core.errors import (
    EpochSealConfidential,
    GenesisSeal,
    InsufficientRights,
    UnsatisfiedSchemaRequirement,
)
from .core.grammar import FieldType, OwnedRightType, TransitionType, assert_ticker, is_valid_ticker
from .core.typing import ContractId, NodeId, Txid

__all__ = [
    "Nomination",
    "Renomination",
    "NominationTracker",
]

logger = logging.getLogger(__name__)

_NOMINATION_FIELDS = (
    FieldType.TICKER,
    FieldType.NAME,
    FieldType.RICARDIAN_CONTRACT,
    FieldType.PRECISION,
)


class Nomination(BaseModel):
    """
    Descriptive metadata of an asset.

    Attributes:
        ticker (str): 3 to 8 uppercase ASCII letters.
        name (str): Full asset name (ASCII).
        ricardian_contract (str | None): Contract text or its reference.
        decimal_precision (int): Digits after the decimal point, 0..255.

    Raises:
        pydantic.ValidationError: On a malformed ticker, name or precision.

    Examples:
        >>> from rgb20.nomination import Nomination
        >>> str(Nomination(ticker="USDT", name="Tether", decimal_precision=8))
        'USDT'
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    ticker: str
    name: str
    ricardian_contract: str | None = None
    decimal_precision: int = Field(..., ge=0, le=PRECISION_MAX)

    @field_validator("ticker", mode="before")
    @classmethod
    def _check_ticker(cls, v: Any) -> str:
        return assert_ticker(str(v))

    @field_validator("name", mode="before")
    @classmethod
    def _check_name(cls, v: Any) -> str:
        s = str(v)
        if not s or not s.isascii():
            raise ValueError(f"asset name must be non-empty ASCII, got {v!r}")
        return s

    def __str__(self) -> str:
        return self.ticker

    def updated(
        self,
        ticker: str | None = None,
        name: str | None = None,
        ricardian_contract: str | None = None,
        decimal_precision: int | None = None,
    ) -> Nomination:
        """Return a new nomination; None arguments keep the current value."""
        return Nomination(
            ticker=self.ticker if ticker is None else ticker,
            name=self.name if name is None else name,
            ricardian_contract=(
                self.ricardian_contract if ricardian_contract is None else ricardian_contract
            ),
            decimal_precision=(
                self.decimal_precision if decimal_precision is None else decimal_precision
            ),
        )


class Renomination(BaseModel):
    """
    One renomination operation.

    Attributes:
        node_id (NodeId): Id of the renomination transition.
        no (int): Sequential epoch number; there is no epoch 0.
        contract_id (ContractId): Contract being renominated.
        closes (OutPoint): Outpoint whose renomination right this operation closed.
        seal (OutPoint | None): Outpoint controlling the next renomination;
            None when further renominations are prohibited.
        witness (Txid): Witness transaction committing the operation.
        nomination (Nomination): Nomination in effect after this operation.
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    node_id: NodeId
    no: int = Field(..., ge=1)
    contract_id: ContractId
    closes: OutPoint
    seal: OutPoint | None = None
    witness: Txid
    nomination: Nomination

    def __str__(self) -> str:
        return f"{self.no}:{self.node_id}"

    @property
    def is_final(self) -> bool:
        return self.seal is None


class NominationTracker:
    """
    Extracts nominations from genesis and renomination transitions.

    Args:
        catalog (SchemaCatalog | None): Schema catalog used to recognize RGB20 genesis.
        settings (Rgb20Settings | None): Name/contract length limits applied
            by check_limits; Rgb20Settings.load() when None.
    """

    def __init__(
        self, catalog: SchemaCatalog | None = None, settings: Rgb20Settings | None = None
    ) -> None:
        self._catalog = catalog or SchemaCatalog()
        self._settings = settings or Rgb20Settings.load()

    def _read_fields(self, values: dict[FieldType, Any], where: str) -> dict[str, Any]:
        """Validate raw nomination fields, mapping failures to UnsatisfiedSchemaRequirement."""
        out: dict[str, Any] = {}
        ticker = values.get(FieldType.TICKER)
        if ticker is not None:
            if not isinstance(ticker, str) or not is_valid_ticker(ticker):
                raise UnsatisfiedSchemaRequirement(
                    f"{where}: ticker must be 3-8 uppercase ASCII letters, got {ticker!r}"
                )
            out["ticker"] = ticker
        name = values.get(FieldType.NAME)
        if name is not None:
            if not isinstance(name, str) or not name or not name.isascii():
                raise UnsatisfiedSchemaRequirement(f"{where}: name must be non-empty ASCII")
            out["name"] = name
        contract = values.get(FieldType.RICARDIAN_CONTRACT)
        if contract is not None:
            if not isinstance(contract, str) or not contract.isascii():
                raise UnsatisfiedSchemaRequirement(f"{where}: ricardian contract must be ASCII text")
            out["ricardian_contract"] = contract
        precision = values.get(FieldType.PRECISION)
        if precision is not None:
            if (
                isinstance(precision, bool)
                or not isinstance(precision, int)
                or not 0 <= precision <= PRECISION_MAX
            ):
                raise UnsatisfiedSchemaRequirement(
                    f"{where}: precision must be an integer in 0..{PRECISION_MAX}"
                )
            out["decimal_precision"] = precision
        return out

    def check_limits(self, name: str | None, ricardian_contract: str | None, where: str) -> None:
        """
        Apply the configured name and contract length limits to new nomination data.

        Only issuance and drafting call this; committed ledger data is never
        rejected for its length.

        Raises:
            UnsatisfiedSchemaRequirement: If a value is longer than its limit.
        """
        if name is not None and len(name) > self._settings.name_max_len:
            raise UnsatisfiedSchemaRequirement(
                f"{where}: name exceeds {self._settings.name_max_len} characters"
            )
        if (
            ricardian_contract is not None
            and len(ricardian_contract) > self._settings.contract_text_max_len
        ):
            raise UnsatisfiedSchemaRequirement(
                f"{where}: ricardian contract exceeds "
                f"{self._settings.contract_text_max_len} characters"
            )

    def from_genesis(self, genesis: Genesis) -> Nomination:
        """
        Read the initial nomination from genesis metadata.

        Raises:
            WrongSchemaId: If genesis does not commit to an RGB20 schema.
            UnsatisfiedSchemaRequirement: If ticker, name or precision is missing
                or malformed.
        """
        self._catalog.variant_of(genesis.schema_id)
        values = {ft: genesis.first_value(ft) for ft in _NOMINATION_FIELDS}
        fields = self._read_fields(values, "genesis")
        for required in ("ticker", "name", "decimal_precision"):
            if required not in fields:
                raise UnsatisfiedSchemaRequirement(f"genesis: required field {required} is missing")
        return Nomination(**fields)

    def chain(
        self,
        genesis: Genesis,
        transitions: Sequence[Transition],
        nomination: Nomination | None = None,
    ) -> list[Renomination]:
        """
        Chain renomination transitions into an ordered epoch history.

        Args:
            genesis (Genesis): Contract genesis.
            transitions (Sequence[Transition]): Accepted transitions in any
                order; non-renomination transitions are skipped.
            nomination (Nomination | None): Genesis nomination; read from
                genesis when omitted.

        Returns:
            list[Renomination]: Epochs 1..n in chain order.

        Raises:
            InsufficientRights: If a renomination closes a right that is not the
                current renomination right (no genesis right, chain already
                terminated, or a right closed twice).
            GenesisSeal: If the genesis renomination seal is witness-relative.
            EpochSealConfidential: If a renomination seal is concealed.
            UnsatisfiedSchemaRequirement: On malformed renomination data.
        """
        current = nomination or self.from_genesis(genesis)
        contract_id = genesis.contract_id
        pending: dict[NodeId, Transition] = {}
        splits: list[Transition] = []
        for t in transitions:
            if t.transition_type is TransitionType.RIGHTS_SPLIT:
                if t.contract_id == contract_id:
                    splits.append(t)
                continue
            if t.transition_type is not TransitionType.RENOMINATION:
                continue
            if t.contract_id != contract_id:
                raise UnsatisfiedSchemaRequirement(
                    f"renomination {t.node_id} belongs to contract {t.contract_id}"
                )
            pending[t.node_id] = t

        granted = [
            (ref, a) for ref, a in genesis.iter_rights() if a.right_type is OwnedRightType.RENOMINATION
        ]
        if not granted:
            if pending:
                raise InsufficientRights("genesis grants no renomination right")
            return []
        ref, assignment = granted[0]
        if assignment.seal.is_witness_relative:
            raise GenesisSeal("genesis renomination seal refers to a witness transaction")
        if assignment.seal.is_concealed:
            raise EpochSealConfidential(contract_id, "genesis renomination seal is concealed")
        outpoint = assignment.seal.outpoint()
        if outpoint is None:
            raise EpochSealConfidential(contract_id, "genesis renomination seal is not revealed")

        epochs: list[Renomination] = []
        next_ref: RightRef | None = ref
        while next_ref is not None and pending:
            closing = [t for t in pending.values() if next_ref in t.closes]
            relays = [t for t in splits if next_ref in t.closes]
            if len(closing) + len(relays) > 1:
                raise InsufficientRights(f"renomination right {next_ref} is closed more than once")
            if relays:
                next_ref, outpoint = self._relayed(relays[0], outpoint)
                continue
            if not closing:
                break
            t = closing[0]
            del pending[t.node_id]
            if t.witness_txid is None:
                raise UnsatisfiedSchemaRequirement(f"renomination {t.node_id} has no witness")

            granted = [
                (r, a) for r, a in t.iter_rights() if a.right_type is OwnedRightType.RENOMINATION
            ]
            seal: OutPoint | None = None
            next_ref = None
            if granted:
                next_ref, a = granted[0]
                if a.seal.is_concealed:
                    raise EpochSealConfidential(t.node_id, "next renomination seal is concealed")
                seal = a.seal.outpoint(t.witness_txid)

            changes = self._read_fields(
                {ft: t.first_value(ft) for ft in _NOMINATION_FIELDS}, f"renomination {t.node_id}"
            )
            current = current.updated(**changes)
            epochs.append(
                Renomination(
                    node_id=t.node_id,
                    no=len(epochs) + 1,
                    contract_id=contract_id,
                    closes=outpoint,
                    seal=seal,
                    witness=t.witness_txid,
                    nomination=current,
                )
            )
            logger.debug(
                "renomination epoch %d: %s (changed: %s)",
                len(epochs),
                t.node_id,
                ", ".join(sorted(changes)) or "nothing",
            )
            if seal is not None:
                outpoint = seal

        if pending:
            stray = sorted(pending)[0]
            raise InsufficientRights(
                f"renomination {stray} does not close the current renomination right"
            )
        return epochs

    @staticmethod
    def _relayed(split: Transition, outpoint: OutPoint) -> tuple[RightRef | None, OutPoint]:
        """Follow a renomination right moved by a rights split to its new seal."""
        granted = [
            (r, a) for r, a in split.iter_rights() if a.right_type is OwnedRightType.RENOMINATION
        ]
        if not granted:
            return None, outpoint
        ref, a = granted[0]
        if a.seal.is_concealed:
            raise EpochSealConfidential(split.node_id, "relayed renomination seal is concealed")
        relayed = a.seal.outpoint(split.witness_txid)
        if relayed is None:
            raise UnsatisfiedSchemaRequirement(f"rights split {split.node_id} has no witness")
        logger.debug("renomination right relayed by rights split %s to %s", split.node_id, relayed)
        return ref, relayed
