from __future__ import annotations

from collections.abc import Iterable, Sequence

import pytest

from rgb20.catalog import SchemaCatalog
from rgb20.config import Rgb20Settings
from rgb20.core.contract import Assignment, FieldValue, Genesis, OutPoint, RightRef, Seal, Transition
from rgb20.core.grammar import FieldType, OwnedRightType, SchemaVariant, TransitionType
from rgb20.create import issue

ISSUED_AT = 1_700_000_000


def outpoint(byte: str, vout: int = 0) -> OutPoint:
    return OutPoint(txid=byte * 32, vout=vout)


class Ledger:
    """Builds witness-committed transitions of a single contract for tests."""

    def __init__(self, genesis: Genesis) -> None:
        self.genesis = genesis

    outpoint = staticmethod(outpoint)

    @staticmethod
    def ref(node: Genesis | Transition, right_type: OwnedRightType, index: int = 0) -> RightRef:
        return RightRef(node_id=node.node_id, right_type=right_type, index=index)

    def transition(
        self,
        transition_type: TransitionType,
        *,
        closes: Iterable[RightRef] = (),
        owned: Iterable[Assignment] = (),
        metadata: dict[FieldType, list[FieldValue]] | None = None,
        witness: str = "11",
    ) -> Transition:
        return Transition(
            contract_id=self.genesis.contract_id,
            transition_type=transition_type,
            closes=list(closes),
            owned_rights=list(owned),
            metadata=metadata or {},
            witness_txid=witness * 32,
        )

    def transfer(
        self,
        closes: Iterable[RightRef],
        outputs: Sequence[tuple[OutPoint, int]],
        witness: str = "21",
    ) -> Transition:
        owned = [
            Assignment(right_type=OwnedRightType.ASSETS, seal=Seal.revealed(op), amount=amount)
            for op, amount in outputs
        ]
        return self.transition(TransitionType.TRANSFER, closes=closes, owned=owned, witness=witness)

    def epoch(self, witness: str = "31") -> Transition:
        """Open an epoch from the genesis epoch right; burn right on witness output 0."""
        return self.transition(
            TransitionType.EPOCH,
            closes=[self.ref(self.genesis, OwnedRightType.OPEN_EPOCH)],
            owned=[Assignment(right_type=OwnedRightType.BURN_REPLACE, seal=Seal.witness(0))],
            witness=witness,
        )

    def burn(
        self,
        parent: Transition,
        burned: int,
        *,
        replace_issued: int | None = None,
        replacement: OutPoint | None = None,
        witness: str = "41",
    ) -> Transition:
        metadata: dict[FieldType, list[FieldValue]] = {
            FieldType.BURNED_SUPPLY: [burned],
            FieldType.BURN_UTXO: [outpoint("b0")],
            FieldType.HISTORY_PROOF_FORMAT: [0],
        }
        owned = [Assignment(right_type=OwnedRightType.BURN_REPLACE, seal=Seal.witness(0))]
        tt = TransitionType.BURN
        if replace_issued is not None:
            tt = TransitionType.BURN_AND_REPLACE
            metadata[FieldType.ISSUED_SUPPLY] = [replace_issued]
            owned.append(
                Assignment(
                    right_type=OwnedRightType.ASSETS,
                    seal=Seal.revealed(replacement or outpoint("b1")),
                    amount=replace_issued,
                )
            )
        return self.transition(
            tt,
            closes=[self.ref(parent, OwnedRightType.BURN_REPLACE)],
            owned=owned,
            metadata=metadata,
            witness=witness,
        )

    def renomination(
        self,
        parent: Genesis | Transition,
        *,
        ticker: str | None = None,
        next_vout: int | None = None,
        witness: str = "51",
    ) -> Transition:
        metadata: dict[FieldType, list[FieldValue]] = {}
        if ticker is not None:
            metadata[FieldType.TICKER] = [ticker]
        owned = []
        if next_vout is not None:
            owned.append(Assignment(right_type=OwnedRightType.RENOMINATION, seal=Seal.witness(next_vout)))
        return self.transition(
            TransitionType.RENOMINATION,
            closes=[self.ref(parent, OwnedRightType.RENOMINATION)],
            owned=owned,
            metadata=metadata,
            witness=witness,
        )


@pytest.fixture
def settings() -> Rgb20Settings:
    return Rgb20Settings()


@pytest.fixture
def catalog() -> SchemaCatalog:
    return SchemaCatalog()


@pytest.fixture
def genesis(catalog: SchemaCatalog, settings: Rgb20Settings) -> Genesis:
    """Full-variant genesis: 1000 issued over two outputs, inflation cap 500, renomination and epoch rights."""
    return issue(
        catalog,
        ticker="USDT",
        name="Tether USD",
        precision=8,
        allocations=[(outpoint("a1", 0), 600), (outpoint("a1", 1), 400)],
        inflation=[(outpoint("c1"), 500)],
        renomination=outpoint("d1"),
        epoch=outpoint("e1"),
        timestamp=ISSUED_AT,
        variant=SchemaVariant.FULL,
        settings=settings,
    )


@pytest.fixture
def ledger(genesis: Genesis) -> Ledger:
    return Ledger(genesis)
