from __future__ import annotations

from datetime import timezone

import polars as pl
import pytest

from rgb20.asset import Asset, ContractStateProjector
from rgb20.catalog import SchemaCatalog
from rgb20.config import Rgb20Settings
from rgb20.core.constants import U64_MAX, UNBOUNDED_INFLATION_CAP
from rgb20.core.contract import Assignment, Genesis, Seal
from rgb20.core.errors import (
    BurnSealConfidential,
    EpochSealConfidential,
    GenesisSeal,
    InflationAssignmentConfidential,
    InsufficientRights,
    NotAllEpochsExposed,
    UnsatisfiedSchemaRequirement,
    WrongSchemaId,
)
from rgb20.core.grammar import FieldType, OwnedRightType, SchemaVariant, TransitionType
from rgb20.core.serde import dump_model, load_model
from rgb20.create import issue

from conftest import ISSUED_AT, Ledger, outpoint

R = OwnedRightType


@pytest.fixture
def projector(catalog: SchemaCatalog, settings: Rgb20Settings) -> ContractStateProjector:
    return ContractStateProjector(catalog, settings)


def _issue_transition(ledger: Ledger, issued: int, carried: int, witness: str = "61"):
    owned = [Assignment(right_type=R.ASSETS, seal=Seal.revealed(outpoint("f2")), amount=issued)]
    if carried:
        owned.append(Assignment(right_type=R.INFLATION, seal=Seal.witness(1), amount=carried))
    return ledger.transition(
        TransitionType.ISSUE,
        closes=[ledger.ref(ledger.genesis, R.INFLATION)],
        owned=owned,
        metadata={FieldType.ISSUED_SUPPLY: [issued]},
        witness=witness,
    )


def test_genesis_only_projection(projector: ContractStateProjector, genesis: Genesis) -> None:
    asset = projector.project(genesis, [])

    assert asset.contract_id == genesis.contract_id
    assert asset.variant is SchemaVariant.FULL
    assert (asset.ticker, asset.name, asset.precision) == ("USDT", "Tether USD", 8)
    assert asset.issued_at.tzinfo == timezone.utc
    assert int(asset.issued_at.timestamp()) == ISSUED_AT
    assert asset.known_supply == 1000
    assert asset.max_supply == 1500
    assert asset.is_total_supply_known
    assert sorted(a.amount for a in asset.known_allocations) == [400, 600]
    assert asset.can_be_renominated and asset.can_be_inflated
    assert not asset.can_be_burned and not asset.can_be_replaced
    assert {r.right_type for r in asset.known_rights} == {R.INFLATION, R.OPEN_EPOCH, R.RENOMINATION}


def test_burn_reduces_spendable_supply(projector: ContractStateProjector, ledger: Ledger) -> None:
    epoch = ledger.epoch()
    burn = ledger.burn(epoch, 100)

    asset = projector.project(ledger.genesis, [epoch, burn])

    assert asset.known_supply == 1000
    assert asset.burned_supply == 100
    assert asset.replaced_supply == 0
    assert asset.spendable_supply == 900
    assert asset.epochs == [epoch.node_id]
    assert asset.can_be_burned and asset.can_be_replaced


def test_projection_is_order_independent(projector: ContractStateProjector, ledger: Ledger) -> None:
    epoch = ledger.epoch()
    burn = ledger.burn(epoch, 100)
    assert projector.project(ledger.genesis, [burn, epoch]) == projector.project(
        ledger.genesis, [epoch, burn]
    )


def test_burn_and_replace_reissues(projector: ContractStateProjector, ledger: Ledger) -> None:
    epoch = ledger.epoch()
    replace = ledger.burn(epoch, 100, replace_issued=100, replacement=outpoint("b1", 3))

    asset = projector.project(ledger.genesis, [epoch, replace])

    assert asset.known_supply == 1100
    assert asset.replaced_supply == 100
    assert asset.spendable_supply == 1000
    assert outpoint("b1", 3) in asset.allocations_by_outpoint()


def test_burn_without_epoch_is_rejected(projector: ContractStateProjector, ledger: Ledger) -> None:
    burn = ledger.burn(ledger.epoch(), 100)
    with pytest.raises(NotAllEpochsExposed):
        projector.project(ledger.genesis, [burn])


def test_burning_more_than_known_is_rejected(projector: ContractStateProjector, ledger: Ledger) -> None:
    epoch = ledger.epoch()
    with pytest.raises(UnsatisfiedSchemaRequirement, match="exceed known supply"):
        projector.project(ledger.genesis, [epoch, ledger.burn(epoch, 1001)])


def test_transfer_moves_allocation(projector: ContractStateProjector, ledger: Ledger) -> None:
    genesis = ledger.genesis
    t = ledger.transfer([ledger.ref(genesis, R.ASSETS, 0)], [(outpoint("f1"), 250), (outpoint("f1", 1), 350)])

    asset = projector.project(genesis, [t])

    held = asset.allocations_by_outpoint()
    assert outpoint("a1", 0) not in held
    assert [a.amount for a in held[outpoint("f1")]] == [250]
    assert asset.known_supply == 1000


def test_double_spend_is_rejected(projector: ContractStateProjector, ledger: Ledger) -> None:
    spent = ledger.ref(ledger.genesis, R.ASSETS, 0)
    first = ledger.transfer([spent], [(outpoint("f1"), 600)], witness="21")
    second = ledger.transfer([spent], [(outpoint("f3"), 600)], witness="22")
    with pytest.raises(InsufficientRights, match="already spent"):
        projector.project(ledger.genesis, [first, second])


def test_closing_unknown_right_is_rejected(projector: ContractStateProjector, ledger: Ledger) -> None:
    missing = ledger.ref(ledger.genesis, R.ASSETS, 5)
    with pytest.raises(InsufficientRights, match="unknown right"):
        projector.project(ledger.genesis, [ledger.transfer([missing], [(outpoint("f1"), 1)])])


def test_duplicate_and_uncommitted_transitions(projector: ContractStateProjector, ledger: Ledger) -> None:
    t = ledger.transfer([ledger.ref(ledger.genesis, R.ASSETS, 0)], [(outpoint("f1"), 600)])
    with pytest.raises(UnsatisfiedSchemaRequirement, match="more than once"):
        projector.project(ledger.genesis, [t, t])
    draft = t.model_copy(update={"witness_txid": None})
    with pytest.raises(UnsatisfiedSchemaRequirement, match="not committed"):
        projector.project(ledger.genesis, [draft])


def test_wrong_schema_id(projector: ContractStateProjector, genesis: Genesis) -> None:
    foreign = genesis.model_copy(update={"schema_id": "00" * 32})
    with pytest.raises(WrongSchemaId):
        projector.project(foreign, [])


def test_genesis_timestamp_floor(projector: ContractStateProjector, genesis: Genesis) -> None:
    early = genesis.model_copy(update={"metadata": {**genesis.metadata, FieldType.TIMESTAMP: [1]}})
    with pytest.raises(UnsatisfiedSchemaRequirement, match="precedes"):
        projector.project(early, [])


@pytest.mark.parametrize("ts", [2**40, 2**62])
def test_genesis_timestamp_past_last_date(
    projector: ContractStateProjector, genesis: Genesis, ts: int
) -> None:
    late = genesis.model_copy(update={"metadata": {**genesis.metadata, FieldType.TIMESTAMP: [ts]}})
    with pytest.raises(UnsatisfiedSchemaRequirement, match="exceeds"):
        projector.project(late, [])


def test_long_committed_name_projects(catalog: SchemaCatalog, settings: Rgb20Settings) -> None:
    genesis = issue(
        catalog,
        ticker="LONG",
        name="A" * 40,
        allocations=[(outpoint("a5"), 1)],
        timestamp=ISSUED_AT,
        settings=Rgb20Settings(name_max_len=64),
    )
    asset = ContractStateProjector(catalog, settings).project(genesis)
    assert asset.name == "A" * 40


def test_missing_required_metadata(projector: ContractStateProjector, genesis: Genesis) -> None:
    metadata = dict(genesis.metadata)
    del metadata[FieldType.NAME]
    with pytest.raises(UnsatisfiedSchemaRequirement, match="name"):
        projector.project(genesis.model_copy(update={"metadata": metadata}), [])


def test_witness_relative_genesis_seal(projector: ContractStateProjector, genesis: Genesis) -> None:
    extra = Assignment(right_type=R.ASSETS, seal=Seal.witness(3), amount=0)
    bad = genesis.model_copy(update={"owned_rights": [*genesis.owned_rights, extra]})
    with pytest.raises(GenesisSeal):
        projector.project(bad, [])


def test_concealed_epoch_seal(projector: ContractStateProjector, ledger: Ledger) -> None:
    t = ledger.transition(
        TransitionType.EPOCH,
        closes=[ledger.ref(ledger.genesis, R.OPEN_EPOCH)],
        owned=[Assignment(right_type=R.OPEN_EPOCH, seal=Seal.blinded("99" * 32))],
    )
    with pytest.raises(EpochSealConfidential) as exc:
        projector.project(ledger.genesis, [t])
    assert exc.value.node_id == t.node_id


def test_concealed_burn_seal(projector: ContractStateProjector, ledger: Ledger) -> None:
    t = ledger.transition(
        TransitionType.EPOCH,
        closes=[ledger.ref(ledger.genesis, R.OPEN_EPOCH)],
        owned=[Assignment(right_type=R.BURN_REPLACE, seal=Seal.blinded("99" * 32))],
    )
    with pytest.raises(BurnSealConfidential):
        projector.project(ledger.genesis, [t])


def test_concealed_inflation_cap(projector: ContractStateProjector, genesis: Genesis) -> None:
    rights = [
        Assignment(right_type=a.right_type, seal=a.seal, amount_commitment="77" * 33)
        if a.right_type is R.INFLATION
        else a
        for a in genesis.owned_rights
    ]
    bad = genesis.model_copy(update={"owned_rights": rights})
    with pytest.raises(InflationAssignmentConfidential) as exc:
        projector.project(bad, [])
    assert exc.value.node_id == bad.contract_id


def test_secondary_issue(projector: ContractStateProjector, ledger: Ledger) -> None:
    asset = projector.project(ledger.genesis, [_issue_transition(ledger, 300, 200)])

    assert asset.known_supply == 1300
    assert asset.max_supply == 1500
    assert asset.can_be_inflated
    assert outpoint("f2") in asset.allocations_by_outpoint()


def test_issue_over_cap_is_rejected(projector: ContractStateProjector, ledger: Ledger) -> None:
    with pytest.raises(InsufficientRights, match="closed inflation caps of 500"):
        projector.project(ledger.genesis, [_issue_transition(ledger, 400, 200)])


def test_exhausted_inflation_clears_flag(projector: ContractStateProjector, ledger: Ledger) -> None:
    asset = projector.project(ledger.genesis, [_issue_transition(ledger, 500, 0)])
    assert not asset.can_be_inflated
    assert asset.max_supply == asset.known_supply == 1500


def test_unbounded_inflation_makes_supply_unknown(catalog: SchemaCatalog, settings: Rgb20Settings) -> None:
    genesis = issue(
        catalog,
        ticker="INF",
        name="Unbounded",
        allocations=[(outpoint("a2"), 10)],
        inflation=[(outpoint("c2"), UNBOUNDED_INFLATION_CAP)],
        timestamp=ISSUED_AT,
        settings=settings,
    )
    asset = ContractStateProjector(catalog, settings).project(genesis)
    assert not asset.is_total_supply_known
    assert asset.max_supply == U64_MAX


def test_simple_variant_capabilities(catalog: SchemaCatalog, settings: Rgb20Settings) -> None:
    genesis = issue(
        catalog,
        ticker="SMPL",
        name="Simple",
        allocations=[(outpoint("a3"), 42)],
        timestamp=ISSUED_AT,
        variant=SchemaVariant.SIMPLE,
        settings=settings,
    )
    asset = ContractStateProjector(catalog, settings).project(genesis)
    assert asset.variant is SchemaVariant.SIMPLE
    assert not any(
        [asset.can_be_renominated, asset.can_be_inflated, asset.can_be_burned, asset.can_be_replaced]
    )


def test_transition_outside_variant_is_rejected(catalog: SchemaCatalog, settings: Rgb20Settings) -> None:
    genesis = issue(
        catalog,
        ticker="SMPL",
        name="Simple",
        allocations=[(outpoint("a3"), 42)],
        timestamp=ISSUED_AT,
        variant=SchemaVariant.SIMPLE,
        settings=settings,
    )
    ledger = Ledger(genesis)
    with pytest.raises(UnsatisfiedSchemaRequirement, match="epoch is not defined"):
        ContractStateProjector(catalog, settings).project(genesis, [ledger.epoch()])


def test_concealed_allocations_are_skipped(projector: ContractStateProjector, ledger: Ledger) -> None:
    t = ledger.transition(
        TransitionType.TRANSFER,
        closes=[ledger.ref(ledger.genesis, R.ASSETS, 0)],
        owned=[Assignment(right_type=R.ASSETS, seal=Seal.blinded("88" * 32), amount=600)],
    )
    asset = projector.project(ledger.genesis, [t])
    assert [a.amount for a in asset.known_allocations] == [400]


def test_renomination_updates_nomination(projector: ContractStateProjector, ledger: Ledger) -> None:
    t = ledger.renomination(ledger.genesis, ticker="USDX", next_vout=0)
    asset = projector.project(ledger.genesis, [t])
    assert asset.ticker == "USDX"
    assert asset.name == "Tether USD"
    assert [r.no for r in asset.renominations] == [1]
    assert asset.can_be_renominated


def test_allocations_frame(projector: ContractStateProjector, genesis: Genesis) -> None:
    df = projector.project(genesis).allocations_frame()
    assert df.columns == ["outpoint", "txid", "vout", "amount", "node_id"]
    assert df.height == 2
    assert df["amount"].sum() == 1000
    assert df.schema["vout"] == pl.UInt32
    assert set(df["node_id"].to_list()) == {genesis.contract_id}


def test_asset_roundtrip(projector: ContractStateProjector, ledger: Ledger) -> None:
    epoch = ledger.epoch()
    asset = projector.project(ledger.genesis, [epoch, ledger.burn(epoch, 100)])
    assert Asset.model_validate_json(asset.model_dump_json()) == asset
    assert load_model(Asset, dump_model(asset, "yaml"), "yaml") == asset
