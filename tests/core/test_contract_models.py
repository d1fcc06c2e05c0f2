from __future__ import annotations

import pytest
from pydantic import ValidationError

from rgb20.core.contract import Assignment, Genesis, OutPoint, RightRef, Seal, Transition
from rgb20.core.grammar import FieldType, OwnedRightType, TransitionType

TXID = "ab" * 32


def test_outpoint_parse_and_str() -> None:
    op = OutPoint.parse(f"{TXID}:7")
    assert op == OutPoint(txid=TXID, vout=7)
    assert str(op) == f"{TXID}:7"
    assert OutPoint(txid=TXID.upper(), vout=0).txid == TXID


@pytest.mark.parametrize("bad", ["", TXID, f"{TXID}:x", f"{TXID[:10]}:1"])
def test_outpoint_parse_rejects_malformed(bad: str) -> None:
    with pytest.raises(ValueError):
        OutPoint.parse(bad)


def test_seal_forms() -> None:
    revealed = Seal.revealed(OutPoint(txid=TXID, vout=1))
    witness = Seal.witness(2)
    blinded = Seal.blinded("cc" * 32)

    assert revealed.outpoint() == OutPoint(txid=TXID, vout=1)
    assert not revealed.is_witness_relative and not revealed.is_concealed

    assert witness.is_witness_relative
    assert witness.outpoint() is None
    assert witness.outpoint("dd" * 32) == OutPoint(txid="dd" * 32, vout=2)

    assert blinded.is_concealed
    assert blinded.outpoint("dd" * 32) is None


def test_seal_rejects_mixed_forms() -> None:
    with pytest.raises(ValidationError):
        Seal(txid=TXID, vout=0, concealed="cc" * 32)
    with pytest.raises(ValidationError):
        Seal(txid=TXID)


def test_assignment_amount_xor_commitment() -> None:
    seal = Seal.witness(0)
    assert Assignment(right_type=OwnedRightType.ASSETS, seal=seal, amount_commitment="ff").is_amount_concealed
    with pytest.raises(ValidationError):
        Assignment(right_type=OwnedRightType.ASSETS, seal=seal, amount=1, amount_commitment="ff")
    with pytest.raises(ValidationError):
        Assignment(right_type=OwnedRightType.ASSETS, seal=seal, amount=2**64)


def test_right_refs_index_per_type(genesis: Genesis) -> None:
    refs = [ref for ref, _ in genesis.iter_rights()]
    assets = [r for r in refs if r.right_type is OwnedRightType.ASSETS]
    assert [r.index for r in assets] == [0, 1]
    assert all(r.node_id == genesis.contract_id for r in refs)
    assert len(set(refs)) == len(refs)


def test_genesis_contract_id_is_content_derived(genesis: Genesis) -> None:
    assert genesis.node_id == genesis.contract_id
    renamed = genesis.model_copy(update={"metadata": {**genesis.metadata, FieldType.NAME: ["Other"]}})
    assert renamed.contract_id != genesis.contract_id


def test_transition_node_id_excludes_witness(genesis: Genesis) -> None:
    draft = Transition(
        contract_id=genesis.contract_id,
        transition_type=TransitionType.TRANSFER,
        closes=[RightRef(node_id=genesis.node_id, right_type=OwnedRightType.ASSETS, index=0)],
        owned_rights=[Assignment(right_type=OwnedRightType.ASSETS, seal=Seal.witness(0), amount=600)],
    )
    sealed = draft.sealed("ee" * 32)
    assert sealed.witness_txid == "ee" * 32
    assert sealed.node_id == draft.node_id
    assert draft.witness_txid is None
    with pytest.raises(ValueError):
        draft.sealed("not-a-txid")


def test_node_counts(genesis: Genesis) -> None:
    assert genesis.metadata_counts()[FieldType.TICKER] == 1
    counts = genesis.rights_counts()
    assert counts[OwnedRightType.ASSETS] == 2
    assert counts[OwnedRightType.INFLATION] == 1
