"""
Issuance of new RGB20 assets (genesis construction).

`issue()` turns issuer intents into a Genesis committing to one of the
catalog schema variants. The result is checked against the variant's
genesis schema before it is returned, so a Genesis built here always
projects cleanly.

Notes
- Inflation rights are folded per outpoint exactly like secondary issuance
  intents (rgb20.transitions.fold_outpoint_values).
- IssuedSupply is the sum of the initial allocations.
- Genesis seals are always revealed outpoints; a genesis has no witness.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Sequence

from .catalog import SchemaCatalog
from .config import Rgb20Settings
from .core.constants import TIMESTAMP_MAX, U64_MAX
from .core.contract import Assignment, FieldValue, Genesis, OutPoint, Seal
from .core.errors import UnsatisfiedSchemaRequirement
from .core.grammar import FieldType, OwnedRightType, SchemaVariant
from .nomination import NominationTracker
from .transitions import fold_outpoint_values

__all__ = ["issue"]

logger = logging.getLogger(__name__)

R = OwnedRightType


def issue(
    catalog: SchemaCatalog | None = None,
    *,
    ticker: str,
    name: str,
    allocations: Sequence[tuple[OutPoint, int]],
    precision: int | None = None,
    inflation: Sequence[tuple[OutPoint, int]] = (),
    renomination: OutPoint | None = None,
    epoch: OutPoint | None = None,
    ricardian_contract: str | None = None,
    timestamp: int | None = None,
    network: str | None = None,
    variant: SchemaVariant = SchemaVariant.FULL,
    settings: Rgb20Settings | None = None,
) -> Genesis:
    """
    Build the genesis of a new asset.

    Args:
        catalog: Schema catalog; defaults to SchemaCatalog().
        ticker: 3-8 uppercase ASCII letters.
        name: Asset name.
        allocations: Initial (outpoint, amount) allocations.
        precision: Decimal precision; settings.default_precision when None.
        inflation: (outpoint, cap) inflation rights, folded per outpoint.
        renomination: Outpoint receiving the renomination right.
        epoch: Outpoint receiving the open_epoch right.
        ricardian_contract: Optional contract text.
        timestamp: UNIX seconds; now when None.
        network: Network label; settings.network when None.
        variant: Schema variant the genesis commits to.
        settings: Runtime settings; Rgb20Settings.load() when None.

    Returns:
        Genesis: Validated genesis.

    Raises:
        UnsatisfiedSchemaRequirement: On invalid nomination data, supply
            overflow, a timestamp outside the protocol floor and the last
            representable date, a name or contract text over the configured
            length, or a right the variant does not support.

    Examples:
        >>> from rgb20.core.contract import OutPoint
        >>> from rgb20.create import issue
        >>> g = issue(ticker="USDT", name="Tether", allocations=[(OutPoint(txid="aa" * 32, vout=0), 1000)])
        >>> g.first_value(FieldType.ISSUED_SUPPLY)
        1000
    """
    catalog = catalog or SchemaCatalog()
    settings = settings or Rgb20Settings.load()
    schema = catalog.build(variant)

    supply = sum(amount for _, amount in allocations)
    if any(amount < 0 for _, amount in allocations) or supply > U64_MAX:
        raise UnsatisfiedSchemaRequirement(f"issued supply must be a u64 value, got {supply}")
    ts = int(time.time()) if timestamp is None else timestamp
    if ts < settings.timestamp_floor:
        raise UnsatisfiedSchemaRequirement(f"timestamp {ts} precedes {settings.timestamp_floor}")
    if ts > TIMESTAMP_MAX:
        raise UnsatisfiedSchemaRequirement(f"timestamp {ts} exceeds {TIMESTAMP_MAX}")

    metadata: dict[FieldType, list[FieldValue]] = {
        FieldType.TICKER: [ticker],
        FieldType.NAME: [name],
        FieldType.PRECISION: [settings.default_precision if precision is None else precision],
        FieldType.TIMESTAMP: [ts],
        FieldType.ISSUED_SUPPLY: [supply],
    }
    if ricardian_contract is not None:
        metadata[FieldType.RICARDIAN_CONTRACT] = [ricardian_contract]

    owned: list[Assignment] = []
    for outpoint, cap in fold_outpoint_values(inflation).items():
        owned.append(Assignment(right_type=R.INFLATION, seal=Seal.revealed(outpoint), amount=cap))
    if epoch is not None:
        owned.append(Assignment(right_type=R.OPEN_EPOCH, seal=Seal.revealed(epoch)))
    for outpoint, amount in allocations:
        owned.append(Assignment(right_type=R.ASSETS, seal=Seal.revealed(outpoint), amount=amount))
    if renomination is not None:
        owned.append(Assignment(right_type=R.RENOMINATION, seal=Seal.revealed(renomination)))

    genesis = Genesis(
        schema_id=catalog.schema_id(schema),
        network=network or settings.network,
        metadata=metadata,
        owned_rights=owned,
    )
    schema.genesis.check(genesis.metadata_counts(), genesis.rights_counts())
    tracker = NominationTracker(catalog, settings)
    nomination = tracker.from_genesis(genesis)
    tracker.check_limits(nomination.name, nomination.ricardian_contract, "genesis")

    logger.info(
        "issued %s (%s) on %s: supply %d, contract %s",
        ticker,
        variant.value,
        genesis.network,
        supply,
        genesis.contract_id,
    )
    return genesis
