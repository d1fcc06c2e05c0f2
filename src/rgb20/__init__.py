"""
RGB20 fungible asset schema core.

## Components
- SchemaCatalog: builds the full, inflationary and simple schema variants
  and verifies restricted variants against the root.
- ContractStateProjector: folds genesis plus accepted transitions into a
  cached Asset view (allocations, supply counters, capability flags).
- NominationTracker: reads the genesis nomination and chains renominations.
- TransitionDrafter: drafts issue, transfer and renomination transitions.
- issue: builds a new asset genesis.

## Notes
- Pure, synchronous and stateless: no IO beyond optional settings loading
  (Rgb20Settings.load) and no shared mutable state.
- Sealing, ledger consensus, binary codecs and transport belong to the
  caller.

## Examples
```python
from rgb20 import ContractStateProjector, TransitionDrafter, issue
from rgb20.core.contract import OutPoint

utxo = OutPoint.parse("aa" * 32 + ":0")
genesis = issue(ticker="USDT", name="Tether", allocations=[(utxo, 1000)])
asset = ContractStateProjector().project(genesis, [])
draft = TransitionDrafter(asset).draft_transfer([utxo], [(OutPoint.parse("bb" * 32 + ":1"), 1000)])
```
"""

from __future__ import annotations

from .asset import Allocation, Asset, ContractStateProjector
from .catalog import SchemaCatalog, verify_restriction
from .config import Rgb20Settings
from .core.errors import Rgb20Error
from .core.grammar import SchemaVariant
from .create import issue
from .nomination import Nomination, NominationTracker, Renomination
from .transitions import TransitionDraft, TransitionDrafter, fold_outpoint_values

__all__ = [
    "Allocation",
    "Asset",
    "ContractStateProjector",
    "SchemaCatalog",
    "verify_restriction",
    "Rgb20Settings",
    "Rgb20Error",
    "SchemaVariant",
    "issue",
    "Nomination",
    "NominationTracker",
    "Renomination",
    "TransitionDraft",
    "TransitionDrafter",
    "fold_outpoint_values",
]

__version__ = "0.3.0"
