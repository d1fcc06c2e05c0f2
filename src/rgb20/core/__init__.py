"""
Core package aggregator for RGB20 contracts (grammar, schemas, ledger models, hashing/serde, ids).

## Contracts (single source of truth)
- Constants: numeric wire codes and protocol limits.
- Grammar: closed vocabularies (field, right and transition types),
  occurrence arithmetic, ticker/txid helpers.
- Schema: GenesisSchema / TransitionSchema / Schema with occurrence checks.
- Contract: OutPoint, Seal, Assignment, RightRef, Genesis, Transition.
- Hashing/Serde: canonical JSON, content ids, json/yaml model export.
- Errors/Typing: exception hierarchy and NewType ids.

## Notes
- Zero-IO policy: stdlib + pydantic (+ PyYAML in serde); no file/network IO.
- Naming policy: enum `.value` and field names are lower_snake; wire codes
  live on `.code` only.
- Content ids are computed over code-keyed payloads, so renaming an enum
  value never changes an id.

## Downstream usage
- rgb20.catalog: builds the three schema variants from `grammar` and `schema`.
- rgb20.asset / rgb20.nomination: fold `contract` models into cached views.
- rgb20.transitions / rgb20.create: produce new `contract` models.

## Examples
```python
from rgb20.core.grammar import OwnedRightType, owned_right_type_from_code
owned_right_type_from_code(0xA0) is OwnedRightType.INFLATION  # True

from rgb20.core.contract import OutPoint, Seal
Seal.revealed(OutPoint.parse("aa" * 32 + ":0")).is_concealed  # False
```
"""
