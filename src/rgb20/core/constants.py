"""
RGB20 wire codes and protocol-level limits.

Defines the numeric codes bound to every field type, owned right type and
transition type, plus supply, time and ticker limits. This module is zero-IO
and uses only the Python standard library.

Notes:
    - Codes are part of the wire contract: never renumber a constant and never
      reuse a code for a different meaning, even across schema revisions.
    - grammar.py binds enum members to these codes; nothing else should
      hardcode the numbers.
"""

from __future__ import annotations

__all__ = [
    "FIELD_TYPE_NAME",
    "FIELD_TYPE_TICKER",
    "FIELD_TYPE_CONTRACT_TEXT",
    "FIELD_TYPE_PRECISION",
    "FIELD_TYPE_TIMESTAMP",
    "FIELD_TYPE_ISSUED_SUPPLY",
    "FIELD_TYPE_BURN_SUPPLY",
    "FIELD_TYPE_BURN_UTXO",
    "FIELD_TYPE_HISTORY_PROOF",
    "FIELD_TYPE_HISTORY_PROOF_FORMAT",
    "STATE_TYPE_OWNERSHIP_RIGHT",
    "STATE_TYPE_RENOMINATION_RIGHT",
    "STATE_TYPE_INFLATION_RIGHT",
    "STATE_TYPE_ISSUE_EPOCH_RIGHT",
    "STATE_TYPE_ISSUE_REPLACEMENT_RIGHT",
    "TRANSITION_TYPE_VALUE_TRANSFER",
    "TRANSITION_TYPE_RENOMINATION",
    "TRANSITION_TYPE_ISSUE_FUNGIBLE",
    "TRANSITION_TYPE_ISSUE_EPOCH",
    "TRANSITION_TYPE_ISSUE_BURN",
    "TRANSITION_TYPE_ISSUE_REPLACE",
    "TRANSITION_TYPE_RIGHTS_SPLIT",
    "U64_MAX",
    "UNBOUNDED_INFLATION_CAP",
    "PRECISION_MAX",
    "TICKER_MIN_LEN",
    "TICKER_MAX_LEN",
    "TIMESTAMP_FLOOR",
    "TIMESTAMP_MAX",
]

# Field types
FIELD_TYPE_NAME: int = 0x00
FIELD_TYPE_TICKER: int = 0x01
FIELD_TYPE_CONTRACT_TEXT: int = 0x02
FIELD_TYPE_PRECISION: int = 0x03
FIELD_TYPE_TIMESTAMP: int = 0x04
FIELD_TYPE_ISSUED_SUPPLY: int = 0xA0
FIELD_TYPE_BURN_SUPPLY: int = 0xB0
FIELD_TYPE_BURN_UTXO: int = 0xB1
FIELD_TYPE_HISTORY_PROOF: int = 0xB2
FIELD_TYPE_HISTORY_PROOF_FORMAT: int = 0xB3

# Owned right (state) types
STATE_TYPE_OWNERSHIP_RIGHT: int = 0x00
STATE_TYPE_RENOMINATION_RIGHT: int = 0x01
STATE_TYPE_INFLATION_RIGHT: int = 0xA0
STATE_TYPE_ISSUE_EPOCH_RIGHT: int = 0xA1
STATE_TYPE_ISSUE_REPLACEMENT_RIGHT: int = 0xA2

# Transition types
TRANSITION_TYPE_VALUE_TRANSFER: int = 0x00
TRANSITION_TYPE_RENOMINATION: int = 0x01
TRANSITION_TYPE_ISSUE_FUNGIBLE: int = 0xA0
TRANSITION_TYPE_ISSUE_EPOCH: int = 0xA1
TRANSITION_TYPE_ISSUE_BURN: int = 0xA2
TRANSITION_TYPE_ISSUE_REPLACE: int = 0xA3
TRANSITION_TYPE_RIGHTS_SPLIT: int = 0xFF

# Amounts are unsigned 64-bit discrete values.
U64_MAX: int = 2**64 - 1

# An inflation right carrying this cap is treated as unbounded.
UNBOUNDED_INFLATION_CAP: int = U64_MAX

# Decimal precision is a u8.
PRECISION_MAX: int = 255

TICKER_MIN_LEN: int = 3
TICKER_MAX_LEN: int = 8

# No asset can be issued before RGB existed: 2020-10-10T14:37:46Z.
TIMESTAMP_FLOOR: int = 1602340666

# Last second a UTC datetime can represent: 9999-12-31T23:59:59Z.
TIMESTAMP_MAX: int = 253402300799
