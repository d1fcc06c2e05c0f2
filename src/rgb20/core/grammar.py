"""
Canonical RGB20 grammar and helpers.

Defines the closed vocabularies of the RGB20 contract schema: field types,
owned right types, transition types, occurrence constraints, field value
descriptors, right state kinds and schema variants. Includes zero-IO
validators/helpers used across the stack.

Responsibilities
- Define enums with lower_snake serialized values.
- Bind every FieldType / OwnedRightType / TransitionType member to its
  numeric wire code (see constants.py) and provide reverse lookups.
- Provide occurrence range arithmetic (min/max, containment, counting).
- Provide ticker and txid validation helpers.

Design principles
-----------------
1) One naming standard:
   - Enum classes: PascalCase
   - Enum member names: UPPER_SNAKE (Python constants)
   - Enum serialized values (JSON/YAML): lower_snake
   - Numeric wire codes: `.code`, bound once in constants.py

2) Codes are a versioned wire contract:
   - A member's code never changes and is never reused.
   - `*_from_code` helpers are the only sanctioned way to turn a code back
     into a member.

Code table
----------
| FieldType            | code | OwnedRightType | code | TransitionType   | code |
|----------------------|------|----------------|------|------------------|------|
| name                 | 0x00 | assets         | 0x00 | transfer         | 0x00 |
| ticker               | 0x01 | renomination   | 0x01 | renomination     | 0x01 |
| ricardian_contract   | 0x02 | inflation      | 0xA0 | issue            | 0xA0 |
| precision            | 0x03 | open_epoch     | 0xA1 | epoch            | 0xA1 |
| timestamp            | 0x04 | burn_replace   | 0xA2 | burn             | 0xA2 |
| issued_supply        | 0xA0 |                |      | burn_and_replace | 0xA3 |
| burned_supply        | 0xB0 |                |      | rights_split     | 0xFF |
| burn_utxo            | 0xB1 |                |      |                  |      |
| history_proof        | 0xB2 |                |      |                  |      |
| history_proof_format | 0xB3 |                |      |                  |      |

Examples
--------
>>> from rgb20.core.grammar import FieldType, Occurrence, field_type_from_code, is_valid_ticker
>>> FieldType.ISSUED_SUPPLY.code
160
>>> field_type_from_code(0x01) is FieldType.TICKER
True
>>> Occurrence.NONE_OR_MORE.contains(Occurrence.ONCE)
True
>>> is_valid_ticker("ABC"), is_valid_ticker("abc")
(True, False)
"""

from __future__ import annotations

import re
from collections.abc import Iterable
from enum import Enum
from typing import Final

from .constants import (
    FIELD_TYPE_BURN_SUPPLY,
    FIELD_TYPE_BURN_UTXO,
    FIELD_TYPE_CONTRACT_TEXT,
    FIELD_TYPE_HISTORY_PROOF,
    FIELD_TYPE_HISTORY_PROOF_FORMAT,
    FIELD_TYPE_ISSUED_SUPPLY,
    FIELD_TYPE_NAME,
    FIELD_TYPE_PRECISION,
    FIELD_TYPE_TICKER,
    FIELD_TYPE_TIMESTAMP,
    STATE_TYPE_INFLATION_RIGHT,
    STATE_TYPE_ISSUE_EPOCH_RIGHT,
    STATE_TYPE_ISSUE_REPLACEMENT_RIGHT,
    STATE_TYPE_OWNERSHIP_RIGHT,
    STATE_TYPE_RENOMINATION_RIGHT,
    TICKER_MAX_LEN,
    TICKER_MIN_LEN,
    TRANSITION_TYPE_ISSUE_BURN,
    TRANSITION_TYPE_ISSUE_EPOCH,
    TRANSITION_TYPE_ISSUE_FUNGIBLE,
    TRANSITION_TYPE_ISSUE_REPLACE,
    TRANSITION_TYPE_RENOMINATION,
    TRANSITION_TYPE_RIGHTS_SPLIT,
    TRANSITION_TYPE_VALUE_TRANSFER,
)

__all__ = [
    "FieldType",
    "OwnedRightType",
    "TransitionType",
    "Occurrence",
    "ValueType",
    "StateKind",
    "SchemaVariant",
    # helpers/validators
    "is_lower_snake",
    "field_type_from_code",
    "owned_right_type_from_code",
    "transition_type_from_code",
    "is_valid_ticker",
    "assert_ticker",
    "is_txid",
    "assert_txid",
    "ensure_all_enum_values_lower_snake",
    "ensure_codes_unique",
]


# ============================================================================
# SCHEMA VOCABULARY (CODE-BOUND)
# ============================================================================


class FieldType(Enum):
    """
    Metadata field types used by RGB20 genesis and transitions.

    Notes:
      - ticker, name, ricardian_contract, precision: genesis and renomination.
      - issued_supply: genesis, secondary issuance, burn & replace.
      - burned_supply, burn_utxo, history_proof(_format): burn procedures.
      - timestamp: genesis only.
    """

    NAME = "name"
    TICKER = "ticker"
    RICARDIAN_CONTRACT = "ricardian_contract"
    PRECISION = "precision"
    TIMESTAMP = "timestamp"
    ISSUED_SUPPLY = "issued_supply"
    BURNED_SUPPLY = "burned_supply"
    BURN_UTXO = "burn_utxo"
    HISTORY_PROOF = "history_proof"
    HISTORY_PROOF_FORMAT = "history_proof_format"

    @property
    def code(self) -> int:
        return _FIELD_CODES[self.value]


class OwnedRightType(Enum):
    """
    Owned right types assignable to outpoints.

    Notes:
      - assets: ownership of an amount of the asset.
      - inflation: secondary issuance right; its value is the remaining cap.
      - open_epoch: right to open a new burn & replace epoch.
      - burn_replace: right to burn, or burn & replace, within an epoch.
      - renomination: right to change ticker/name/contract/precision.
    """

    ASSETS = "assets"
    RENOMINATION = "renomination"
    INFLATION = "inflation"
    OPEN_EPOCH = "open_epoch"
    BURN_REPLACE = "burn_replace"

    @property
    def code(self) -> int:
        return _RIGHT_CODES[self.value]


class TransitionType(Enum):
    """
    State transition types defined by the RGB20 schemata.

    Notes:
      rights_split separates rights that were allocated to the same outpoint,
      without which either the assets or the co-located rights would be lost.
    """

    TRANSFER = "transfer"
    RENOMINATION = "renomination"
    ISSUE = "issue"
    EPOCH = "epoch"
    BURN = "burn"
    BURN_AND_REPLACE = "burn_and_replace"
    RIGHTS_SPLIT = "rights_split"

    @property
    def code(self) -> int:
        return _TRANSITION_CODES[self.value]


_FIELD_CODES: Final[dict[str, int]] = {
    "name": FIELD_TYPE_NAME,
    "ticker": FIELD_TYPE_TICKER,
    "ricardian_contract": FIELD_TYPE_CONTRACT_TEXT,
    "precision": FIELD_TYPE_PRECISION,
    "timestamp": FIELD_TYPE_TIMESTAMP,
    "issued_supply": FIELD_TYPE_ISSUED_SUPPLY,
    "burned_supply": FIELD_TYPE_BURN_SUPPLY,
    "burn_utxo": FIELD_TYPE_BURN_UTXO,
    "history_proof": FIELD_TYPE_HISTORY_PROOF,
    "history_proof_format": FIELD_TYPE_HISTORY_PROOF_FORMAT,
}

_RIGHT_CODES: Final[dict[str, int]] = {
    "assets": STATE_TYPE_OWNERSHIP_RIGHT,
    "renomination": STATE_TYPE_RENOMINATION_RIGHT,
    "inflation": STATE_TYPE_INFLATION_RIGHT,
    "open_epoch": STATE_TYPE_ISSUE_EPOCH_RIGHT,
    "burn_replace": STATE_TYPE_ISSUE_REPLACEMENT_RIGHT,
}

_TRANSITION_CODES: Final[dict[str, int]] = {
    "transfer": TRANSITION_TYPE_VALUE_TRANSFER,
    "renomination": TRANSITION_TYPE_RENOMINATION,
    "issue": TRANSITION_TYPE_ISSUE_FUNGIBLE,
    "epoch": TRANSITION_TYPE_ISSUE_EPOCH,
    "burn": TRANSITION_TYPE_ISSUE_BURN,
    "burn_and_replace": TRANSITION_TYPE_ISSUE_REPLACE,
    "rights_split": TRANSITION_TYPE_RIGHTS_SPLIT,
}


# ============================================================================
# OCCURRENCE CONSTRAINTS
# ============================================================================


class Occurrence(Enum):
    """
    Cardinality constraint on a field or right within a genesis/transition.

    | value         | min | max       |
    |---------------|-----|-----------|
    | once          | 1   | 1         |
    | none_or_once  | 0   | 1         |
    | once_or_more  | 1   | unbounded |
    | none_or_more  | 0   | unbounded |
    """

    ONCE = "once"
    NONE_OR_ONCE = "none_or_once"
    ONCE_OR_MORE = "once_or_more"
    NONE_OR_MORE = "none_or_more"

    @property
    def min(self) -> int:
        return 1 if self in (Occurrence.ONCE, Occurrence.ONCE_OR_MORE) else 0

    @property
    def max(self) -> int | None:
        """Upper bound, or None when unbounded."""
        return 1 if self in (Occurrence.ONCE, Occurrence.NONE_OR_ONCE) else None

    def allows(self, count: int) -> bool:
        """Whether `count` occurrences satisfy this constraint."""
        if count < self.min:
            return False
        return self.max is None or count <= self.max

    def contains(self, other: Occurrence) -> bool:
        """
        Whether `other`'s range lies within this range.

        Args:
          other (Occurrence): Candidate (narrower) range.

        Returns:
          bool: True if other.min >= self.min and other.max <= self.max.
        """
        if other.min < self.min:
            return False
        return self.caps(other)

    def caps(self, other: Occurrence) -> bool:
        """Whether `other`'s upper bound does not exceed this one (lower bounds ignored)."""
        if self.max is None:
            return True
        return other.max is not None and other.max <= self.max


# ============================================================================
# VALUE AND STATE DESCRIPTORS
# ============================================================================


class ValueType(Enum):
    """Value type descriptor for a metadata field."""

    ASCII_STRING = "ascii_string"
    U8 = "u8"
    U64 = "u64"
    I64 = "i64"
    BYTES = "bytes"
    OUTPOINT = "outpoint"


class StateKind(Enum):
    """State encoding of an owned right type."""

    DECLARATIVE = "declarative"
    DISCRETE_FINITE_FIELD = "discrete_finite_field"
    DATA_CONTAINER = "data_container"


class SchemaVariant(Enum):
    """
    RGB20 contract schema variants.

    Notes:
      - full: root schema; inflation, burn, burn & replace, renomination.
      - inflationary: restricted; inflation and burn, no replacement.
      - simple: restricted; transfers only.
    """

    FULL = "full"
    INFLATIONARY = "inflationary"
    SIMPLE = "simple"


# ============================================================================
# HELPERS / VALIDATORS
# ============================================================================

_LOWER_SNAKE_RE = re.compile(r"^[a-z][a-z0-9_]*$")
_TICKER_RE = re.compile(rf"^[A-Z]{{{TICKER_MIN_LEN},{TICKER_MAX_LEN}}}$")
_TXID_RE = re.compile(r"^[0-9a-f]{64}$")


def is_lower_snake(s: str) -> bool:
    """Return True if s is lower_snake (starts with a letter)."""
    return bool(_LOWER_SNAKE_RE.match(s or ""))


def _from_code(enum_cls: type[Enum], codes: dict[str, int], code: int) -> Enum:
    for value, c in codes.items():
        if c == code:
            return enum_cls(value)
    raise ValueError(f"unknown {enum_cls.__name__} code {code:#04x}")


def field_type_from_code(code: int) -> FieldType:
    """
    Resolve a numeric wire code into a FieldType.

    Raises:
      ValueError: If the code is not bound to any field type.
    """
    return _from_code(FieldType, _FIELD_CODES, code)  # type: ignore[return-value]


def owned_right_type_from_code(code: int) -> OwnedRightType:
    """Resolve a numeric wire code into an OwnedRightType (ValueError if unknown)."""
    return _from_code(OwnedRightType, _RIGHT_CODES, code)  # type: ignore[return-value]


def transition_type_from_code(code: int) -> TransitionType:
    """Resolve a numeric wire code into a TransitionType (ValueError if unknown)."""
    return _from_code(TransitionType, _TRANSITION_CODES, code)  # type: ignore[return-value]


def is_valid_ticker(ticker: str) -> bool:
    """
    Check the ticker rule: 3 to 8 uppercase ASCII letters, no spaces.

    Examples:
      >>> is_valid_ticker("ABC"), is_valid_ticker("AB"), is_valid_ticker("TOOLONGTICK")
      (True, False, False)
    """
    return bool(_TICKER_RE.match(ticker or ""))


def assert_ticker(ticker: str) -> str:
    """
    Validate a ticker and return it unchanged.

    Raises:
      ValueError: If the ticker breaks the 3 to 8 uppercase-letters rule.
    """
    if not is_valid_ticker(ticker):
        raise ValueError(
            f"ticker must be {TICKER_MIN_LEN}-{TICKER_MAX_LEN} uppercase ASCII letters "
            f"with no spaces (got {ticker!r})"
        )
    return ticker


def is_txid(s: str) -> bool:
    """Return True if s is a 32-byte transaction id in lowercase hex."""
    return bool(_TXID_RE.match(s or ""))


def assert_txid(s: str, field: str = "txid") -> str:
    """Validate a txid string; raise ValueError naming `field` if malformed."""
    if not is_txid(s):
        raise ValueError(f"{field} must be 64 lowercase hex characters, got {s!r}")
    return s


def ensure_all_enum_values_lower_snake(enums: Iterable[type[Enum]]) -> None:
    """
    Assert that every enum member's value is lower_snake.

    Raises:
      AssertionError: If any enum member has a non-lower_snake value.
    """
    for E in enums:
        for m in E:
            if not is_lower_snake(m.value):
                raise AssertionError(
                    f"{E.__name__}.{m.name} has non-lower_snake value: {m.value!r}"
                )


def ensure_codes_unique(enums: Iterable[type[Enum]]) -> None:
    """
    Assert that wire codes are unique within each code-bound enum.

    Raises:
      AssertionError: If two members of one enum share a code.
    """
    for E in enums:
        seen: dict[int, str] = {}
        for m in E:
            code = m.code  # type: ignore[attr-defined]
            if code in seen:
                raise AssertionError(
                    f"{E.__name__}.{m.name} reuses code {code:#04x} of {seen[code]}"
                )
            seen[code] = m.name
