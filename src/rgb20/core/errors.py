"""
Core exception types raised by schema checks, state projection and drafting.

Provides typed exceptions for RGB20 domain failures. Every error is a
non-retryable precondition or consistency failure: it reflects a logical
inconsistency in the supplied data rather than a transient condition, so
callers should surface it instead of retrying.

Notes:
    - This module uses only the Python standard library and has no side effects.
    - All errors derive from Rgb20Error (itself a ValueError), so a single
      ``except Rgb20Error`` catches every domain failure.
    - Pydantic validators raise plain ValueError-family errors; pydantic wraps
      those into ``pydantic.ValidationError`` on direct model construction.

Examples:
    Catch a failed projection.

    >>> from rgb20.core.errors import Rgb20Error, WrongSchemaId
    >>> try:
    ...     raise WrongSchemaId("genesis schema is not an RGB20 schema")
    ... except Rgb20Error as e:
    ...     msg = str(e)
    >>> "RGB20" in msg
    True
"""

from __future__ import annotations

__all__ = [
    "Rgb20Error",
    "WrongSchemaId",
    "UnsatisfiedSchemaRequirement",
    "SchemaMismatch",
    "GenesisSeal",
    "ConfidentialStateError",
    "EpochSealConfidential",
    "BurnSealConfidential",
    "InflationAssignmentConfidential",
    "NotAllEpochsExposed",
    "InsufficientRights",
]


class Rgb20Error(ValueError):
    """Base class for RGB20 domain failures."""


class WrongSchemaId(Rgb20Error):
    """Genesis commits to a schema that is not one of the RGB20 schemata."""


class UnsatisfiedSchemaRequirement(Rgb20Error):
    """Required metadata is missing or malformed, or an occurrence constraint is broken."""


class SchemaMismatch(Rgb20Error):
    """
    A restricted schema is not a legal narrowing of its root schema.

    Attributes:
        offending (str): Name of the offending type, e.g. "transition:burn"
            or "genesis.owned_rights:inflation".
    """

    def __init__(self, offending: str, reason: str) -> None:
        super().__init__(f"{offending}: {reason}")
        self.offending = offending
        self.reason = reason


class GenesisSeal(Rgb20Error):
    """A genesis assignment uses a witness-relative seal, which cannot exist for genesis."""


class ConfidentialStateError(Rgb20Error):
    """
    A seal or state value needed for projection is only present in concealed form.

    Attributes:
        node_id (str): Id of the genesis/transition carrying the concealed data.
    """

    def __init__(self, node_id: str, detail: str = "") -> None:
        message = f"{type(self).__name__}({node_id})"
        if detail:
            message = f"{message}: {detail}"
        super().__init__(message)
        self.node_id = node_id


class EpochSealConfidential(ConfidentialStateError):
    """An epoch (burn & replace or renomination) seal is concealed."""


class BurnSealConfidential(ConfidentialStateError):
    """A burn & replace right seal is concealed."""


class InflationAssignmentConfidential(ConfidentialStateError):
    """An inflation right value (issuance cap) is concealed."""


class NotAllEpochsExposed(Rgb20Error):
    """A burn operation refers to an epoch whose opening transition is not supplied."""


class InsufficientRights(Rgb20Error):
    """A right that is required to be spent is unknown, already spent, or not enough."""
