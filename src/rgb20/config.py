"""
Configuration for the rgb20 package.

Defines Rgb20Settings, a frozen dataclass carrying runtime configuration for
issuance and nomination validation. Defaults are sourced from
rgb20.core.constants (the single source of truth for protocol limits).

Source of truth
- rgb20.core.constants.TIMESTAMP_FLOOR, PRECISION_MAX
- Ticker length limits are protocol constants and are not configurable.

Notes
- Precedence: environment > TOML > defaults (see Rgb20Settings.load).
- Malformed values never raise; the previous layer's value is kept.
"""

from __future__ import annotations

import os
import tomllib
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Any

from .core.constants import PRECISION_MAX, TIMESTAMP_FLOOR


@dataclass(frozen=True)
class Rgb20Settings:
    """
    Runtime settings for issuance and nomination checks.

    Attributes:
        network (str): Ledger network label stamped on new genesis records.
        default_precision (int): Decimal precision used when issue() gets none.
        name_max_len (int): Maximum asset name length.
        contract_text_max_len (int): Maximum Ricardian contract text length.
        timestamp_floor (int): Earliest accepted genesis timestamp (UNIX seconds).

    Examples:
        >>> from rgb20.config import Rgb20Settings
        >>> Rgb20Settings(network="testnet").default_precision
        8
    """

    network: str = "signet"
    default_precision: int = 8
    name_max_len: int = 32
    # Longer contracts should be referenced by hash + URL instead
    contract_text_max_len: int = 64 * 1024
    timestamp_floor: int = TIMESTAMP_FLOOR

    # Configuration loaders (env/TOML) with precedence: env > TOML > defaults.

    @classmethod
    def _apply_mapping(cls, base: Rgb20Settings, cfg: dict[str, Any] | None) -> Rgb20Settings:
        """Apply a loose config mapping onto Rgb20Settings, returning a new instance."""
        if not isinstance(cfg, dict):
            return base

        s = base

        if "network" in cfg and isinstance(cfg["network"], str) and cfg["network"].strip():
            s = replace(s, network=cfg["network"].strip().lower())

        if "default_precision" in cfg:
            try:
                precision = int(cfg["default_precision"])
            except (TypeError, ValueError):
                precision = -1
            if 0 <= precision <= PRECISION_MAX:
                s = replace(s, default_precision=precision)

        for name in ("name_max_len", "contract_text_max_len", "timestamp_floor"):
            if name not in cfg:
                continue
            try:
                value = int(cfg[name])
            except (TypeError, ValueError):
                continue
            if value > 0:
                s = replace(s, **{name: value})

        return s

    @classmethod
    def from_env(cls, base: Rgb20Settings | None = None, prefix: str = "RGB20_") -> Rgb20Settings:
        """
        Build Rgb20Settings from environment variables. Precedence is env > base (if provided) > defaults.

        Recognized variables:
            - RGB20_NETWORK
            - RGB20_DEFAULT_PRECISION
            - RGB20_NAME_MAX_LEN
            - RGB20_CONTRACT_TEXT_MAX_LEN
            - RGB20_TIMESTAMP_FLOOR
        """
        s = base or cls()

        mapping: dict[str, Any] = {}
        for name in (
            "network",
            "default_precision",
            "name_max_len",
            "contract_text_max_len",
            "timestamp_floor",
        ):
            v = os.getenv(prefix + name.upper())
            if v:
                mapping[name] = v

        return cls._apply_mapping(s, mapping)

    @classmethod
    def from_toml(cls, path: str | os.PathLike[str] | None = None) -> Rgb20Settings:
        """
        Build Rgb20Settings from a TOML file.

        Search order when `path` is None:
            1) ./rgb20.toml (with either a top-level [rgb20] table or direct keys)
            2) ./pyproject.toml under [tool.rgb20]

        Returns defaults if no file is present or readable.
        """
        s = cls()

        def _load_toml(p: Path) -> dict[str, Any] | None:
            try:
                with p.open("rb") as fh:
                    return tomllib.load(fh)
            except (OSError, tomllib.TOMLDecodeError):
                return None

        cand: list[Path] = []
        if path is not None:
            cand.append(Path(path))
        else:
            cand.append(Path.cwd() / "rgb20.toml")
            cand.append(Path.cwd() / "pyproject.toml")

        cfg: dict[str, Any] | None = None
        for p in cand:
            if not p.exists():
                continue
            data = _load_toml(p)
            if not isinstance(data, dict):
                continue
            if p.name == "pyproject.toml":
                tool = data.get("tool", {})
                cfg = tool.get("rgb20") if isinstance(tool, dict) else None
            elif isinstance(data.get("rgb20"), dict):
                cfg = data["rgb20"]
            else:
                cfg = data
            if cfg:
                break

        return cls._apply_mapping(s, cfg)

    @classmethod
    def load(cls, path: str | os.PathLike[str] | None = None) -> Rgb20Settings:
        """
        Load Rgb20Settings applying precedence: environment > TOML > defaults.

        Args:
            path: Optional explicit TOML path. If None, search defaults (rgb20.toml, pyproject.toml).
        """
        s = cls.from_toml(path)
        s = cls.from_env(base=s)
        return s
