from __future__ import annotations

from pathlib import Path

from rgb20.config import Rgb20Settings
from rgb20.core.constants import TIMESTAMP_FLOOR

_ENV_KEYS = [
    "RGB20_NETWORK",
    "RGB20_DEFAULT_PRECISION",
    "RGB20_NAME_MAX_LEN",
    "RGB20_CONTRACT_TEXT_MAX_LEN",
    "RGB20_TIMESTAMP_FLOOR",
]


def _write_rgb20_toml(tmp: Path, content: str) -> Path:
    p = tmp / "rgb20.toml"
    p.write_text(content)
    return p


def _clear_env(monkeypatch) -> None:
    for key in _ENV_KEYS:
        monkeypatch.delenv(key, raising=False)


def test_settings_precedence_env_over_toml(tmp_path: Path, monkeypatch) -> None:
    _write_rgb20_toml(
        tmp_path,
        """
        [rgb20]
        network = "testnet"
        default_precision = 2
        name_max_len = 64
        """.strip(),
    )
    monkeypatch.chdir(tmp_path)
    _clear_env(monkeypatch)
    monkeypatch.setenv("RGB20_NETWORK", "Bitcoin")
    monkeypatch.setenv("RGB20_DEFAULT_PRECISION", "0")

    s = Rgb20Settings.load()

    assert s.network == "bitcoin"
    assert s.default_precision == 0
    assert s.name_max_len == 64  # from TOML


def test_settings_from_pyproject_tool_table(tmp_path: Path, monkeypatch) -> None:
    (tmp_path / "pyproject.toml").write_text(
        """
        [tool.rgb20]
        contract_text_max_len = 1024
        timestamp_floor = 1700000000
        """.strip()
    )
    monkeypatch.chdir(tmp_path)
    _clear_env(monkeypatch)

    s = Rgb20Settings.load()

    assert s.contract_text_max_len == 1024
    assert s.timestamp_floor == 1_700_000_000


def test_settings_ignore_invalid_values(tmp_path: Path, monkeypatch) -> None:
    _write_rgb20_toml(tmp_path, 'default_precision = 999\nname_max_len = "many"\n')
    monkeypatch.chdir(tmp_path)
    _clear_env(monkeypatch)
    monkeypatch.setenv("RGB20_TIMESTAMP_FLOOR", "-5")

    s = Rgb20Settings.load()

    assert s.default_precision == 8
    assert s.name_max_len == 32
    assert s.timestamp_floor == TIMESTAMP_FLOOR


def test_settings_defaults_when_no_config(tmp_path: Path, monkeypatch) -> None:
    monkeypatch.chdir(tmp_path)
    _clear_env(monkeypatch)

    s = Rgb20Settings.load()

    assert s == Rgb20Settings()
    assert s.network == "signet"
    assert s.contract_text_max_len == 64 * 1024
