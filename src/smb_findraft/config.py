# SMB FinDraft - Financial KPIs & MD&A drafting assistant for SMBs
# Copyright (c) 2025 Maxence Bernard (maxencebernardhub)
# Licensed under the MIT License. See LICENSE file for details.

"""
Configuration helpers for SMB FinDraft.

This module is responsible for:
- loading the application configuration from a TOML file,
- applying defaults when no configuration file is present,
- exposing typed dataclasses used by the rest of the application.
"""

from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Optional

try:
    import tomllib  # Python 3.11+
except ModuleNotFoundError:  # pragma: no cover - fallback for older Python
    import tomli as tomllib  # type: ignore[import]

from .ledgers import DEFAULT_CURRENCY, DEFAULT_TAX_RATE
from .storage import StorageConfig

DEFAULT_CONFIG_FILENAME = "smb_findraft_config.toml"
DEFAULT_STORAGE_PATH = "data/db/smb_findraft.sqlite"
DEFAULT_OUTPUT_DIR = "data/output"


@dataclass(frozen=True)
class AppConfig:
    """
    Application-wide configuration for SMB FinDraft.

    This aggregates:
    - the presentation currency,
    - the storage configuration (where workspace and ledgers are saved),
    - the directory where MD&A drafts are exported,
    - the default corporate tax rate used for new books.
    """

    currency: str
    storage: StorageConfig
    output_dir: Path
    tax_rate: float


def _load_toml(path: Path) -> dict[str, Any]:
    """
    Load a TOML file and return its content as a dictionary.

    Raises:
        FileNotFoundError: if the file does not exist.
        ValueError: if the TOML content cannot be parsed or is not a table.
    """
    if not path.is_file():
        raise FileNotFoundError(f"Config file not found: {path}")

    try:
        data = tomllib.loads(path.read_text(encoding="utf-8"))
    except Exception as exc:  # noqa: BLE001
        raise ValueError(f"Failed to parse TOML config file: {path}") from exc

    if not isinstance(data, dict):
        raise ValueError(f"Invalid TOML root type in {path}, expected a table.")

    return data


def _section(raw: Mapping[str, Any], name: str) -> Mapping[str, Any]:
    section = raw.get(name) or {}
    if not isinstance(section, Mapping):
        return {}
    return section


def load_app_config(config_path: Optional[str] = None) -> AppConfig:
    """
    Load the SMB FinDraft configuration from a TOML file.

    Expected sections (all optional)
    --------------------------------
    [display]
        currency = "USD"

    [storage]
        engine = "sqlite"
        path = "data/db/smb_findraft.sqlite"

    [draft]
        output_dir = "data/output"

    [tax]
        rate = 0.21

    Notes
    -----
    - When ``config_path`` is None and ``smb_findraft_config.toml`` does not
      exist in the current directory, defaults are used.
    - An explicit ``config_path`` that does not exist is an error.
    - Relative paths are resolved against the directory of the TOML file
      (or the current directory when running on defaults).

    Raises
    ------
    FileNotFoundError
        If an explicit config path does not exist.
    ValueError
        If the TOML cannot be parsed or contains invalid values.
    """
    if config_path is None:
        config_file = Path(DEFAULT_CONFIG_FILENAME).resolve()
        raw = _load_toml(config_file) if config_file.is_file() else {}
    else:
        config_file = Path(config_path).resolve()
        raw = _load_toml(config_file)

    base_dir = config_file.parent

    # 1) Display
    display_section = _section(raw, "display")
    currency = str(display_section.get("currency") or DEFAULT_CURRENCY).upper()

    # 2) Storage
    storage_section = _section(raw, "storage")
    engine = str(storage_section.get("engine") or "sqlite")
    storage_path_raw = storage_section.get("path") or DEFAULT_STORAGE_PATH
    storage = StorageConfig(
        engine=engine,
        path=(base_dir / str(storage_path_raw)).resolve(),
    )

    # 3) Draft export
    draft_section = _section(raw, "draft")
    output_dir_raw = draft_section.get("output_dir") or DEFAULT_OUTPUT_DIR
    output_dir = (base_dir / str(output_dir_raw)).resolve()

    # 4) Tax
    tax_section = _section(raw, "tax")
    raw_rate = tax_section.get("rate", DEFAULT_TAX_RATE)
    try:
        tax_rate = float(raw_rate)
    except (TypeError, ValueError) as exc:
        raise ValueError(
            "Invalid value for 'tax.rate' in the configuration. Expected a number."
        ) from exc

    if not 0 <= tax_rate <= 1:
        raise ValueError("'tax.rate' must be between 0 and 1.")

    return AppConfig(
        currency=currency,
        storage=storage,
        output_dir=output_dir,
        tax_rate=tax_rate,
    )
