"""Runtime configuration resolver for auction simulations.

Resolves configuration by precedence:
    1. Explicit overrides (e.g. CLI flags)
    2. User YAML file (``--config``)
    3. Packaged defaults (``auction_defaults.yaml``)
    4. Fail fast on unknown keys or invalid values

The core structures never validate their inputs; this layer is where tick
capacity, supply and gas prices are checked before anything is built.
"""
from __future__ import annotations

import hashlib
import logging
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

import yaml

from .cost_model import GasSchedule

logger = logging.getLogger(__name__)

DEFAULTS_PATH: Path = Path(__file__).resolve().parent / "auction_defaults.yaml"

VALID_MODELS: frozenset[str] = frozenset({"fenwick", "frontier"})
"""Auction backends selectable by ``model``."""

_TOP_LEVEL_KEYS: frozenset[str] = frozenset({"model", "max_ticks", "sale_supply", "gas"})
_GAS_KEYS: frozenset[str] = frozenset(
    {"cold_read", "warm_read", "cold_write", "warm_write", "bit_op"}
)


@dataclass(frozen=True)
class AuctionRuntimeConfig:
    """Resolved configuration shared by the simulator, factory and scripts."""

    model: str
    max_ticks: int
    sale_supply: int
    gas: GasSchedule
    config_version: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "model": self.model,
            "max_ticks": self.max_ticks,
            "sale_supply": self.sale_supply,
            "gas": self.gas.to_dict(),
            "config_version": self.config_version,
        }


# ──────────────────────────────────────────────────────────────────────
# Helpers
# ──────────────────────────────────────────────────────────────────────


def _compute_config_version(fields: Mapping[str, Any]) -> str:
    """Short deterministic hash of the resolved fields."""
    raw = "|".join(f"{k}={v}" for k, v in sorted(fields.items()))
    return hashlib.sha256(raw.encode()).hexdigest()[:12]


def _version_fields(
    model: str, max_ticks: int, sale_supply: int, gas: GasSchedule,
) -> Dict[str, Any]:
    return {
        "model": model,
        "max_ticks": max_ticks,
        "sale_supply": sale_supply,
        **{f"gas.{k}": v for k, v in gas.to_dict().items()},
    }


def _load_yaml(path: Path) -> Dict[str, Any]:
    """Load a YAML config file that must contain a mapping.

    Raises:
        FileNotFoundError: If ``path`` does not exist.
        ValueError: If the file is empty or not a mapping.
    """
    if not path.exists():
        raise FileNotFoundError(f"Auction config not found: {path}")
    raw = yaml.safe_load(path.read_text())
    if raw is None:
        raise ValueError(f"Auction config is empty: {path}")
    if not isinstance(raw, dict):
        raise ValueError(
            f"Expected YAML mapping at top level, got {type(raw).__name__}: {path}"
        )
    return raw


def _merge(base: Dict[str, Any], layer: Mapping[str, Any], source: str) -> None:
    unknown = set(layer) - _TOP_LEVEL_KEYS
    if unknown:
        raise ValueError(f"Unknown config keys in {source}: {sorted(unknown)}")

    for key, value in layer.items():
        if key == "gas":
            if not isinstance(value, Mapping):
                raise ValueError(f"'gas' must be a mapping in {source}")
            unknown_gas = set(value) - _GAS_KEYS
            if unknown_gas:
                raise ValueError(f"Unknown gas keys in {source}: {sorted(unknown_gas)}")
            base["gas"].update(value)
        else:
            base[key] = value


def _require_positive_int(name: str, value: Any) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValueError(f"{name} must be an integer, got {value!r}")
    if value <= 0:
        raise ValueError(f"{name} must be > 0, got {value}")
    return value


# ──────────────────────────────────────────────────────────────────────
# Resolver
# ──────────────────────────────────────────────────────────────────────


def resolve_config(
    config_path: Optional[Path] = None,
    overrides: Optional[Mapping[str, Any]] = None,
) -> AuctionRuntimeConfig:
    """Resolve the runtime configuration.

    Args:
        config_path: Optional YAML file layered over the packaged defaults.
        overrides: Optional mapping layered last. ``None`` values are
            ignored so argparse defaults can be passed straight through.

    Returns:
        Fully validated ``AuctionRuntimeConfig``.

    Raises:
        FileNotFoundError: If ``config_path`` does not exist.
        ValueError: On unknown keys or invalid values.
    """
    defaults = _load_yaml(DEFAULTS_PATH)
    merged: Dict[str, Any] = {"gas": {}}
    _merge(merged, defaults, str(DEFAULTS_PATH))

    if config_path is not None:
        _merge(merged, _load_yaml(Path(config_path)), str(config_path))

    if overrides:
        _merge(
            merged,
            {k: v for k, v in overrides.items() if v is not None},
            "overrides",
        )

    model = merged.get("model")
    if model not in VALID_MODELS:
        raise ValueError(
            f"Invalid model '{model}'. Must be one of: {sorted(VALID_MODELS)}"
        )
    max_ticks = _require_positive_int("max_ticks", merged.get("max_ticks"))
    sale_supply = _require_positive_int("sale_supply", merged.get("sale_supply"))

    gas_fields = {}
    for key in sorted(_GAS_KEYS):
        value = merged["gas"].get(key)
        if value is None:
            raise ValueError(f"Missing gas price: {key}")
        gas_fields[key] = _require_positive_int(f"gas.{key}", value)
    gas = GasSchedule(**gas_fields)

    config = AuctionRuntimeConfig(
        model=model,
        max_ticks=max_ticks,
        sale_supply=sale_supply,
        gas=gas,
        config_version=_compute_config_version(
            _version_fields(model, max_ticks, sale_supply, gas)
        ),
    )
    logger.info(
        "Resolved auction config model=%s max_ticks=%d version=%s",
        model, max_ticks, config.config_version,
    )
    return config


def with_model(config: AuctionRuntimeConfig, model: str) -> AuctionRuntimeConfig:
    """Copy of ``config`` targeting another backend, with a fresh ``config_version``."""
    if model not in VALID_MODELS:
        raise ValueError(
            f"Invalid model '{model}'. Must be one of: {sorted(VALID_MODELS)}"
        )
    version = _compute_config_version(
        _version_fields(model, config.max_ticks, config.sale_supply, config.gas)
    )
    return replace(config, model=model, config_version=version)
