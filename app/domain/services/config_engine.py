"""
CONFIG ENGINE
Load, validate, and expose market profiles

RESPONSIBILITIES:
- Load markets.yml
- Validate step tables and constants
- Expose read-only MarketProfile objects

RULES:
❌ No defaults if config missing
✅ Fail fast on invalid config
✅ Deterministic output
"""

import os
import yaml
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

from app.domain.errors import UnknownMarketError
from app.domain.models import (
    BubbleLevel,
    MarketProfile,
    ScoreStep,
    SecondarySignalKind,
)
from app.domain.services.bubble_index_scorer import (
    DEFAULT_RATIO_OF_MAX_STEPS,
    RATIO_HALF_MAX_POINTS,
    SECONDARY_MAX_POINTS,
)

DEFAULT_CONFIG_DIR = Path(__file__).resolve().parents[3] / "config"


def resolve_config_dir(config_dir: Optional[str] = None) -> Path:
    """Explicit dir, then CONFIG_DIR env, then <repo>/config"""
    raw = config_dir or os.getenv("CONFIG_DIR")
    return Path(raw) if raw else DEFAULT_CONFIG_DIR


class ConfigEngine:
    """
    Configuration Engine
    Single source of truth for market scoring constants
    """

    def __init__(self, config_dir: Path):
        """Initialize with config directory"""
        self.config_dir = Path(config_dir)
        self._markets: Dict[str, MarketProfile] = {}

    def load_all(self) -> None:
        """Load all configuration files"""
        self._load_markets()
        self._validate_all()

    # ------------------------------------------------------------------
    # ACCESSORS
    # ------------------------------------------------------------------

    @property
    def markets(self) -> List[MarketProfile]:
        return list(self._markets.values())

    def has_market(self, key: str) -> bool:
        return key in self._markets

    def get_market(self, key: str) -> MarketProfile:
        """Get market profile by key"""
        try:
            return self._markets[key]
        except KeyError:
            raise UnknownMarketError(key) from None

    # ------------------------------------------------------------------
    # LOADING
    # ------------------------------------------------------------------

    def _load_markets(self) -> None:
        """Load market profiles from markets.yml"""
        markets_file = self.config_dir / "markets.yml"
        if not markets_file.exists():
            raise FileNotFoundError(f"Markets config not found: {markets_file}")

        with open(markets_file, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}

        markets: Dict[str, MarketProfile] = {}
        for entry in data.get("markets", []):
            profile = self._parse_market(entry)
            if profile.key in markets:
                raise ValueError(f"Duplicate market key in configuration: {profile.key}")
            markets[profile.key] = profile

        self._markets = markets

    def _parse_market(self, entry: Dict[str, Any]) -> MarketProfile:
        key = entry.get("key")
        try:
            secondary = entry["secondary_signal"]
            ratio_of_max = entry.get("ratio_of_max") or {}
            high, medium = secondary["breakdown_thresholds"]
            return MarketProfile(
                key=key,
                name=entry["name"],
                market_label=entry["market_label"],
                numerator_symbol=entry["numerator"]["symbol"],
                numerator_label=entry["numerator"]["label"],
                denominator_symbol=entry["denominator"]["symbol"],
                denominator_label=entry["denominator"]["label"],
                historical_peak_ratio=float(entry["historical_peak"]["ratio"]),
                historical_peak_label=entry["historical_peak"]["label"],
                secondary_signal=SecondarySignalKind(secondary["kind"]),
                secondary_steps=self._parse_steps(secondary["steps"]),
                secondary_floor=float(secondary.get("floor", 0)),
                secondary_breakdown_thresholds=(float(high), float(medium)),
                ratio_max_steps=(
                    self._parse_steps(ratio_of_max["steps"])
                    if "steps" in ratio_of_max
                    else DEFAULT_RATIO_OF_MAX_STEPS
                ),
                ratio_max_floor=float(ratio_of_max.get("floor", 0)),
                reference_ratios={
                    name: float(value)
                    for name, value in (entry.get("reference_ratios") or {}).items()
                },
                recommendations={
                    BubbleLevel(level): text
                    for level, text in (entry.get("recommendations") or {}).items()
                },
            )
        except KeyError as exc:
            raise ValueError(f"Market '{key}' is missing config field {exc}") from exc

    @staticmethod
    def _parse_steps(raw: List[List[float]]) -> Tuple[ScoreStep, ...]:
        return tuple(ScoreStep(threshold=float(t), points=float(p)) for t, p in raw)

    # ------------------------------------------------------------------
    # VALIDATION
    # ------------------------------------------------------------------

    def _validate_all(self) -> None:
        """Validate all loaded configuration"""
        if not self._markets:
            raise ValueError("No markets configured")

        for profile in self._markets.values():
            self._validate_steps(profile.key, "ratio_of_max", profile.ratio_max_steps,
                                 profile.ratio_max_floor, RATIO_HALF_MAX_POINTS)
            self._validate_steps(profile.key, "secondary_signal", profile.secondary_steps,
                                 profile.secondary_floor, SECONDARY_MAX_POINTS)
            for name, value in profile.reference_ratios.items():
                if value <= 0:
                    raise ValueError(f"Market '{profile.key}': reference ratio {name} must be positive")

    @staticmethod
    def _validate_steps(
        key: str,
        name: str,
        table: Tuple[ScoreStep, ...],
        floor: float,
        cap: float,
    ) -> None:
        if not table:
            raise ValueError(f"Market '{key}': {name} steps cannot be empty")
        thresholds = [step.threshold for step in table]
        for upper, lower in zip(thresholds, thresholds[1:]):
            if not upper > lower:
                raise ValueError(f"Market '{key}': {name} thresholds must be strictly descending")
        points = [step.points for step in table] + [floor]
        for higher, lower in zip(points, points[1:]):
            if higher < lower:
                raise ValueError(f"Market '{key}': {name} points must not increase as thresholds fall")
        if any(p < 0 or p > cap for p in points):
            raise ValueError(f"Market '{key}': {name} points must be within 0-{cap}")
