"""
Named parameter bundles for common market scenarios

Each preset overrides a subset of SimulationParameters; anything it does not
name keeps the engine default.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List

from xrd_sim import SimulationParameters


# Shared by every preset
_COMMON = {
    'initial_price': 0.02,
    'initial_tvl': 25,
    'taker_fee_percent': 0.05,
    'dynamic_emission_enabled': False,
    'emission_to_market_percent': 50,
    'momentum_factor': 0.5,
    'tvl_inertia': 0.5,
    'emission_smoothing': 0.5,
    'market_depth_factor': 0.5,
}


@dataclass(frozen=True)
class Preset:
    name: str
    description: str
    overrides: Dict[str, Any] = field(default_factory=dict)

    def to_parameters(self) -> SimulationParameters:
        return SimulationParameters.from_dict(self.overrides)


PRESETS: Dict[str, Preset] = {
    'conservative': Preset(
        name="Conservative",
        description="Modest TVL target with $1M daily volume",
        overrides={**_COMMON, 'base_emission_millions_per_year': 300, 'tvl_target': 100, 'daily_volume': 1_000_000},
    ),
    'moderate': Preset(
        name="Moderate",
        description="$250M TVL target with $3M daily volume",
        overrides={**_COMMON, 'base_emission_millions_per_year': 250, 'tvl_target': 250, 'daily_volume': 3_000_000},
    ),
    'optimistic': Preset(
        name="Optimistic",
        description="$500M TVL target with $5M daily volume",
        overrides={**_COMMON, 'base_emission_millions_per_year': 200, 'tvl_target': 500, 'daily_volume': 5_000_000},
    ),
    'bullish': Preset(
        name="Bullish",
        description="$1B TVL target with $10M daily volume",
        overrides={**_COMMON, 'base_emission_millions_per_year': 150, 'tvl_target': 1000, 'daily_volume': 10_000_000},
    ),
}


def preset_names() -> List[str]:
    """Display names of all presets, in definition order"""
    return [preset.name for preset in PRESETS.values()]


def get_preset(key: str) -> SimulationParameters:
    """
    Resolve a preset into a full parameter record

    Args:
        key: Preset key, e.g. 'moderate' (case-insensitive)

    Returns:
        SimulationParameters with the preset's overrides applied to the defaults

    Raises:
        KeyError: If no preset has that key
    """
    try:
        preset = PRESETS[key.lower()]
    except KeyError:
        raise KeyError(f"Unknown preset {key!r}. Available: {', '.join(PRESETS)}") from None
    return preset.to_parameters()
