"""
Core XRD Tokenomics Simulation Module

This module contains the day-by-day simulation engine for XRD tokenomics
modeling. Given one set of economic parameters it produces a one-year time
series of price, TVL, emission to market, fee-funded buybacks and locked
tokens. The recurrence couples price and TVL through a smoothed
supply/demand pressure term.
"""

import logging
import math
from dataclasses import dataclass, asdict, fields, replace as dataclass_replace
from typing import Any, Dict, Iterator, Mapping, Tuple

import numpy as np
import pandas as pd


logger = logging.getLogger(__name__)


# Model constants
SIMULATION_DAYS = 365
ACTIVITY_REFERENCE_VOLUME = 10_000_000  # Daily volume (USD) treated as 100% activity
TVL_EMISSION_WEIGHT = 0.7
TVL_EMISSION_EXPONENT = 0.7
ACTIVITY_EMISSION_WEIGHT = 0.3
ACTIVITY_EMISSION_EXPONENT = 0.5
BUYBACK_FEE_SHARE = 0.5  # Half of the fee revenue buys back XRD
MAX_DAILY_PRICE_CHANGE = 0.1
PRICE_FLOOR = 0.001
MIN_TVL_RATIO = 0.5
UNITS_PER_MILLION = 1_000_000


class SimulationError(Exception):
    """Base class for errors raised by the simulation engine"""


class InvalidParameterError(SimulationError, ValueError):
    """A parameter is out of range, non-finite or of the wrong type"""


class NumericAnomalyError(SimulationError, ArithmeticError):
    """An intermediate value became non-finite during a run"""


def _check_range(name: str, value: float, low: float = None, high: float = None,
                 low_inclusive: bool = True) -> None:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise InvalidParameterError(f"{name} must be a number, got {value!r}")
    if not math.isfinite(value):
        raise InvalidParameterError(f"{name} must be finite, got {value!r}")
    if low is not None:
        if low_inclusive and value < low:
            raise InvalidParameterError(f"{name} must be >= {low}, got {value}")
        if not low_inclusive and value <= low:
            raise InvalidParameterError(f"{name} must be > {low}, got {value}")
    if high is not None and value > high:
        raise InvalidParameterError(f"{name} must be <= {high}, got {value}")


@dataclass(frozen=True)
class SimulationParameters:
    """Economic parameters for one simulation run"""

    # Market starting point
    initial_price: float = 0.0129  # XRD price in USD
    initial_tvl: float = 24.11  # Total value locked in millions of USD

    # Emission
    base_emission_millions_per_year: float = 300  # Annual emission budget in millions of XRD
    tvl_target: float = 100  # Target TVL in millions of USD
    dynamic_emission_enabled: bool = False
    emission_to_market_percent: float = 50  # Share of emission released to the market

    # Fees
    daily_volume: float = 500_000  # Daily trading volume in USD
    taker_fee_percent: float = 0.1

    # Advanced dynamics
    emission_smoothing: float = 0.8  # Weight of the previous day's emission
    momentum_factor: float = 0.3  # Weight of the previous day's momentum
    tvl_inertia: float = 0.7  # Share of the TVL gap NOT closed each day
    market_depth_factor: float = 0.5  # Market depth as a multiple of TVL

    def __post_init__(self):
        """Validate all parameters before any simulation can use them"""
        _check_range('initial_price', self.initial_price, low=PRICE_FLOOR)
        _check_range('initial_tvl', self.initial_tvl, low=0, low_inclusive=False)
        _check_range('base_emission_millions_per_year', self.base_emission_millions_per_year, low=0)
        _check_range('tvl_target', self.tvl_target, low=0, low_inclusive=False)
        _check_range('daily_volume', self.daily_volume, low=0)
        _check_range('taker_fee_percent', self.taker_fee_percent, low=0)
        _check_range('emission_to_market_percent', self.emission_to_market_percent, low=0, high=100)
        _check_range('emission_smoothing', self.emission_smoothing, low=0, high=1)
        _check_range('momentum_factor', self.momentum_factor, low=0, high=1)
        _check_range('tvl_inertia', self.tvl_inertia, low=0, high=1)
        _check_range('market_depth_factor', self.market_depth_factor, low=0, low_inclusive=False)

        if not isinstance(self.dynamic_emission_enabled, bool):
            raise InvalidParameterError(
                f"dynamic_emission_enabled must be a bool, got {self.dynamic_emission_enabled!r}"
            )

        # Activity progress is raised to a negative power in dynamic mode
        if self.dynamic_emission_enabled and self.daily_volume <= 0:
            raise InvalidParameterError(
                f"daily_volume must be > 0 when dynamic emission is enabled, got {self.daily_volume}"
            )

    @property
    def base_emission_units(self) -> float:
        """Annual base emission in XRD units"""
        return self.base_emission_millions_per_year * UNITS_PER_MILLION

    @property
    def min_tvl(self) -> float:
        """TVL floor for the run, in millions of USD"""
        return self.initial_tvl * MIN_TVL_RATIO

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> 'SimulationParameters':
        """
        Build parameters from a plain mapping

        Args:
            data: Field names mapped to values. Missing fields use defaults.

        Returns:
            Validated SimulationParameters

        Raises:
            InvalidParameterError: If a key is not a known field or a value is invalid
        """
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            raise InvalidParameterError(f"Unknown parameter(s): {', '.join(unknown)}")
        return cls(**dict(data))

    def replace(self, **changes: Any) -> 'SimulationParameters':
        """Return a validated copy with the given fields changed"""
        return dataclass_replace(self, **changes)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class DailyRecord:
    """State of the token economy at the end of one simulated day"""
    day: int
    price: float
    tvl: float
    daily_emission_to_market: float
    daily_buyback: float
    daily_locked: float
    cumulative_annual_buyback: float
    cumulative_annual_locked: float


@dataclass
class _EngineState:
    """Mutable state carried from one day to the next inside a single run"""
    price: float
    tvl: float
    previous_annual_emission: float
    momentum: float = 0.0
    cumulative_buyback: float = 0.0
    cumulative_locked: float = 0.0


def _ensure_finite(day: int, **values: float) -> None:
    for name, value in values.items():
        if not math.isfinite(value):
            raise NumericAnomalyError(f"{name} became non-finite ({value}) on day {day}")


def _dynamic_target_emission(params: SimulationParameters, tvl: float) -> float:
    """
    Calculate the annual emission the dynamic mode is steering towards

    Uses formula: target = base × (0.7 × tvl_progress^-0.7 + 0.3 × activity_progress^-0.5)
    so that lower progress towards the TVL target or the activity reference
    raises emission.

    Args:
        params: Simulation parameters
        tvl: Current TVL in millions of USD

    Returns:
        Target annual emission in XRD units
    """
    tvl_progress = tvl / params.tvl_target
    activity_progress = params.daily_volume / ACTIVITY_REFERENCE_VOLUME
    return params.base_emission_units * (
        TVL_EMISSION_WEIGHT * tvl_progress ** -TVL_EMISSION_EXPONENT +
        ACTIVITY_EMISSION_WEIGHT * activity_progress ** -ACTIVITY_EMISSION_EXPONENT
    )


def _step(params: SimulationParameters, state: _EngineState, day: int) -> DailyRecord:
    """Advance the state by one day and return that day's record"""
    # Annual emission
    if params.dynamic_emission_enabled:
        target_emission = _dynamic_target_emission(params, state.tvl)
        annual_emission = (
            state.previous_annual_emission * params.emission_smoothing +
            target_emission * (1 - params.emission_smoothing)
        )
        state.previous_annual_emission = annual_emission
    else:
        annual_emission = params.base_emission_units

    daily_emission_to_market = (annual_emission / SIMULATION_DAYS) * (params.emission_to_market_percent / 100)

    # Buyback and lock, valued at the start-of-day price
    daily_fees = params.daily_volume * (params.taker_fee_percent / 100)
    daily_buyback = (daily_fees / state.price) * BUYBACK_FEE_SHARE
    daily_locked = daily_buyback
    state.cumulative_buyback += daily_buyback
    state.cumulative_locked += daily_locked

    # Price
    net_supply = daily_emission_to_market - daily_buyback - daily_locked
    market_depth = state.tvl * params.market_depth_factor
    pressure = -net_supply / market_depth
    state.momentum = state.momentum * params.momentum_factor + pressure * (1 - params.momentum_factor)
    bounded_change = max(min(state.momentum, MAX_DAILY_PRICE_CHANGE), -MAX_DAILY_PRICE_CHANGE)
    state.price = max(state.price * (1 + bounded_change), PRICE_FLOOR)

    # TVL follows the price ratio since day 0, damped by inertia
    target_tvl = params.initial_tvl * (state.price / params.initial_price)
    tvl_change = (target_tvl - state.tvl) * (1 - params.tvl_inertia)
    state.tvl = max(params.min_tvl, state.tvl + tvl_change)

    _ensure_finite(
        day,
        annual_emission=annual_emission,
        momentum=state.momentum,
        price=state.price,
        tvl=state.tvl,
        cumulative_buyback=state.cumulative_buyback,
    )

    return DailyRecord(
        day=day,
        price=state.price,
        tvl=state.tvl,
        daily_emission_to_market=daily_emission_to_market,
        daily_buyback=daily_buyback,
        daily_locked=daily_locked,
        cumulative_annual_buyback=state.cumulative_buyback,
        cumulative_annual_locked=state.cumulative_locked,
    )


def simulate(params: SimulationParameters) -> 'SimulationRun':
    """
    Run the complete one-year simulation

    Args:
        params: Validated simulation parameters

    Returns:
        SimulationRun holding one DailyRecord per day (0..364)

    Raises:
        InvalidParameterError: If params is not a SimulationParameters instance
        NumericAnomalyError: If any intermediate value becomes non-finite
    """
    if not isinstance(params, SimulationParameters):
        raise InvalidParameterError(
            f"Expected SimulationParameters, got {type(params).__name__}"
        )

    logger.info(
        "Running %s-emission simulation: price=%s tvl=%sM emission=%sM/yr volume=%s",
        'dynamic' if params.dynamic_emission_enabled else 'static',
        params.initial_price, params.initial_tvl,
        params.base_emission_millions_per_year, params.daily_volume,
    )

    state = _EngineState(
        price=params.initial_price,
        tvl=params.initial_tvl,
        previous_annual_emission=params.base_emission_units,
    )

    records = []
    try:
        for day in range(SIMULATION_DAYS):
            records.append(_step(params, state, day))
    except (OverflowError, ZeroDivisionError) as exc:
        # Underflow to 0.0 surfaces as division by zero (market depth, TVL progress)
        logger.warning("Simulation aborted on day %d: %s", day, exc)
        raise NumericAnomalyError(f"Arithmetic error on day {day}: {exc}") from exc
    except NumericAnomalyError as exc:
        logger.warning("Simulation aborted: %s", exc)
        raise

    logger.debug("Simulation finished: final price=%.6f final tvl=%.4fM", state.price, state.tvl)
    return SimulationRun(parameters=params, records=tuple(records))


@dataclass(frozen=True)
class SimulationRun:
    """
    Immutable result of one simulation

    Behaves as a read-only sequence of DailyRecord and offers the derived
    views the dashboard needs (summary metrics, monthly totals, USD values).
    """
    parameters: SimulationParameters
    records: Tuple[DailyRecord, ...]

    def __len__(self) -> int:
        return len(self.records)

    def __iter__(self) -> Iterator[DailyRecord]:
        return iter(self.records)

    def __getitem__(self, index):
        return self.records[index]

    @property
    def final(self) -> DailyRecord:
        return self.records[-1]

    def column(self, name: str) -> np.ndarray:
        """Get one DailyRecord field across all days as a numpy array"""
        return np.array([getattr(record, name) for record in self.records])

    def to_dataframe(self) -> pd.DataFrame:
        """
        Convert the run to a DataFrame with USD valuations

        Token amounts are valued at the same day's closing price. The
        cumulative USD columns are running sums of those daily values, not
        the cumulative token amounts at today's price.

        Returns:
            DataFrame with one row per day
        """
        df = pd.DataFrame([asdict(record) for record in self.records])
        df['emission_usd'] = df['daily_emission_to_market'] * df['price']
        df['buyback_usd'] = df['daily_buyback'] * df['price']
        df['locked_usd'] = df['daily_locked'] * df['price']
        df['cumulative_buyback_usd'] = df['buyback_usd'].cumsum()
        df['cumulative_locked_usd'] = df['locked_usd'].cumsum()
        return df

    def monthly_totals(self, days_per_month: int = 30) -> pd.DataFrame:
        """
        Sum daily flows into fixed-length month buckets

        Args:
            days_per_month: Bucket length in days. The last bucket may be shorter.

        Returns:
            DataFrame with columns month, emission_to_market, buyback, locked
        """
        if isinstance(days_per_month, bool) or not isinstance(days_per_month, int) or days_per_month <= 0:
            raise ValueError(f"days_per_month must be a positive integer, got {days_per_month!r}")

        df = pd.DataFrame({
            'month': self.column('day') // days_per_month,
            'emission_to_market': self.column('daily_emission_to_market'),
            'buyback': self.column('daily_buyback'),
            'locked': self.column('daily_locked'),
        })
        return df.groupby('month', as_index=False).sum()

    def summary_metrics(self) -> Dict[str, float]:
        """
        Calculate summary metrics from the run

        Returns:
            Dictionary of key performance indicators
        """
        params = self.parameters
        first, last = self.records[0], self.records[-1]
        prices = self.column('price')

        return {
            'final_price': last.price,
            'price_change_percent': (last.price - first.price) / first.price * 100,
            'final_tvl': last.tvl,
            'tvl_change_percent': (last.tvl - first.tvl) / first.tvl * 100,
            'tvl_progress_percent': last.tvl / params.tvl_target * 100,
            'total_annual_buyback': last.cumulative_annual_buyback,
            'total_annual_locked': last.cumulative_annual_locked,
            'total_emission_to_market': float(np.sum(self.column('daily_emission_to_market'))),
            'activity_progress_percent': params.daily_volume / ACTIVITY_REFERENCE_VOLUME * 100,
            'min_price': float(np.min(prices)),
            'max_price': float(np.max(prices)),
        }

    def formula_breakdown(self) -> Dict[str, float]:
        """
        Evaluate the recurrence's intermediate terms at the final day's state

        Returns:
            Dictionary of the quantities behind emission, buyback and price
        """
        params = self.parameters
        last = self.records[-1]

        daily_fees = params.daily_volume * (params.taker_fee_percent / 100)
        buyback_at_final_price = (daily_fees / last.price) * BUYBACK_FEE_SHARE
        locked_at_final_price = buyback_at_final_price
        net_supply = last.daily_emission_to_market - buyback_at_final_price - locked_at_final_price
        market_depth = last.tvl * params.market_depth_factor

        tvl_progress = last.tvl / params.tvl_target
        activity_progress = params.daily_volume / ACTIVITY_REFERENCE_VOLUME
        # Either progress at 0.0 puts the dynamic target at its singularity
        if tvl_progress > 0 and activity_progress > 0:
            try:
                target_emission = _dynamic_target_emission(params, last.tvl)
            except OverflowError:
                target_emission = math.inf
        else:
            target_emission = math.inf

        if market_depth > 0:
            pressure = -net_supply / market_depth
        else:
            pressure = -math.copysign(math.inf, net_supply) if net_supply else 0.0

        return {
            'tvl_progress': tvl_progress,
            'activity_progress': activity_progress,
            'base_emission_units': params.base_emission_units,
            'target_emission': target_emission,
            'daily_emission_to_market': last.daily_emission_to_market,
            'daily_fees': daily_fees,
            'daily_buyback': buyback_at_final_price,
            'net_supply': net_supply,
            'market_depth': market_depth,
            'supply_demand_pressure': pressure,
        }
