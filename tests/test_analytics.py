"""Tests for the derived views of a simulation run.

Tests cover:
- DataFrame export with USD valuation
- Monthly aggregation
- Summary metrics
- Formula breakdown
"""
import pytest

from xrd_sim import SimulationParameters, simulate


@pytest.fixture
def run():
    return simulate(SimulationParameters(
        initial_price=0.02,
        initial_tvl=25,
        base_emission_millions_per_year=300,
        tvl_target=100,
        daily_volume=1_000_000,
        taker_fee_percent=0.05,
        emission_to_market_percent=50,
    ))


class TestDataFrameExport:
    """Test the per-day DataFrame."""

    def test_one_row_per_day(self, run):
        df = run.to_dataframe()

        assert len(df) == 365
        assert df['day'].tolist() == list(range(365))
        assert df['price'].iloc[10] == run[10].price

    def test_usd_columns(self, run):
        """Test USD values use the same day's price."""
        df = run.to_dataframe()
        record = run[42]

        assert df['emission_usd'].iloc[42] == pytest.approx(record.daily_emission_to_market * record.price)
        assert df['buyback_usd'].iloc[42] == pytest.approx(record.daily_buyback * record.price)
        assert df['locked_usd'].iloc[42] == pytest.approx(record.daily_locked * record.price)

    def test_cumulative_usd_is_running_sum(self, run):
        """Test cumulative USD columns sum daily USD values."""
        df = run.to_dataframe()
        expected = sum(r.daily_buyback * r.price for r in run.records[:100])

        assert df['cumulative_buyback_usd'].iloc[99] == pytest.approx(expected)
        assert df['cumulative_locked_usd'].iloc[-1] == pytest.approx(df['locked_usd'].sum())

    def test_export_does_not_touch_run(self, run):
        """Test editing the DataFrame leaves the run unchanged."""
        original_price = run[0].price
        df = run.to_dataframe()
        df.loc[0, 'price'] = 999.0

        assert run[0].price == original_price


class TestMonthlyTotals:
    """Test 30-day month buckets."""

    def test_bucket_count(self, run):
        monthly = run.monthly_totals()

        assert monthly['month'].tolist() == list(range(13))
        assert list(monthly.columns) == ['month', 'emission_to_market', 'buyback', 'locked']

    def test_bucket_sums(self, run):
        """Test each bucket sums its days and the last bucket holds 5 days."""
        monthly = run.monthly_totals()

        first = sum(r.daily_buyback for r in run.records[:30])
        last = sum(r.daily_emission_to_market for r in run.records[360:])
        assert monthly['buyback'].iloc[0] == pytest.approx(first)
        assert monthly['emission_to_market'].iloc[-1] == pytest.approx(last)
        assert monthly['emission_to_market'].iloc[-1] == pytest.approx(5 * run[0].daily_emission_to_market)

    def test_totals_preserved(self, run):
        monthly = run.monthly_totals(days_per_month=7)

        assert monthly['locked'].sum() == pytest.approx(run.final.cumulative_annual_locked)
        assert len(monthly) == 53

    @pytest.mark.parametrize("days", [0, -30, 2.5])
    def test_invalid_bucket_length(self, run, days):
        with pytest.raises(ValueError):
            run.monthly_totals(days_per_month=days)


class TestSummaryMetrics:
    """Test headline numbers."""

    def test_final_values(self, run):
        metrics = run.summary_metrics()

        assert metrics['final_price'] == run.final.price
        assert metrics['final_tvl'] == run.final.tvl
        assert metrics['total_annual_buyback'] == run.final.cumulative_annual_buyback
        assert metrics['total_annual_locked'] == run.final.cumulative_annual_locked

    def test_changes_measured_from_first_day(self, run):
        metrics = run.summary_metrics()

        assert metrics['price_change_percent'] == pytest.approx((run.final.price - run[0].price) / run[0].price * 100)
        assert metrics['tvl_change_percent'] == pytest.approx((run.final.tvl - run[0].tvl) / run[0].tvl * 100)

    def test_progress(self, run):
        metrics = run.summary_metrics()

        assert metrics['tvl_progress_percent'] == pytest.approx(run.final.tvl / 100 * 100)
        assert metrics['activity_progress_percent'] == pytest.approx(10.0)

    def test_price_range(self, run):
        metrics = run.summary_metrics()

        assert metrics['min_price'] <= metrics['final_price'] <= metrics['max_price']
        assert metrics['total_emission_to_market'] == pytest.approx(365 * run[0].daily_emission_to_market)


class TestFormulaBreakdown:
    """Test the formula walkthrough terms."""

    def test_terms(self, run):
        terms = run.formula_breakdown()

        assert terms['daily_fees'] == pytest.approx(500.0)
        assert terms['daily_buyback'] == pytest.approx(500.0 / run.final.price * 0.5)
        assert terms['activity_progress'] == pytest.approx(0.1)
        assert terms['tvl_progress'] == pytest.approx(run.final.tvl / 100)
        assert terms['base_emission_units'] == 300_000_000
        assert terms['net_supply'] == pytest.approx(
            run.final.daily_emission_to_market - 2 * terms['daily_buyback']
        )
        assert terms['supply_demand_pressure'] == pytest.approx(-terms['net_supply'] / terms['market_depth'])

    def test_zero_volume_target(self):
        """Test a static run with no volume reports an unbounded dynamic target."""
        terms = simulate(SimulationParameters(daily_volume=0)).formula_breakdown()

        assert terms['target_emission'] == float('inf')
        assert terms['daily_buyback'] == 0
