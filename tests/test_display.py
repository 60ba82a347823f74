"""Tests for dashboard formatting and chart helpers."""
import altair as alt
import pytest

from display import (
    build_display_table,
    cumulative_locked_chart,
    format_large_number,
    format_price,
    format_token_usd,
    format_tvl,
    monthly_flows_chart,
    price_chart,
    tvl_chart,
)
from xrd_sim import SimulationParameters, simulate


@pytest.fixture(scope="module")
def run():
    return simulate(SimulationParameters())


class TestFormatting:
    """Test number formatting."""

    @pytest.mark.parametrize("value,expected", [
        (0.0129, "$0.0129"),
        (1.5, "$1.5000"),
        (1234.5, "$1,234.5000"),
    ])
    def test_format_price(self, value, expected):
        assert format_price(value) == expected

    @pytest.mark.parametrize("value,expected", [
        (24.11, "$24.1M"),
        (1500, "$1.5B"),
        (0.5, "$500.0k"),
        (0.0001, "$100.00"),
    ])
    def test_format_tvl(self, value, expected):
        assert format_tvl(value) == expected

    @pytest.mark.parametrize("value,unit,expected", [
        (410_958.9, 'xrd', "411.0k XRD"),
        (2_500_000, 'usd', "$2.5M"),
        (3_000_000_000, 'xrd', "3.0B XRD"),
        (250.4, 'xrd', "250 XRD"),
        (12.5, 'usd', "$12.50"),
        (-1_500, 'usd', "$-1.5k"),
    ])
    def test_format_large_number(self, value, unit, expected):
        assert format_large_number(value, unit) == expected

    def test_unknown_unit(self):
        with pytest.raises(ValueError):
            format_large_number(1, 'eur')

    def test_format_token_usd(self):
        assert format_token_usd(12.5, 0.25) == "12.50 XRD | $0.25"


class TestDisplayTable:
    """Test the formatted day-by-day table."""

    def test_rows_and_columns(self, run):
        table = build_display_table(run)

        assert len(table) == 365
        assert table['Day'].iloc[0] == 1
        assert table['Day'].iloc[-1] == 365
        assert list(table.columns)[:3] == ['Day', 'Price (USD)', 'TVL (USD)']

    def test_cells_are_formatted(self, run):
        table = build_display_table(run)

        assert table['Price (USD)'].iloc[0] == format_price(run[0].price)
        assert ' XRD | $' in table['Buyback (XRD | USD)'].iloc[0]


class TestCharts:
    """Test chart builders return Altair charts that serialize."""

    @pytest.mark.parametrize("builder", [price_chart, tvl_chart, monthly_flows_chart, cumulative_locked_chart])
    def test_chart_builds(self, run, builder):
        chart = builder(run)

        assert isinstance(chart, (alt.Chart, alt.LayerChart))
        spec = chart.to_dict()
        assert spec

    def test_monthly_chart_data(self, run):
        chart = monthly_flows_chart(run)

        assert set(chart.data['Flow']) == {'Market Emission', 'Buyback', 'Locked'}
        assert chart.data['Month'].nunique() == 13
