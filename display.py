"""
Formatting and chart helpers for the dashboard

Everything here is free of Streamlit calls so the charts and number formats
can be built (and tested) without a running app.
"""

import altair as alt
import pandas as pd

from xrd_sim import SimulationRun


def format_price(value: float) -> str:
    """Format a USD token price with four decimals, e.g. $0.0129"""
    return f"${value:,.4f}"


def format_tvl(value_millions: float) -> str:
    """Format a TVL given in millions of USD, e.g. 24.11 -> $24.1M"""
    value = value_millions * 1_000_000
    if value >= 1_000_000_000:
        return f"${value / 1_000_000_000:.1f}B"
    if value >= 1_000_000:
        return f"${value / 1_000_000:.1f}M"
    if value >= 1_000:
        return f"${value / 1_000:.1f}k"
    return f"${value:.2f}"


def format_large_number(value: float, unit: str = 'xrd') -> str:
    """
    Abbreviate a token or USD amount with k/M/B suffixes

    Args:
        value: Amount to format
        unit: 'xrd' appends " XRD", 'usd' prefixes "$"

    Returns:
        Formatted string
    """
    if unit not in ('xrd', 'usd'):
        raise ValueError(f"unit must be 'xrd' or 'usd', got {unit!r}")
    prefix = '$' if unit == 'usd' else ''
    suffix = ' XRD' if unit == 'xrd' else ''

    magnitude = abs(value)
    if magnitude >= 1_000_000_000:
        body = f"{value / 1_000_000_000:.1f}B"
    elif magnitude >= 1_000_000:
        body = f"{value / 1_000_000:.1f}M"
    elif magnitude >= 1_000:
        body = f"{value / 1_000:.1f}k"
    elif magnitude >= 100:
        body = f"{round(value)}"
    else:
        body = f"{value:.2f}"
    return f"{prefix}{body}{suffix}"


def format_token_usd(tokens: float, usd: float) -> str:
    """Format a table cell showing both the XRD amount and its USD value"""
    return f"{format_large_number(tokens, 'xrd')} | {format_large_number(usd, 'usd')}"


def build_display_table(run: SimulationRun) -> pd.DataFrame:
    """
    Build the human-readable day-by-day table

    Days are shown 1-based. Each flow column shows XRD and USD side by side.
    """
    df = run.to_dataframe()
    return pd.DataFrame({
        'Day': df['day'] + 1,
        'Price (USD)': df['price'].map(format_price),
        'TVL (USD)': df['tvl'].map(format_tvl),
        'Emission (XRD | USD)': [
            format_token_usd(t, u) for t, u in zip(df['daily_emission_to_market'], df['emission_usd'])
        ],
        'Buyback (XRD | USD)': [
            format_token_usd(t, u) for t, u in zip(df['daily_buyback'], df['buyback_usd'])
        ],
        'Locked (XRD | USD)': [
            format_token_usd(t, u) for t, u in zip(df['daily_locked'], df['locked_usd'])
        ],
        'Annual Buyback Cum. (XRD | USD)': [
            format_token_usd(t, u)
            for t, u in zip(df['cumulative_annual_buyback'], df['cumulative_buyback_usd'])
        ],
        'Annual Locked Cum. (XRD | USD)': [
            format_token_usd(t, u)
            for t, u in zip(df['cumulative_annual_locked'], df['cumulative_locked_usd'])
        ],
    })


def _trend_chart(df: pd.DataFrame, field: str, title: str, color: str, value_format: str) -> alt.Chart:
    return alt.Chart(df).mark_line(
        color=color,
        strokeWidth=3
    ).encode(
        x=alt.X('Day:Q', title='Day'),
        y=alt.Y(f'{field}:Q', title=title),
        tooltip=[
            alt.Tooltip('Day:Q', title='Day'),
            alt.Tooltip(f'{field}:Q', title=title, format=value_format)
        ]
    ).properties(
        height=300
    ).interactive()


def price_chart(run: SimulationRun) -> alt.Chart:
    df = pd.DataFrame({
        'Day': run.column('day'),
        'Price ($)': run.column('price'),
    })
    return _trend_chart(df, 'Price ($)', 'Price ($)', '#2ca02c', '$.4f')


def tvl_chart(run: SimulationRun) -> alt.Chart:
    """TVL trend with the target drawn as a dashed rule"""
    df = pd.DataFrame({
        'Day': run.column('day'),
        'TVL ($ Millions)': run.column('tvl'),
    })
    trend = _trend_chart(df, 'TVL ($ Millions)', 'TVL ($ Millions)', '#1f77b4', '.2f')
    target_rule = alt.Chart(pd.DataFrame({
        'Target': [f"Target: ${run.parameters.tvl_target:,.0f}M"],
        'Value': [run.parameters.tvl_target],
    })).mark_rule(
        color='gray',
        strokeDash=[5, 5],
        opacity=0.7
    ).encode(
        y=alt.Y('Value:Q'),
        tooltip=['Target:N']
    )
    return trend + target_rule


def monthly_flows_chart(run: SimulationRun) -> alt.Chart:
    """Grouped bars of emission to market, buyback and locked per 30-day month"""
    monthly = run.monthly_totals().rename(columns={
        'month': 'Month',
        'emission_to_market': 'Market Emission',
        'buyback': 'Buyback',
        'locked': 'Locked',
    })
    melted = monthly.melt(
        id_vars=['Month'],
        var_name='Flow',
        value_name='XRD'
    )
    melted['XRD (Millions)'] = melted['XRD'] / 1e6
    flow_color_scale = alt.Scale(
        domain=['Market Emission', 'Buyback', 'Locked'],
        range=['#ff7f0e', '#2ca02c', '#9467bd']
    )
    return alt.Chart(melted).mark_bar().encode(
        x=alt.X('Month:O', title='Month'),
        xOffset='Flow:N',
        y=alt.Y('XRD (Millions):Q', title='XRD (Millions)'),
        color=alt.Color('Flow:N', scale=flow_color_scale),
        tooltip=[
            alt.Tooltip('Month:O', title='Month'),
            alt.Tooltip('Flow:N', title='Flow'),
            alt.Tooltip('XRD (Millions):Q', title='XRD (M)', format='.3f')
        ]
    ).properties(
        height=350
    )


def cumulative_locked_chart(run: SimulationRun) -> alt.Chart:
    df = pd.DataFrame({
        'Day': run.column('day'),
        'Locked (XRD)': run.column('cumulative_annual_locked'),
    })
    return alt.Chart(df).mark_area(
        color='#9467bd',
        opacity=0.6
    ).encode(
        x=alt.X('Day:Q', title='Day'),
        y=alt.Y('Locked (XRD):Q', title='Cumulative Locked (XRD)'),
        tooltip=[
            alt.Tooltip('Day:Q', title='Day'),
            alt.Tooltip('Locked (XRD):Q', title='Locked (XRD)', format=',.0f')
        ]
    ).properties(
        height=300
    ).interactive()
