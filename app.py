"""
Streamlit Web Application for XRD Tokenomics Simulation

This application provides an interactive interface for exploring one-year
XRD tokenomics scenarios using the core simulation engine. Users pick a preset
or adjust parameters and see the impact on price, TVL, emission, buybacks and
locked tokens as metric cards, Altair charts and a day-by-day table.
"""

import logging

import pandas as pd
import streamlit as st

from display import (
    build_display_table,
    cumulative_locked_chart,
    format_large_number,
    format_price,
    monthly_flows_chart,
    price_chart,
    tvl_chart,
)
from presets import PRESETS, get_preset
from xrd_sim import SimulationError, SimulationParameters, SimulationRun, simulate


logger = logging.getLogger(__name__)

# Configure Streamlit page
st.set_page_config(
    page_title="XRD Tokenomics Simulation",
    page_icon=None,
    layout="wide",
    initial_sidebar_state="expanded"
)

CUSTOM_PRESET = "Custom"


def create_sidebar_config() -> SimulationParameters:
    """
    Create sidebar configuration interface with organized parameter groups

    Returns:
        SimulationParameters built from the sidebar inputs

    Raises:
        InvalidParameterError: If the inputs do not form a valid parameter set
    """
    st.sidebar.title("Simulation Configuration")
    st.sidebar.markdown("Pick a scenario preset or adjust parameters directly")

    preset_labels = [CUSTOM_PRESET] + [preset.name for preset in PRESETS.values()]
    preset_label = st.sidebar.selectbox(
        "Scenario Preset",
        preset_labels,
        help="Presets fill in every parameter below. Any change afterwards is applied on top."
    )
    if preset_label == CUSTOM_PRESET:
        base = SimulationParameters()
    else:
        key = next(k for k, preset in PRESETS.items() if preset.name == preset_label)
        base = get_preset(key)
        st.sidebar.caption(PRESETS[key].description)

    # Widget keys include the preset so switching presets resets the inputs
    key_prefix = preset_label.lower()

    # MARKET
    with st.sidebar.expander("Market", expanded=True):
        initial_price = st.number_input(
            "Initial XRD Price ($)",
            min_value=0.001, max_value=10.0, value=float(base.initial_price), step=0.001,
            format="%.4f", key=f"{key_prefix}_price",
            help="Starting price per XRD in USD at day 0."
        )
        initial_tvl = st.number_input(
            "Initial TVL ($M)",
            min_value=0.01, max_value=100_000.0, value=float(base.initial_tvl), step=0.01,
            key=f"{key_prefix}_tvl",
            help="Total value locked at day 0, in millions of USD. TVL never falls below half of this."
        )
        daily_volume = st.number_input(
            "Daily Volume ($)",
            min_value=0.0, max_value=1_000_000_000.0, value=float(base.daily_volume), step=100_000.0,
            key=f"{key_prefix}_volume",
            help="Assumed daily trading volume in USD."
        )
        taker_fee_percent = st.number_input(
            "Taker Fee (%)",
            min_value=0.0, max_value=5.0, value=float(base.taker_fee_percent), step=0.01,
            key=f"{key_prefix}_fee",
            help="Fee charged on volume. Half of the fee revenue buys back XRD, and an equal amount is locked."
        )

        daily_fees = daily_volume * taker_fee_percent / 100
        st.caption(f"Daily fee revenue: ${daily_fees:,.0f}")

    # EMISSION
    with st.sidebar.expander("Emission", expanded=True):
        dynamic_emission_enabled = st.toggle(
            "Dynamic Emission",
            value=base.dynamic_emission_enabled, key=f"{key_prefix}_dynamic",
            help="Dynamic emission adjusts based on TVL progress (70%) and network activity (30%). "
                 "Static emission distributes the base budget evenly throughout the year."
        )
        base_emission = st.number_input(
            "Base Emission (M XRD / year)",
            min_value=0.0, max_value=10_000.0, value=float(base.base_emission_millions_per_year), step=1.0,
            key=f"{key_prefix}_emission",
            help="Annual emission budget in millions of XRD."
        )
        tvl_target = st.number_input(
            "TVL Target ($M)",
            min_value=0.01, max_value=100_000.0, value=float(base.tvl_target), step=1.0,
            key=f"{key_prefix}_target",
            help="TVL the dynamic emission steers towards. Lower progress means higher emission."
        )
        emission_to_market_percent = st.slider(
            "Emission to Market (%)",
            min_value=0, max_value=100, value=int(base.emission_to_market_percent), step=1,
            key=f"{key_prefix}_to_market",
            help="Share of emitted XRD that is released to the market."
        )

        st.caption(f"Static daily emission to market: "
                   f"{format_large_number(base_emission * 1e6 / 365 * emission_to_market_percent / 100)}")

    # ADVANCED DYNAMICS
    with st.sidebar.expander("Advanced Dynamics", expanded=False):
        st.markdown("**Smoothing and damping weights (0 = react immediately, 1 = never change)**")

        emission_smoothing = st.slider(
            "Emission Smoothing",
            min_value=0.0, max_value=1.0, value=float(base.emission_smoothing), step=0.1,
            key=f"{key_prefix}_smoothing",
            help="Weight of the previous day's emission in dynamic mode."
        )
        momentum_factor = st.slider(
            "Momentum Factor",
            min_value=0.0, max_value=1.0, value=float(base.momentum_factor), step=0.1,
            key=f"{key_prefix}_momentum",
            help="Weight of the previous day's price momentum."
        )
        tvl_inertia = st.slider(
            "TVL Inertia",
            min_value=0.0, max_value=1.0, value=float(base.tvl_inertia), step=0.1,
            key=f"{key_prefix}_inertia",
            help="Share of the gap to the price-implied TVL that is NOT closed each day."
        )
        market_depth_factor = st.slider(
            "Market Depth Factor",
            min_value=0.1, max_value=1.0, value=float(base.market_depth_factor), step=0.1,
            key=f"{key_prefix}_depth",
            help="Market depth as a multiple of TVL. Deeper markets absorb supply pressure with smaller price moves."
        )

    return SimulationParameters(
        initial_price=initial_price,
        initial_tvl=initial_tvl,
        base_emission_millions_per_year=base_emission,
        tvl_target=tvl_target,
        daily_volume=daily_volume,
        taker_fee_percent=taker_fee_percent,
        dynamic_emission_enabled=dynamic_emission_enabled,
        emission_to_market_percent=emission_to_market_percent,
        emission_smoothing=emission_smoothing,
        momentum_factor=momentum_factor,
        tvl_inertia=tvl_inertia,
        market_depth_factor=market_depth_factor,
    )


def show_results(run: SimulationRun) -> None:
    """Metric cards and progress towards targets"""
    metrics = run.summary_metrics()
    params = run.parameters
    mode = "Dynamic" if params.dynamic_emission_enabled else "Static"

    col1, col2, col3, col4 = st.columns(4)

    with col1:
        st.metric(
            "Final XRD Price",
            format_price(metrics['final_price']),
            f"{metrics['price_change_percent']:.2f}%",
            help=f"XRD price at the end of the 365-day simulation ({mode.lower()} emission, "
                 f"{params.emission_to_market_percent:.0f}% emission to market)."
        )

    with col2:
        st.metric(
            "Final TVL",
            f"${metrics['final_tvl']:,.2f}M",
            f"{metrics['tvl_change_percent']:.2f}%",
            help=f"Total value locked at day 365. Target: ${params.tvl_target:,.2f}M."
        )

    with col3:
        st.metric(
            "Total Annual Buyback",
            f"{metrics['total_annual_buyback']:,.0f} XRD",
            help=f"XRD bought back over 365 days from a {params.taker_fee_percent:.2f}% taker fee "
                 f"on ${params.daily_volume:,.0f} daily volume."
        )

    with col4:
        st.metric(
            "Total Annual Locked",
            f"{metrics['total_annual_locked']:,.0f} XRD",
            help="XRD locked over 365 days (equal to the buyback amount)."
        )

    st.subheader(f"Progress Towards Targets (Day 365) - {mode} Emission")
    tvl_progress = metrics['tvl_progress_percent']
    st.markdown(f"TVL Progress: {tvl_progress:.2f}% of ${params.tvl_target:,.2f}M target")
    st.progress(max(0.0, min(100.0, tvl_progress)) / 100)
    st.markdown(f"Daily Volume: ${params.daily_volume:,.2f}")
    st.progress(min(100.0, metrics['activity_progress_percent']) / 100)


def create_charts(run: SimulationRun) -> None:
    """
    Create the chart panel from a simulation run using Altair

    Args:
        run: Simulation run to visualize
    """
    col1, col2 = st.columns(2)

    with col1:
        st.subheader("XRD Price Trend")
        st.altair_chart(price_chart(run), use_container_width=True)

    with col2:
        st.subheader("TVL Trend")
        st.altair_chart(tvl_chart(run), use_container_width=True)

    st.subheader("Monthly Emission Distribution")
    st.caption("""
    Emission to market, buybacks and locked XRD summed over 30-day months.
    The final month covers the remaining 5 days of the year.
    """)
    st.altair_chart(monthly_flows_chart(run), use_container_width=True)

    st.subheader("Annual Locked Trend (Cumulative)")
    st.altair_chart(cumulative_locked_chart(run), use_container_width=True)


def show_data_table(run: SimulationRun) -> None:
    st.subheader("Simulation Data Table (Day-by-Day)")
    st.dataframe(build_display_table(run), use_container_width=True, hide_index=True, height=500)

    csv = run.to_dataframe().to_csv(index=False)
    st.download_button(
        label="Download Complete Dataset (CSV)",
        data=csv,
        file_name="xrd_simulation_results.csv",
        mime="text/csv"
    )


def show_formulas(run: SimulationRun) -> None:
    """Formulas of the recurrence with the final day's values filled in"""
    params = run.parameters
    terms = run.formula_breakdown()

    st.subheader("Daily Emission")
    if params.dynamic_emission_enabled:
        st.code(
            "TVL_Progress      = current_TVL / TVL_Target\n"
            "Activity_Progress = daily_Volume / 10M USD\n"
            "targetEmission    = baseEmission * (0.7 * TVL_Progress^-0.7 + 0.3 * Activity_Progress^-0.5)\n"
            "annualEmission    = previousEmission * smoothing + targetEmission * (1 - smoothing)\n"
            "dailyEmission     = annualEmission / 365 * (emissionToMarketPercent / 100)",
            language=None
        )
        st.code(
            f"TVL_Progress      = {terms['tvl_progress']:.4f}\n"
            f"Activity_Progress = {terms['activity_progress']:.4f}\n"
            f"targetEmission    = {terms['target_emission']:,.2f} XRD/year\n"
            f"dailyEmission     = {terms['daily_emission_to_market']:,.2f} XRD/day",
            language=None
        )
    else:
        st.code(
            "dailyEmission = baseEmission / 365 * (emissionToMarketPercent / 100)",
            language=None
        )
        st.code(
            f"dailyEmission = {terms['base_emission_units']:,.0f} / 365 * "
            f"{params.emission_to_market_percent / 100:.2f} = {terms['daily_emission_to_market']:,.2f} XRD/day",
            language=None
        )

    st.subheader("Daily Buyback & Locked")
    st.code(
        "dailyFees    = dailyVolume * (takerFeePercent / 100)\n"
        "dailyBuyback = (dailyFees / currentPrice) * 0.5\n"
        "dailyLocked  = dailyBuyback",
        language=None
    )
    st.code(
        f"dailyFees    = {terms['daily_fees']:,.2f} USD\n"
        f"dailyBuyback = {terms['daily_buyback']:,.2f} XRD\n"
        f"dailyLocked  = {terms['daily_buyback']:,.2f} XRD",
        language=None
    )

    st.subheader("Price Development")
    st.code(
        "netSupply   = dailyEmission - dailyBuyback - dailyLocked\n"
        "marketDepth = currentTVL * marketDepthFactor\n"
        "pressure    = -netSupply / marketDepth\n"
        "momentum    = momentum * momentumFactor + pressure * (1 - momentumFactor)\n"
        "price       = max(price * (1 + clamp(momentum, -10%, +10%)), 0.001)\n"
        "targetTVL   = initialTVL * (price / initialPrice)\n"
        "TVL         = max(initialTVL / 2, TVL + (targetTVL - TVL) * (1 - tvlInertia))",
        language=None
    )
    st.code(
        f"netSupply   = {terms['net_supply']:,.2f} XRD\n"
        f"marketDepth = {terms['market_depth']:,.4f}\n"
        f"pressure    = {terms['supply_demand_pressure']:,.6f}",
        language=None
    )


def show_preset_comparison() -> None:
    """Run every preset and show their summary metrics side by side"""
    st.subheader("Preset Comparison")
    rows = {}
    for key, preset in PRESETS.items():
        metrics = simulate(get_preset(key)).summary_metrics()
        rows[preset.name] = {
            'Final Price': format_price(metrics['final_price']),
            'Price Change': f"{metrics['price_change_percent']:.2f}%",
            'Final TVL': f"${metrics['final_tvl']:,.2f}M",
            'TVL Progress': f"{metrics['tvl_progress_percent']:.2f}%",
            'Annual Buyback': format_large_number(metrics['total_annual_buyback']),
            'Annual Locked': format_large_number(metrics['total_annual_locked']),
        }
    st.dataframe(pd.DataFrame(rows).T, use_container_width=True)


def main():
    """Main Streamlit application"""
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(name)s %(levelname)s %(message)s")

    # Header
    st.title("XRD Tokenomics Simulation")
    st.markdown("""
    **Model XRD price, TVL, emission and buybacks over one year**

    The simulation runs day by day: emission adds supply to the market, fee-funded buybacks and
    locks remove it, and the resulting pressure moves price and TVL. Adjust parameters in the sidebar.
    """)

    try:
        params = create_sidebar_config()
        with st.spinner("Running tokenomics simulation..."):
            run = simulate(params)
    except SimulationError as exc:
        logger.warning("Simulation rejected: %s", exc)
        st.error(f"Simulation could not run: {exc}")
        return

    results_tab, charts_tab, data_tab, formulas_tab, presets_tab = st.tabs(
        ["Results", "Charts", "Data Table", "Formulas", "Presets"]
    )

    with results_tab:
        show_results(run)

    with charts_tab:
        create_charts(run)

    with data_tab:
        show_data_table(run)

    with formulas_tab:
        show_formulas(run)

    with presets_tab:
        show_preset_comparison()


if __name__ == "__main__":
    main()
