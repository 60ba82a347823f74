"""Smoke tests for the Streamlit dashboard, rendered headlessly with AppTest."""
from pathlib import Path

import pytest
from streamlit.testing.v1 import AppTest


APP_PATH = str(Path(__file__).resolve().parent.parent / "app.py")


@pytest.fixture
def app():
    at = AppTest.from_file(APP_PATH, default_timeout=30)
    at.run()
    return at


class TestDashboard:
    """Test the dashboard renders a full run."""

    def test_renders_without_error(self, app):
        """Test the default scenario renders with no exception or error box."""
        assert not app.exception
        assert not app.error
        assert app.title[0].value == "XRD Tokenomics Simulation"

    def test_metric_cards(self, app):
        """Test the four headline metric cards appear in order."""
        labels = [metric.label for metric in app.metric]

        assert labels[:4] == ["Final XRD Price", "Final TVL", "Total Annual Buyback", "Total Annual Locked"]

    def test_tabs(self, app):
        """Test all five dashboard tabs are present."""
        assert [tab.label for tab in app.tabs] == ["Results", "Charts", "Data Table", "Formulas", "Presets"]

    def test_select_preset(self, app):
        """Test switching to a preset reruns the simulation with its values."""
        app.sidebar.selectbox[0].select("Bullish").run()

        assert not app.exception
        assert app.sidebar.number_input(key="bullish_target").value == 1000
