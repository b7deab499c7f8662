"""Streamlit dashboard for the multi-intersection coordination engine."""

import logging
import sys
from pathlib import Path

import streamlit as st

# Allow `streamlit run` on this file without installing the package
src_dir = Path(__file__).resolve().parents[2]
if str(src_dir) not in sys.path:
    sys.path.insert(0, str(src_dir))

from signal_network.config.config_manager import ConfigManager
from signal_network.coordination.coordinator import create_multi_intersection_coordinator
from signal_network.dashboard.grid_components import GridMonitor, NetworkPerformance, StrategySelector
from signal_network.processors.network_simulator import LOAD_SCENARIOS, NetworkSimulator
from signal_network.storage.backends import JsonFileStorage
from signal_network.storage.response_cache import SuggestionLog
from signal_network.utils.error_handling import TrafficSystemError, ValidationError
from signal_network.utils.logging_config import setup_logging

logger = logging.getLogger(__name__)

SUGGESTIONS_FILE = "data/suggestions.json"


class GridCoordinationDashboard:
    """Dashboard holding one coordinator and simulator per browser session."""

    def __init__(self, config_manager: ConfigManager = None):
        self.config_manager = config_manager or ConfigManager()
        self.config = self.config_manager.get_config()

        self.grid_monitor = GridMonitor(self.config.hotspot_threshold)
        self.performance = NetworkPerformance()
        self.strategy_selector = StrategySelector()

        if 'coordinator' not in st.session_state:
            self._initialize_session_state()

    def _initialize_session_state(self, rows: int = None, cols: int = None, scenario: str = 'balanced'):
        """Create a fresh coordinator and simulator in the session."""
        coordinator = create_multi_intersection_coordinator(self.config)
        if rows is not None and cols is not None:
            coordinator.initialize_grid(rows, cols)

        st.session_state.coordinator = coordinator
        st.session_state.simulator = NetworkSimulator(coordinator, scenario=scenario)
        st.session_state.scenario = scenario

    @property
    def coordinator(self):
        return st.session_state.coordinator

    @property
    def simulator(self):
        return st.session_state.simulator

    def run(self):
        """Render the whole dashboard."""
        st.title("Multi-Intersection Signal Coordination")

        self._render_sidebar()

        intersections = self.coordinator.get_intersections()
        metrics = self.coordinator.calculate_network_metrics()

        self.performance.render_kpi_dashboard(metrics)

        tab1, tab2, tab3 = st.tabs(["Network", "History", "Intersections"])

        with tab1:
            self.grid_monitor.render_grid(intersections, self.coordinator.get_traffic_waves())
            self.grid_monitor.render_hotspots(metrics, intersections)

        with tab2:
            self.performance.render_history(self.simulator.get_metrics_history())
            summary = self.simulator.get_strategy_summary()
            if not summary.empty:
                st.subheader("Strategy Comparison")
                st.dataframe(summary, use_container_width=True)

        with tab3:
            self.grid_monitor.render_congestion_chart(intersections)

    def _render_sidebar(self):
        st.sidebar.title("Coordination Control")

        selected = self.strategy_selector.render_strategy_controls(self.coordinator.get_strategy())
        if selected != self.coordinator.get_strategy().type.value:
            self.coordinator.set_strategy(selected)

        st.sidebar.divider()
        st.sidebar.subheader("Grid")
        rows = st.sidebar.number_input("Rows", min_value=1, max_value=10, value=self.coordinator.grid.rows)
        cols = st.sidebar.number_input("Columns", min_value=1, max_value=10, value=self.coordinator.grid.cols)
        scenario = st.sidebar.selectbox("Load Scenario", list(LOAD_SCENARIOS.keys()),
                                        index=list(LOAD_SCENARIOS.keys()).index(st.session_state.scenario))

        if st.sidebar.button("Rebuild Grid"):
            strategy = self.coordinator.get_strategy().type
            self._initialize_session_state(int(rows), int(cols), scenario)
            self.coordinator.set_strategy(strategy)
            st.sidebar.success(f"Grid rebuilt as {int(rows)}x{int(cols)}")

        st.sidebar.divider()
        st.sidebar.subheader("Simulation")
        cycles = st.sidebar.slider("Cycles", 1, 100, 10)
        if st.sidebar.button("Run Cycles", type="primary"):
            self.simulator.run(cycles)
        st.sidebar.caption(f"Cycle {self.simulator.cycle}, time {self.simulator.simulation_time:.1f}")

        st.sidebar.divider()
        self._render_suggestion_form()

    def _render_suggestion_form(self):
        st.sidebar.subheader("Suggestions")
        email = st.sidebar.text_input("Email", key="suggestion_email")
        suggestion = st.sidebar.text_area("Suggestion", key="suggestion_text")

        if st.sidebar.button("Submit Suggestion"):
            try:
                SuggestionLog(JsonFileStorage(SUGGESTIONS_FILE)).add(email, suggestion)
                st.sidebar.success("Thanks for the suggestion")
            except ValidationError as e:
                st.sidebar.error(e.message)


def main():
    """Main function to run the dashboard."""
    st.set_page_config(
        page_title="Signal Coordination",
        page_icon="🚦",
        layout="wide",
        initial_sidebar_state="expanded"
    )

    try:
        config_manager = ConfigManager()
        config = config_manager.get_config()
        setup_logging(config.log_level, config.log_file_path)

        dashboard = GridCoordinationDashboard(config_manager)
        dashboard.run()
    except TrafficSystemError as e:
        st.error(f"Dashboard error: {e.message}")
        logger.error(f"Dashboard error: {e}")


if __name__ == "__main__":
    main()
