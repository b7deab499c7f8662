"""Dashboard components for the intersection grid."""

import logging
from typing import List, Optional, Sequence

import pandas as pd
import plotly.express as px
import plotly.graph_objects as go
import streamlit as st

from ..coordination.strategies import CoordinationStrategy, CoordinationStrategyType, STRATEGY_DESCRIPTIONS
from ..models.intersection_node import IntersectionNode, Phase
from ..models.network_metrics import NetworkMetrics, TrafficWave

logger = logging.getLogger(__name__)

PHASE_COLORS = {
    Phase.NORTH_SOUTH.value: '#4caf50',
    Phase.EAST_WEST.value: '#1f77b4',
}


def build_intersection_frame(intersections: Sequence[IntersectionNode]) -> pd.DataFrame:
    """Tabular view of the intersections, one row per node in creation order."""
    columns = ['id', 'name', 'x', 'y', 'current_phase', 'phase_timer', 'vehicle_count', 'congestion_level']
    rows = [
        {key: value for key, value in node.to_dict().items() if key in columns}
        for node in intersections
    ]
    return pd.DataFrame(rows, columns=columns)


class GridMonitor:
    """Renders the grid layout, signal phases and congestion."""

    def __init__(self, hotspot_threshold: float = 70.0):
        self.hotspot_threshold = hotspot_threshold

    def build_grid_figure(self, intersections: Sequence[IntersectionNode],
                          traffic_waves: Optional[Sequence[TrafficWave]] = None) -> go.Figure:
        """Roads, intersections colored by phase and sized by congestion."""
        fig = go.Figure()
        by_id = {node.id: node for node in intersections}

        drawn = set()
        for node in intersections:
            for neighbour_id in node.connected_intersections:
                edge = tuple(sorted((node.id, neighbour_id)))
                if edge in drawn or neighbour_id not in by_id:
                    continue
                drawn.add(edge)
                neighbour = by_id[neighbour_id]
                fig.add_trace(go.Scatter(
                    x=[node.position[0], neighbour.position[0]],
                    y=[node.position[1], neighbour.position[1]],
                    mode='lines',
                    line=dict(color='#4A5568', width=3),
                    hoverinfo='skip',
                    showlegend=False
                ))

        for wave in traffic_waves or []:
            source = by_id.get(wave.source_intersection)
            target = by_id.get(wave.target_intersection)
            if source is None or target is None:
                continue
            fig.add_annotation(
                x=target.position[0], y=target.position[1],
                ax=source.position[0], ay=source.position[1],
                xref='x', yref='y', axref='x', ayref='y',
                showarrow=True, arrowhead=2, arrowwidth=1,
                arrowcolor='rgba(255, 152, 0, 0.5)'
            )

        frame = build_intersection_frame(intersections)
        for phase, color in PHASE_COLORS.items():
            subset = frame[frame['current_phase'] == phase]
            if subset.empty:
                continue
            fig.add_trace(go.Scatter(
                x=subset['x'],
                y=subset['y'],
                mode='markers+text',
                name=f"{phase} green",
                text=subset['name'],
                textposition='top center',
                marker=dict(
                    size=14 + subset['congestion_level'] / 4,
                    color=color,
                    line=dict(
                        color=['#f44336' if level > self.hotspot_threshold else '#2D3748'
                               for level in subset['congestion_level']],
                        width=3
                    )
                ),
                customdata=subset[['vehicle_count', 'congestion_level', 'phase_timer']].values,
                hovertemplate=(
                    '%{text}<br>Vehicles: %{customdata[0]}<br>'
                    'Congestion: %{customdata[1]:.0f}%<br>Timer: %{customdata[2]:.1f}<extra></extra>'
                )
            ))

        fig.update_layout(
            title='Intersection Grid',
            xaxis=dict(visible=False),
            yaxis=dict(visible=False, autorange='reversed', scaleanchor='x'),
            height=500
        )
        return fig

    def render_grid(self, intersections: Sequence[IntersectionNode],
                    traffic_waves: Optional[Sequence[TrafficWave]] = None) -> None:
        """Render the grid figure."""
        st.plotly_chart(self.build_grid_figure(intersections, traffic_waves), use_container_width=True)

    def render_congestion_chart(self, intersections: Sequence[IntersectionNode]) -> None:
        """Render congestion per intersection against the hotspot threshold."""
        frame = build_intersection_frame(intersections)
        fig = px.bar(
            frame, x='name', y='congestion_level',
            title='Congestion by Intersection',
            labels={'name': 'Intersection', 'congestion_level': 'Congestion (%)'},
            color='congestion_level',
            color_continuous_scale='RdYlGn_r',
            range_y=[0, 100]
        )
        fig.add_hline(y=self.hotspot_threshold, line_dash='dash', line_color='red')
        fig.update_layout(height=400)
        st.plotly_chart(fig, use_container_width=True)

    def render_hotspots(self, metrics: NetworkMetrics, intersections: Sequence[IntersectionNode]) -> None:
        """Render the congestion hotspot alert and table."""
        if not metrics.congestion_hotspots:
            st.success("No congestion hotspots")
            return

        st.error(f"**{len(metrics.congestion_hotspots)} CONGESTION HOTSPOT(S)**")
        frame = build_intersection_frame(intersections)
        hotspots = frame[frame['id'].isin(metrics.congestion_hotspots)]
        st.dataframe(hotspots[['name', 'vehicle_count', 'congestion_level']], use_container_width=True)


class NetworkPerformance:
    """Renders network metrics and their history."""

    def render_kpi_dashboard(self, metrics: NetworkMetrics) -> None:
        """Render the key network metrics."""
        st.subheader("Network Performance")

        col1, col2, col3, col4, col5 = st.columns(5)

        with col1:
            st.metric("Coordination Efficiency", f"{metrics.coordination_efficiency:.1f}%")
        with col2:
            st.metric("Total Vehicles", metrics.total_vehicles)
        with col3:
            st.metric("Avg Wait Time", f"{metrics.average_wait_time:.1f}s")
        with col4:
            st.metric("Throughput", f"{metrics.network_throughput:.0f} veh/hr")
        with col5:
            st.metric("CO2 Reduction", f"{metrics.co2_reduction:.1f}%")

    def render_history(self, history: pd.DataFrame) -> None:
        """Render efficiency and wait time over the simulated cycles."""
        if history.empty:
            st.info("No cycles simulated yet")
            return

        fig = px.line(
            history, x='cycle', y=['coordination_efficiency', 'average_wait_time'],
            color_discrete_sequence=['#4caf50', '#f44336'],
            title='Efficiency and Wait Time per Cycle',
            labels={'value': 'Value', 'cycle': 'Cycle', 'variable': 'Metric'}
        )
        fig.update_layout(height=400)
        st.plotly_chart(fig, use_container_width=True)


class StrategySelector:
    """Sidebar control for the coordination strategy."""

    def render_strategy_controls(self, current: CoordinationStrategy) -> str:
        """Render the selector and return the chosen strategy tag."""
        st.sidebar.subheader("Coordination Strategy")

        options: List[str] = [strategy_type.value for strategy_type in CoordinationStrategyType]
        selected = st.sidebar.selectbox(
            "Strategy",
            options=options,
            index=options.index(current.type.value),
            format_func=lambda tag: tag.replace('_', ' ').title(),
            key="strategy_selector"
        )

        st.sidebar.caption(STRATEGY_DESCRIPTIONS[CoordinationStrategyType(selected)])
        st.sidebar.metric("Strategy Efficiency", f"{current.efficiency:.1f}%")
        return selected
