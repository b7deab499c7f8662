"""Dashboard for the signal coordination system."""

from .grid_components import GridMonitor, NetworkPerformance, StrategySelector, build_intersection_frame

__all__ = ['GridMonitor', 'NetworkPerformance', 'StrategySelector', 'build_intersection_frame']
