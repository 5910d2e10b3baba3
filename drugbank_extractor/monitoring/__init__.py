"""
Monitoring module for the drug extraction system.

This module provides performance monitoring and metrics collection
for extraction runs.
"""

from .performance_monitor import PerformanceMonitor, PerformanceMetrics

__all__ = [
    'PerformanceMonitor',
    'PerformanceMetrics'
]
