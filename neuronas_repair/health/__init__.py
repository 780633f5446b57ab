"""
Health module - system health monitor client.
"""

from neuronas_repair.health.monitor import HealthMonitor

__all__ = [
    "HealthMonitor",
]
