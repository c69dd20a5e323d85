"""AnyApplication operator sensor framework.

Hook-based instrumentation of reconciliations, async jobs and status writes.

Usage:
    from anyapp.sensors import SensorDelegate, PrometheusMonitor

    delegate = SensorDelegate()
    delegate.add(PrometheusMonitor())
"""

from anyapp.sensors.base import OperatorSensor
from anyapp.sensors.delegate import SensorDelegate
from anyapp.sensors.prometheus import PrometheusMonitor
from anyapp.sensors.server import init_metrics_server

__all__ = [
    'OperatorSensor',
    'SensorDelegate',
    'PrometheusMonitor',
    'init_metrics_server',
]
