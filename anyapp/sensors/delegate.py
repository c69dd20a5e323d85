"""Sensor delegation for fan-out pattern.

This module provides SensorDelegate, which implements the delegation pattern
for routing sensor events to multiple monitoring backends simultaneously.
Each backend receives the same events and can maintain independent state.
"""

from typing import Set, Dict, Optional, Any
import logging

from anyapp.sensors.base import OperatorSensor

logger = logging.getLogger(__name__)


class SensorDelegate(OperatorSensor):
    """Delegate sensor that fans out events to multiple backends.

    This class maintains a set of child sensors and forwards all lifecycle
    events to each one. State tracking is handled per-sensor, so each backend
    receives its own state dict from start/complete hook pairs. A failing
    sensor is logged and never interrupts the operator.

    Example:
        delegate = SensorDelegate()
        delegate.add(LoggingSensor())
        delegate.add(PrometheusMonitor())

        state = delegate.on_job_start("my-app", "default", "Deploy")
        delegate.on_job_complete("my-app", "default", "Deploy", state, "Done", True)
    """

    def __init__(self) -> None:
        """Initialize empty sensor delegate."""
        self._sensors: Set[OperatorSensor] = set()

    def add(self, sensor: OperatorSensor) -> None:
        logger.info(f"Adding sensor: {sensor.__class__.__name__}")
        self._sensors.add(sensor)

    def remove(self, sensor: OperatorSensor) -> None:
        logger.info(f"Removing sensor: {sensor.__class__.__name__}")
        self._sensors.discard(sensor)

    def clear(self) -> None:
        logger.info(f"Clearing {len(self._sensors)} sensors")
        self._sensors.clear()

    def _fan_out(self, hook: str, *args) -> Optional[Dict[OperatorSensor, Any]]:
        states = {}
        for sensor in self._sensors:
            try:
                state = getattr(sensor, hook)(*args)
                if state is not None:
                    states[sensor] = state
            except Exception as e:
                logger.error(
                    f"Error in {sensor.__class__.__name__}.{hook}: {e}",
                    exc_info=True,
                )
        return states if states else None

    # =============================================================================
    # Reconciliation Lifecycle Hooks
    # =============================================================================

    def on_reconcile_start(
        self,
        app_name: str,
        namespace: str,
        generation: int,
        trigger_source: str,
    ) -> Optional[Dict[OperatorSensor, Any]]:
        return self._fan_out(
            "on_reconcile_start", app_name, namespace, generation, trigger_source
        )

    def on_reconcile_complete(
        self,
        app_name: str,
        namespace: str,
        state: Optional[Dict[OperatorSensor, Any]],
        success: bool,
        error: Optional[Exception] = None,
    ) -> None:
        for sensor in self._sensors:
            try:
                sensor_state = state.get(sensor) if state else None
                sensor.on_reconcile_complete(app_name, namespace, sensor_state, success, error)
            except Exception as e:
                logger.error(
                    f"Error in {sensor.__class__.__name__}.on_reconcile_complete: {e}",
                    exc_info=True,
                )

    def on_state_transition(
        self,
        app_name: str,
        namespace: str,
        from_state: str,
        to_state: str,
    ) -> None:
        self._fan_out("on_state_transition", app_name, namespace, from_state, to_state)

    # =============================================================================
    # Job Hooks
    # =============================================================================

    def on_job_start(
        self,
        app_name: str,
        namespace: str,
        job_type: str,
    ) -> Optional[Dict[OperatorSensor, Any]]:
        return self._fan_out("on_job_start", app_name, namespace, job_type)

    def on_job_complete(
        self,
        app_name: str,
        namespace: str,
        job_type: str,
        state: Optional[Dict[OperatorSensor, Any]],
        status: str,
        success: bool,
    ) -> None:
        for sensor in self._sensors:
            try:
                sensor_state = state.get(sensor) if state else None
                sensor.on_job_complete(
                    app_name, namespace, job_type, sensor_state, status, success
                )
            except Exception as e:
                logger.error(
                    f"Error in {sensor.__class__.__name__}.on_job_complete: {e}",
                    exc_info=True,
                )

    # =============================================================================
    # Status Update Hooks
    # =============================================================================

    def on_status_update(self, app_name: str, namespace: str, zone_id: str) -> None:
        self._fan_out("on_status_update", app_name, namespace, zone_id)

    def on_status_conflict(self, app_name: str, namespace: str, zone_id: str) -> None:
        self._fan_out("on_status_conflict", app_name, namespace, zone_id)

    # =============================================================================
    # Utility Methods
    # =============================================================================

    def asdict(self) -> Dict[str, Any]:
        """Return aggregated state from all sensors.

        Returns:
            Dict mapping sensor class name to its state dict
        """
        return {
            sensor.__class__.__name__: sensor.asdict()
            for sensor in self._sensors
        }
