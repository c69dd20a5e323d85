"""Unit tests for operator sensors."""

import pytest
from unittest.mock import Mock
from prometheus_client import CollectorRegistry
from anyapp.sensors import OperatorSensor, PrometheusMonitor, SensorDelegate


@pytest.fixture
def registry():
    return CollectorRegistry()


@pytest.fixture
def monitor(registry):
    return PrometheusMonitor(registry=registry)


class TestPrometheusMonitor:
    """Tests for PrometheusMonitor."""

    def test_reconcile_metrics(self, monitor, registry):
        state = monitor.on_reconcile_start("app", "default", 1, "timer")
        monitor.on_reconcile_complete("app", "default", state, False, RuntimeError("x"))

        labels = {"app_name": "app", "namespace": "default", "trigger_source": "timer", "result": "failure"}
        assert registry.get_sample_value("anyapp_reconcile_total", labels) == 1
        assert (
            registry.get_sample_value(
                "anyapp_reconcile_errors_total",
                {"app_name": "app", "namespace": "default", "error_type": "RuntimeError"},
            )
            == 1
        )

    def test_job_metrics(self, monitor, registry):
        state = monitor.on_job_start("app", "default", "Deploy")
        assert registry.get_sample_value("anyapp_jobs_running", {"job_type": "Deploy"}) == 1

        monitor.on_job_complete("app", "default", "Deploy", state, "Done", True)
        assert registry.get_sample_value("anyapp_jobs_running", {"job_type": "Deploy"}) == 0
        assert (
            registry.get_sample_value(
                "anyapp_jobs_total",
                {
                    "app_name": "app",
                    "namespace": "default",
                    "job_type": "Deploy",
                    "status": "Done",
                    "result": "success",
                },
            )
            == 1
        )

    def test_status_metrics(self, monitor, registry):
        monitor.on_status_update("app", "default", "zone-a")
        monitor.on_status_conflict("app", "default", "zone-a")
        monitor.on_status_conflict("app", "default", "zone-a")
        labels = {"app_name": "app", "namespace": "default", "zone_id": "zone-a"}
        assert registry.get_sample_value("anyapp_status_updates_total", labels) == 1
        assert registry.get_sample_value("anyapp_status_conflicts_total", labels) == 2

    def test_state_transitions(self, monitor, registry):
        monitor.on_state_transition("app", "default", "Placement", "Relocation")
        assert (
            registry.get_sample_value(
                "anyapp_global_state_transitions_total",
                {
                    "app_name": "app",
                    "namespace": "default",
                    "from_state": "Placement",
                    "to_state": "Relocation",
                },
            )
            == 1
        )


class TestSensorDelegate:
    """Tests for SensorDelegate."""

    def test_fans_out_with_per_sensor_state(self):
        first, second = Mock(spec=OperatorSensor), Mock(spec=OperatorSensor)
        first.on_job_start.return_value = {"id": 1}
        second.on_job_start.return_value = {"id": 2}
        delegate = SensorDelegate()
        delegate.add(first)
        delegate.add(second)

        state = delegate.on_job_start("app", "default", "Deploy")
        delegate.on_job_complete("app", "default", "Deploy", state, "Done", True)

        first.on_job_complete.assert_called_once_with("app", "default", "Deploy", {"id": 1}, "Done", True)
        second.on_job_complete.assert_called_once_with("app", "default", "Deploy", {"id": 2}, "Done", True)

    def test_failing_sensor_is_isolated(self):
        broken, healthy = Mock(spec=OperatorSensor), Mock(spec=OperatorSensor)
        broken.on_status_update.side_effect = RuntimeError("broken")
        delegate = SensorDelegate()
        delegate.add(broken)
        delegate.add(healthy)

        delegate.on_status_update("app", "default", "zone-a")
        healthy.on_status_update.assert_called_once_with("app", "default", "zone-a")

    def test_remove(self):
        sensor = Mock(spec=OperatorSensor)
        delegate = SensorDelegate()
        delegate.add(sensor)
        delegate.remove(sensor)
        delegate.on_status_conflict("app", "default", "zone-a")
        sensor.on_status_conflict.assert_not_called()

    def test_base_sensor_is_noop(self):
        sensor = OperatorSensor()
        assert sensor.on_job_start("app", "default", "Deploy") is None
        assert sensor.asdict() == {}
