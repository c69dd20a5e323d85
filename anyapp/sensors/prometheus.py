"""Prometheus monitoring backend for the AnyApplication operator.

This module provides PrometheusMonitor, which collects operator lifecycle events
and exposes them as Prometheus metrics:

1. Reconciliation - duration, throughput, errors and global state transitions
2. Jobs - running jobs, duration and final status per job type
3. Status record - accepted writes and optimistic concurrency conflicts

All metrics include labels for multi-dimensional analysis (app_name, namespace, etc.).
"""

from typing import Dict, Optional, Any
import time
import logging

from prometheus_client import Counter, Histogram, Gauge, REGISTRY, CollectorRegistry

from anyapp.sensors.base import OperatorSensor

logger = logging.getLogger(__name__)


class PrometheusMonitor(OperatorSensor):
    """Prometheus metrics monitor for the AnyApplication operator.

    Exposes metrics via prometheus_client that can be scraped by Prometheus.

    Example:
        monitor = PrometheusMonitor()
        state = monitor.on_reconcile_start("my-app", "default", 5, "timer")
        monitor.on_reconcile_complete("my-app", "default", state, True)
    """

    def __init__(self, registry: CollectorRegistry = REGISTRY):
        """Initialize Prometheus metrics."""
        super().__init__()

        # =============================================================================
        # Reconciliation Metrics
        # =============================================================================

        self.reconcile_duration = Histogram(
            'anyapp_reconcile_duration_seconds',
            'Time spent in reconciliation',
            labelnames=['app_name', 'namespace', 'trigger_source', 'result'],
            buckets=[0.01, 0.05, 0.1, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0],
            registry=registry,
        )

        self.reconcile_total = Counter(
            'anyapp_reconcile_total',
            'Total number of reconciliation attempts',
            labelnames=['app_name', 'namespace', 'trigger_source', 'result'],
            registry=registry,
        )

        self.reconcile_errors = Counter(
            'anyapp_reconcile_errors_total',
            'Total number of reconciliation errors',
            labelnames=['app_name', 'namespace', 'error_type'],
            registry=registry,
        )

        self.state_transitions = Counter(
            'anyapp_global_state_transitions_total',
            'Total number of global state transitions',
            labelnames=['app_name', 'namespace', 'from_state', 'to_state'],
            registry=registry,
        )

        # =============================================================================
        # Job Metrics
        # =============================================================================

        self.jobs_running = Gauge(
            'anyapp_jobs_running',
            'Number of async jobs currently running',
            labelnames=['job_type'],
            registry=registry,
        )

        self.job_duration = Histogram(
            'anyapp_job_duration_seconds',
            'Time between start and end of an async job',
            labelnames=['app_name', 'namespace', 'job_type', 'status'],
            buckets=[1.0, 5.0, 10.0, 30.0, 60.0, 300.0, 900.0, 3600.0],
            registry=registry,
        )

        self.job_total = Counter(
            'anyapp_jobs_total',
            'Total number of finished async jobs',
            labelnames=['app_name', 'namespace', 'job_type', 'status', 'result'],
            registry=registry,
        )

        # =============================================================================
        # Status Update Metrics
        # =============================================================================

        self.status_updates = Counter(
            'anyapp_status_updates_total',
            'Total number of accepted status writes',
            labelnames=['app_name', 'namespace', 'zone_id'],
            registry=registry,
        )

        self.status_conflicts = Counter(
            'anyapp_status_conflicts_total',
            'Total number of status writes rejected on a resource version conflict',
            labelnames=['app_name', 'namespace', 'zone_id'],
            registry=registry,
        )

        logger.info("PrometheusMonitor initialized with all metrics")

    # =============================================================================
    # Reconciliation Lifecycle Hooks
    # =============================================================================

    def on_reconcile_start(
        self,
        app_name: str,
        namespace: str,
        generation: int,
        trigger_source: str,
    ) -> Optional[Dict[str, Any]]:
        """Record reconciliation start time."""
        return {
            'start_time': time.time(),
            'trigger_source': trigger_source,
        }

    def on_reconcile_complete(
        self,
        app_name: str,
        namespace: str,
        state: Optional[Dict[str, Any]],
        success: bool,
        error: Optional[Exception] = None,
    ) -> None:
        """Record reconciliation duration and result."""
        if state:
            duration = time.time() - state['start_time']
            trigger_source = state['trigger_source']
            result = 'success' if success else 'failure'

            self.reconcile_duration.labels(
                app_name=app_name,
                namespace=namespace,
                trigger_source=trigger_source,
                result=result,
            ).observe(duration)

            self.reconcile_total.labels(
                app_name=app_name,
                namespace=namespace,
                trigger_source=trigger_source,
                result=result,
            ).inc()

        if error:
            self.reconcile_errors.labels(
                app_name=app_name,
                namespace=namespace,
                error_type=error.__class__.__name__,
            ).inc()

    def on_state_transition(
        self,
        app_name: str,
        namespace: str,
        from_state: str,
        to_state: str,
    ) -> None:
        self.state_transitions.labels(
            app_name=app_name,
            namespace=namespace,
            from_state=from_state,
            to_state=to_state,
        ).inc()

    # =============================================================================
    # Job Hooks
    # =============================================================================

    def on_job_start(
        self,
        app_name: str,
        namespace: str,
        job_type: str,
    ) -> Optional[Dict[str, Any]]:
        self.jobs_running.labels(job_type=job_type).inc()
        return {'start_time': time.time()}

    def on_job_complete(
        self,
        app_name: str,
        namespace: str,
        job_type: str,
        state: Optional[Dict[str, Any]],
        status: str,
        success: bool,
    ) -> None:
        self.jobs_running.labels(job_type=job_type).dec()
        if state:
            self.job_duration.labels(
                app_name=app_name,
                namespace=namespace,
                job_type=job_type,
                status=status,
            ).observe(time.time() - state['start_time'])
        self.job_total.labels(
            app_name=app_name,
            namespace=namespace,
            job_type=job_type,
            status=status,
            result='success' if success else 'failure',
        ).inc()

    # =============================================================================
    # Status Update Hooks
    # =============================================================================

    def on_status_update(self, app_name: str, namespace: str, zone_id: str) -> None:
        self.status_updates.labels(
            app_name=app_name, namespace=namespace, zone_id=zone_id
        ).inc()

    def on_status_conflict(self, app_name: str, namespace: str, zone_id: str) -> None:
        self.status_conflicts.labels(
            app_name=app_name, namespace=namespace, zone_id=zone_id
        ).inc()
