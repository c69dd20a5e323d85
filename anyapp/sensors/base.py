"""Base sensor classes for operator monitoring.

This module defines the base OperatorSensor class that provides lifecycle hooks
for monitoring various operator events. All hooks are no-ops by default, allowing
subclasses to override only the events they care about.

The hook pattern follows Faust's sensor design:
- Hooks come in pairs: on_X_start() and on_X_complete()
- Start hooks return an optional state dict for tracking multi-phase operations
- Complete hooks receive the state dict from their corresponding start hook
- All hooks are optional - sensors only implement what they need
"""

from typing import Dict, Optional, Any
import logging

logger = logging.getLogger(__name__)


class OperatorSensor:
    """Base sensor class for AnyApplication operator monitoring.

    This class defines lifecycle hooks for three main categories:
    1. Reconciliation lifecycle (one pass of the state machines)
    2. Async jobs (deploy, undeploy, health watch, placement, ...)
    3. Status record writes (accepted updates and lost races)

    All methods are no-ops by default. Subclasses override only the hooks
    they need to monitor.

    Example:
        class LoggingSensor(OperatorSensor):
            def on_job_start(self, app_name: str, namespace: str, job_type: str) -> Dict:
                return {'start_time': time.time()}

            def on_job_complete(self, app_name, namespace, job_type, state, status, success):
                duration = time.time() - state['start_time']
                logger.info(f"{job_type} job of {app_name} took {duration}s")
    """

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
        """Called when reconciliation begins.

        Args:
            app_name: AnyApplication resource name
            namespace: Kubernetes namespace
            generation: Resource generation number
            trigger_source: What triggered reconciliation (create, update, timer, ...)

        Returns:
            Optional state dict passed to on_reconcile_complete
        """
        pass

    def on_reconcile_complete(
        self,
        app_name: str,
        namespace: str,
        state: Optional[Dict[str, Any]],
        success: bool,
        error: Optional[Exception] = None,
    ) -> None:
        """Called when reconciliation completes.

        Args:
            app_name: AnyApplication resource name
            namespace: Kubernetes namespace
            state: State dict returned from on_reconcile_start
            success: Whether reconciliation succeeded
            error: Exception if reconciliation failed
        """
        pass

    def on_state_transition(
        self,
        app_name: str,
        namespace: str,
        from_state: str,
        to_state: str,
    ) -> None:
        """Called when the global state of an application changes.

        Args:
            app_name: AnyApplication resource name
            namespace: Kubernetes namespace
            from_state: Previous global state (empty when unset)
            to_state: New global state
        """
        pass

    # =============================================================================
    # Job Hooks
    # =============================================================================

    def on_job_start(
        self,
        app_name: str,
        namespace: str,
        job_type: str,
    ) -> Optional[Dict[str, Any]]:
        """Called when an async job starts running.

        Returns:
            Optional state dict passed to on_job_complete
        """
        pass

    def on_job_complete(
        self,
        app_name: str,
        namespace: str,
        job_type: str,
        state: Optional[Dict[str, Any]],
        status: str,
        success: bool,
    ) -> None:
        """Called when an async job returns, is stopped or crashes.

        Args:
            app_name: AnyApplication resource name
            namespace: Kubernetes namespace
            job_type: Type of the job
            state: State dict returned from on_job_start
            status: Last condition status reported by the job
            success: False if the job crashed
        """
        pass

    # =============================================================================
    # Status Update Hooks
    # =============================================================================

    def on_status_update(
        self,
        app_name: str,
        namespace: str,
        zone_id: str,
    ) -> None:
        """Called when a status write is accepted."""
        pass

    def on_status_conflict(
        self,
        app_name: str,
        namespace: str,
        zone_id: str,
    ) -> None:
        """Called when a status write loses an optimistic concurrency race."""
        pass

    # =============================================================================
    # Utility Methods
    # =============================================================================

    def asdict(self) -> Dict[str, Any]:
        """Return sensor state as dictionary.

        This method should be overridden by sensors that maintain state
        (like Monitor classes with counters and metrics).

        Returns:
            Dictionary representation of sensor state
        """
        return {}
