import os
import kopf
import logging

try:
    from dotenv import load_dotenv, find_dotenv

    env_file = os.environ.get("ENV_FILE", ".env")
    path = find_dotenv(filename=env_file, raise_error_if_not_found=True)
    print(f"Loading environment variables from {path}")
    load_dotenv(dotenv_path=path)
except IOError:
    # No file to set environment variables
    pass

from anyapp.controller import AnyApplicationController  # noqa: E402
from anyapp.events import Events  # noqa: E402
from anyapp.handlers import anyapplication, probes  # noqa: E402
from anyapp.resources.anyapplication import ApplicationStore  # noqa: E402
from anyapp.sensors import init_metrics_server, SensorDelegate, PrometheusMonitor  # noqa: E402
from anyapp.sync import load_applications_backend  # noqa: E402
from anyapp.types.settings import Settings  # noqa: E402
from kubernetes_asyncio import config  # noqa: E402
from kubernetes_asyncio.client.api_client import ApiClient  # noqa: E402

FINALIZER = "anyapplication.finalizers.anyapp.io"


@kopf.on.startup()
async def setup(
    settings: kopf.OperatorSettings, memo: kopf.Memo, logger: logging.Logger, **kwargs
):
    # Load Kubernetes config - try in-cluster first (for production), then local kubeconfig (for dev)
    try:
        config.load_incluster_config()
        logger.info("Loaded in-cluster Kubernetes configuration")
    except config.ConfigException:
        logger.info("In-cluster config not found, trying local kubeconfig")
        try:
            await config.load_kube_config()
            logger.info("Loaded local Kubernetes configuration")
        except config.ConfigException as e:
            logger.error(f"Failed to load Kubernetes configuration: {e}")
            raise

    memo.conf = Settings()
    logger.info(f"Operating in zone '{memo.conf.zone_id}'")

    # Create a shared ApiClient for all resources to prevent connection leaks
    shared_client = ApiClient()
    ApplicationStore.shared_api_client = shared_client
    memo.api_client = shared_client

    sensor_delegate = SensorDelegate()
    sensor_delegate.add(PrometheusMonitor())
    memo.sensor = sensor_delegate
    logger.info("Sensor infrastructure initialized with PrometheusMonitor")

    try:
        init_metrics_server()
    except Exception as e:
        logger.error(f"Failed to start metrics server: {e}")
        logger.warning("Continuing without metrics server")

    applications = load_applications_backend(memo.conf.applications_backend)
    logger.info(f"Using applications backend {type(applications).__name__}")

    memo.controller = AnyApplicationController(
        memo.conf,
        ApplicationStore(),
        applications,
        Events(),
        sensor=sensor_delegate,
    )

    settings.persistence.finalizer = FINALIZER

    # Post events to the Kubernetes API for logging >= Warning
    settings.posting.enabled = True
    settings.posting.level = logging.WARNING


@kopf.on.cleanup()
async def cleanup(memo: kopf.Memo, logger: logging.Logger, **kwargs):
    """Cleanup handler for operator shutdown."""
    logger.info("Shutting down operator...")

    controller = getattr(memo, "controller", None)
    if controller is not None:
        await controller.shutdown()
        logger.info("Stopped all running jobs")

    api_client = getattr(memo, "api_client", None)
    if api_client is not None:
        await api_client.close()
        logger.info("Shared API client closed")

    logger.info("Operator shutdown complete")


__all__ = [
    "anyapplication",
    "probes",
]
