"""HTTP server for exposing Prometheus metrics.

The built-in prometheus_client HTTP server runs in a background thread so it
never blocks the operator event loop. The port defaults to 8000 and is read
from the METRICS_PORT environment variable.
"""

import os
import logging
from threading import Thread
from prometheus_client import start_http_server

logger = logging.getLogger(__name__)


def start_metrics_server(port: int = 8000) -> None:
    """Serve metrics at http://0.0.0.0:port/metrics."""
    try:
        start_http_server(port)
        logger.info(f"Prometheus metrics server started on port {port}")
    except OSError as e:
        logger.error(f"Failed to start metrics server on port {port}: {e}")
        raise


def init_metrics_server() -> None:
    """Start the metrics server on METRICS_PORT in a daemon thread."""
    port = int(os.environ.get('METRICS_PORT', '8000'))
    thread = Thread(target=start_metrics_server, args=(port,), daemon=True)
    thread.start()
    logger.info(f"Metrics server initialization complete (port: {port})")
