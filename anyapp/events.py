import logging
from typing import NamedTuple
import kopf
from anyapp.types.models import AnyApplication

logger = logging.getLogger(__name__)

LOCAL_STATE_CHANGE_REASON = "Local state change"
GLOBAL_STATE_CHANGE_REASON = "Global state change"

API_VERSION = "anyapp.io/v1"
KIND = "AnyApplication"


class Event(NamedTuple):
    reason: str
    msg: str


def local_state_change(msg: str) -> Event:
    return Event(LOCAL_STATE_CHANGE_REASON, msg)


def global_state_change(msg: str) -> Event:
    return Event(GLOBAL_STATE_CHANGE_REASON, msg)


class Events:
    """Posts application events to Kubernetes."""

    def emit(self, application: AnyApplication, event: Event) -> None:
        body = {
            "apiVersion": API_VERSION,
            "kind": KIND,
            "metadata": {
                "name": application.name,
                "namespace": application.namespace,
                "uid": application.uid,
            },
        }
        try:
            kopf.event(body, type="Normal", reason=event.reason, message=event.msg)
        except Exception as e:
            logger.warning(f"Failed to post event for {application.application_id}: {e}")
