import datetime
import kopf


@kopf.on.probe(id='now')
def get_current_timestamp(**kwargs):
    return datetime.datetime.now(datetime.timezone.utc).isoformat()


@kopf.on.probe(id='jobs')
def get_running_jobs(memo: kopf.Memo, **kwargs):
    controller = getattr(memo, "controller", None)
    return len(controller.registry) if controller is not None else 0
