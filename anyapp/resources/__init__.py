from .anyapplication import ApplicationStore, application_from_body

__all__ = ["ApplicationStore", "application_from_body"]
