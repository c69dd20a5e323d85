from . import anyapplication, probes

__all__ = ["anyapplication", "probes"]
