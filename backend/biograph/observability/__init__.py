"""
Observability Package — logging setup + span tracing

Usage::

    from biograph.observability import configure_logging, traced
    configure_logging()
"""

from biograph.observability.tracing import configure_logging, traced

__all__ = ["configure_logging", "traced"]
