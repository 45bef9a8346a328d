"""Logging, OpenTelemetry instrumentation and observability utilities."""

from moms_kitchen_client.observability.config import configure_logging, setup_observability
from moms_kitchen_client.observability.decorators import traced

__all__ = ["setup_observability", "configure_logging", "traced"]
