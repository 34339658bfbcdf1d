"""Read-only OpsGenie on-call roster and open alert viewer."""

__version__ = "0.1.0"
