from oncall.clients.opsgenie import OpsGenieClient

__all__ = ["OpsGenieClient"]
