from .hub_client import HubClient, HubClientError

__all__ = ["HubClient", "HubClientError"]
