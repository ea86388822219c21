"""Client for the administrative API of a running node."""

from devbao.client.api import HEALTH_STATUSES, NodeClient

__all__ = ["NodeClient", "HEALTH_STATUSES"]
