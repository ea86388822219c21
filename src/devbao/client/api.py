"""Administrative API client for a running node.

Talks to the server's ``/v1/sys`` endpoints, which OpenBao and Vault
share. Uses aiohttp.ClientSession.

Example:
    >>> async with node.get_client() as client:
    ...     if not (await client.seal_status())["initialized"]:
    ...         result = await client.initialize(shares=1, threshold=1)
    ...         await client.unseal(result["keys"][0])
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

import aiohttp

from devbao.core.errors import NodeClientError

logger = logging.getLogger(__name__)

# sys/health encodes state in the status code; none of these is a failure.
HEALTH_STATUSES = frozenset({200, 429, 472, 473, 501, 503})


@dataclass
class NodeClient:
    """HTTP client for one node's administrative API.

    Attributes:
        address: Base URL, e.g. ``http://127.0.0.1:8200``.
        token: Token sent as ``X-Vault-Token``; empty sends none.
        timeout: Total per-request timeout in seconds.
    """

    address: str
    token: str = ""
    timeout: float = 10.0
    _session: aiohttp.ClientSession | None = None

    async def __aenter__(self) -> NodeClient:
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.close()

    def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(
                timeout=aiohttp.ClientTimeout(total=self.timeout)
            )
        return self._session

    async def close(self) -> None:
        if self._session is not None and not self._session.closed:
            await self._session.close()
        self._session = None

    def set_token(self, token: str) -> None:
        self.token = token

    async def _request(
        self,
        method: str,
        path: str,
        json: dict[str, Any] | None = None,
        ok_statuses: frozenset[int] | None = None,
    ) -> dict[str, Any]:
        url = f"{self.address.rstrip('/')}/v1/{path.lstrip('/')}"
        headers = {"X-Vault-Token": self.token} if self.token else {}

        logger.debug("%s %s", method, url)
        try:
            async with self._get_session().request(
                method, url, json=json, headers=headers
            ) as resp:
                text = await resp.text()
                data: dict[str, Any] = {}
                if text:
                    try:
                        data = await resp.json(content_type=None)
                    except ValueError:
                        data = {}

                if ok_statuses is not None:
                    is_ok = resp.status in ok_statuses
                else:
                    is_ok = 200 <= resp.status < 300

                if not is_ok:
                    errors = data.get("errors") or []
                    detail = "; ".join(errors) if errors else text.strip()
                    raise NodeClientError(
                        f"{method} {path} failed with status {resp.status}: {detail}",
                        status_code=resp.status,
                        errors=errors,
                    )
                return data
        except aiohttp.ClientError as e:
            raise NodeClientError(f"{method} {path} failed: {e}", status_code=0) from e

    async def health(self) -> dict[str, Any]:
        """``GET sys/health``; sealed or uninitialized servers still answer."""
        return await self._request("GET", "sys/health", ok_statuses=HEALTH_STATUSES)

    async def seal_status(self) -> dict[str, Any]:
        return await self._request("GET", "sys/seal-status")

    async def initialize(self, shares: int = 1, threshold: int = 1) -> dict[str, Any]:
        """Initialize the server.

        Returns:
            The response, including ``keys``, ``keys_base64`` and ``root_token``.
            The root token is adopted by this client.
        """
        if threshold > shares:
            raise ValueError(f"threshold ({threshold}) cannot exceed shares ({shares})")

        result = await self._request(
            "PUT",
            "sys/init",
            json={"secret_shares": shares, "secret_threshold": threshold},
        )
        root_token = result.get("root_token")
        if root_token:
            self.set_token(root_token)
        return result

    async def unseal(self, key: str) -> dict[str, Any]:
        """Submit one unseal key share; returns the resulting seal status."""
        return await self._request("PUT", "sys/unseal", json={"key": key})

    async def seal(self) -> None:
        await self._request("PUT", "sys/seal")

    async def lookup_self(self) -> dict[str, Any]:
        """Details of the client's own token."""
        return await self._request("GET", "auth/token/lookup-self")
