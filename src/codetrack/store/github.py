"""GitHub repository used as the activity log."""

from __future__ import annotations

import base64
import logging
import urllib.parse
from typing import Any

import httpx

from .base import LogStoreError, ProvisionStatus

logger = logging.getLogger(__name__)

GITHUB_API_URL = "https://api.github.com"

# Timeout for GitHub REST calls (seconds)
REQUEST_TIMEOUT = 30.0


class GitHubLogStore:
    """Writes records as text files into a private GitHub repository."""

    label = "GitHub"

    def __init__(
        self,
        token: str,
        base_url: str = GITHUB_API_URL,
        timeout: float = REQUEST_TIMEOUT,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.token = token
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._transport = transport
        self._owner: str | None = None
        self._repo: str | None = None

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url=self.base_url,
            timeout=self.timeout,
            transport=self._transport,
            headers={
                "Authorization": f"Bearer {self.token}",
                "Accept": "application/vnd.github+json",
                "X-GitHub-Api-Version": "2022-11-28",
            },
        )

    async def _request(
        self,
        client: httpx.AsyncClient,
        method: str,
        url: str,
        **kwargs: Any,
    ) -> httpx.Response:
        try:
            return await client.request(method, url, **kwargs)
        except httpx.HTTPError as e:
            raise LogStoreError(f"GitHub request failed: {e}") from e

    @staticmethod
    def _raise_for_status(response: httpx.Response, action: str) -> None:
        if response.is_success:
            return
        try:
            body = response.json()
        except ValueError:
            detail = response.text
        else:
            detail = body.get("message", "") if isinstance(body, dict) else str(body)
        message = f"{action} failed ({response.status_code})"
        if detail:
            message = f"{message}: {detail}"
        raise LogStoreError(message, status_code=response.status_code)

    async def ensure_container_exists(self, name: str) -> ProvisionStatus:
        self._repo = name
        async with self._client() as client:
            response = await self._request(
                client, "POST", "/user/repos", json={"name": name, "private": True}
            )
        # 422 Unprocessable Entity: name already exists on this account
        if response.status_code == 422:
            logger.info(f"Repository {name} already exists")
            return ProvisionStatus.ALREADY_EXISTS
        self._raise_for_status(response, "Creating repository")
        logger.info(f"Created repository {name}")
        return ProvisionStatus.CREATED

    async def get_owner(self, client: httpx.AsyncClient) -> str:
        """Return the authenticated user's login, fetched once."""
        if self._owner is None:
            response = await self._request(client, "GET", "/user")
            self._raise_for_status(response, "Fetching user")
            self._owner = response.json()["login"]
        return self._owner

    def _contents_url(self, owner: str, path: str) -> str:
        if self._repo is None:
            raise LogStoreError("Repository has not been provisioned")
        return f"/repos/{owner}/{self._repo}/contents/{urllib.parse.quote(path)}"

    async def write_record(self, key: str, body: bytes, message: str) -> None:
        path = f"{key}.txt"
        payload: dict[str, Any] = {
            "message": message,
            "content": base64.b64encode(body).decode("ascii"),
        }
        async with self._client() as client:
            owner = await self.get_owner(client)
            url = self._contents_url(owner, path)
            response = await self._request(client, "PUT", url, json=payload)

            # An existing file needs its blob sha to be replaced
            if response.status_code == 422:
                existing = await self._request(client, "GET", url)
                if existing.is_success:
                    payload["sha"] = existing.json()["sha"]
                    response = await self._request(client, "PUT", url, json=payload)

        self._raise_for_status(response, f"Writing {path}")
        logger.debug(f"Committed {path} to {owner}/{self._repo}")
