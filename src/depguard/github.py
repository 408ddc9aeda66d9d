"""
GitHub collaborator for depguard.

This module provides the one network call the policy engine makes:
looking up a repository's license when the dependency graph did not
report one.

Design Principles:
    - Never fatal: any failure (status, transport, payload) becomes None
    - No retries: a failed lookup is simply "no license"
    - Token is forwarded as-is; no other authentication is done
    - GitHub Enterprise Server is supported through server_url
"""

import logging
from dataclasses import dataclass
from types import TracebackType
from typing import Any, Protocol
from urllib.parse import urlparse

import httpx

from depguard.errors import LicenseLookupError


logger = logging.getLogger(__name__)

DEFAULT_SERVER_URL = "https://github.com"
PUBLIC_API_URL = "https://api.github.com"
DEFAULT_TIMEOUT_SECONDS = 30


class LicenseLookup(Protocol):
    """Anything that can look up the license of a GitHub repository."""

    host: str

    async def lookup_repository_license(self, owner: str, repo: str) -> str | None:
        ...


@dataclass(frozen=True)
class GitHubRepo:
    """An owner/repository pair parsed from a URL."""

    owner: str
    repo: str

    def __str__(self) -> str:
        return f"{self.owner}/{self.repo}"


def parse_github_url(url: str | None, host: str = "github.com") -> GitHubRepo | None:
    """
    Extract owner and repository from a repository URL.

    Args:
        url: Repository URL, e.g. "https://github.com/owner/repo.git"
        host: Hostname the URL must point at (case-insensitive, port ignored)

    Returns:
        GitHubRepo, or None if the URL is missing, on another host, or has
        fewer than two path segments
    """
    if not url:
        return None
    try:
        parsed = urlparse(url)
        hostname = parsed.hostname
    except ValueError:
        return None

    if hostname is None or hostname.lower() != host.lower():
        return None

    segments = [segment for segment in parsed.path.split("/") if segment]
    if len(segments) < 2:
        return None

    owner, repo = segments[0], segments[1].removesuffix(".git")
    if not repo:
        return None
    return GitHubRepo(owner=owner, repo=repo)


def api_url_for(server_url: str) -> str:
    """REST API root for a GitHub server."""
    server_url = server_url.rstrip("/")
    if urlparse(server_url).hostname == "github.com":
        return PUBLIC_API_URL
    return f"{server_url}/api/v3"


class GitHubLicenseClient:
    """
    Looks up repository licenses through the GitHub REST API.

    Usage:
        async with GitHubLicenseClient(token=token) as client:
            license_id = await client.lookup_repository_license("psf", "requests")

    Attributes:
        host: Hostname of the GitHub server, for parse_github_url
        api_url: REST API root
    """

    def __init__(
        self,
        token: str | None = None,
        server_url: str = DEFAULT_SERVER_URL,
        timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        """
        Initialize the client.

        Args:
            token: Optional token sent as a bearer Authorization header
            server_url: GitHub server, e.g. "https://github.example.com"
            timeout_seconds: Per-request timeout
            client: Pre-built httpx client (tests inject a MockTransport here)
        """
        self.server_url = server_url.rstrip("/")
        self.host = urlparse(self.server_url).hostname or "github.com"
        self.api_url = api_url_for(self.server_url)
        self.timeout_seconds = timeout_seconds
        self._headers = self._build_headers(token)
        self._client = client
        self._owns_client = client is None

    @staticmethod
    def _build_headers(token: str | None) -> dict[str, str]:
        headers = {
            "Accept": "application/vnd.github+json",
            "X-GitHub-Api-Version": "2022-11-28",
        }
        if token:
            headers["Authorization"] = f"Bearer {token}"
        return headers

    async def __aenter__(self) -> "GitHubLicenseClient":
        if self._client is None:
            self._client = httpx.AsyncClient(
                timeout=self.timeout_seconds,
                follow_redirects=True,
            )
            self._owns_client = True
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        """Close the underlying HTTP client if this object created it."""
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None

    async def lookup_repository_license(self, owner: str, repo: str) -> str | None:
        """
        Get the SPDX identifier of a repository's license.

        Args:
            owner: Repository owner
            repo: Repository name

        Returns:
            The SPDX identifier, or None if the lookup failed or GitHub
            could not detect a license
        """
        url = f"{self.api_url}/repos/{owner}/{repo}/license"
        try:
            response = await self._get(url)
            if response.status_code != 200:
                logger.debug(
                    "License lookup for %s/%s returned HTTP %d",
                    owner, repo, response.status_code,
                )
                return None
            return _extract_spdx_id(owner, repo, response.json())
        except httpx.HTTPError as e:
            logger.debug("License lookup for %s/%s failed: %s", owner, repo, e)
            return None
        except (LicenseLookupError, ValueError) as e:
            logger.debug("Unexpected license payload for %s/%s: %s", owner, repo, e)
            return None

    async def _get(self, url: str) -> httpx.Response:
        if self._client is None:
            async with httpx.AsyncClient(
                timeout=self.timeout_seconds,
                follow_redirects=True,
            ) as client:
                return await client.get(url, headers=self._headers)
        return await self._client.get(url, headers=self._headers)


def _extract_spdx_id(owner: str, repo: str, payload: Any) -> str | None:
    if not isinstance(payload, dict):
        raise LicenseLookupError(
            owner=owner, repo=repo, underlying_error="response is not an object"
        )
    license_info = payload.get("license")
    if license_info is None:
        return None
    if not isinstance(license_info, dict):
        raise LicenseLookupError(
            owner=owner, repo=repo, underlying_error="'license' is not an object"
        )
    spdx_id = license_info.get("spdx_id")
    if spdx_id is not None and not isinstance(spdx_id, str):
        raise LicenseLookupError(
            owner=owner, repo=repo, underlying_error="'spdx_id' is not a string"
        )
    return spdx_id or None
