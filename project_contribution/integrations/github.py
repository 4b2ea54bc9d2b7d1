"""
GitHub REST API client.

Async client covering the handful of endpoints the contribution flow needs:
reading repository contents, forking, creating branches, committing a file
and opening a pull request. Requests are bounded by a timeout and never
retried here.
"""

import base64
import logging
from typing import Any, Dict, Optional, Tuple
from urllib.parse import quote

import httpx

logger = logging.getLogger(__name__)

DEFAULT_API_URL = "https://api.github.com"


class GitHubAPIError(Exception):
    """Raised when GitHub answers with an unexpected status or cannot be reached."""

    def __init__(self, message: str, status_code: Optional[int] = None, body: Optional[str] = None):
        self.message = message
        self.status_code = status_code
        self.body = body
        super().__init__(self.message)


def encode_content_path(path: str) -> str:
    """URL-encode each segment of a repository path, keeping the separators."""
    return "/".join(quote(segment, safe="") for segment in path.split("/"))


class GitHubClient:
    """
    Async client for the GitHub REST API.
    """

    def __init__(
        self,
        token: str,
        api_url: str = DEFAULT_API_URL,
        timeout: float = 20.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Initialize the GitHub client.

        Args:
            token: Token used as bearer credential
            api_url: Base URL of the GitHub API
            timeout: Request timeout in seconds
            transport: Optional httpx transport (used to stub GitHub in tests)
        """
        self.api_url = api_url.rstrip("/")
        self.timeout = timeout

        headers = {
            "Authorization": f"Bearer {token}",
            "Accept": "application/vnd.github+json",
            "X-GitHub-Api-Version": "2022-11-28",
        }
        self.client = httpx.AsyncClient(
            base_url=self.api_url,
            headers=headers,
            timeout=httpx.Timeout(timeout),
            transport=transport,
        )

    async def __aenter__(self) -> "GitHubClient":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.close()

    async def close(self) -> None:
        """Close the underlying HTTP client."""
        await self.client.aclose()

    async def _request(self, method: str, path: str, **kwargs: Any) -> httpx.Response:
        try:
            logger.debug(f"GitHub {method} {path}")
            return await self.client.request(method, path, **kwargs)
        except httpx.TimeoutException as e:
            raise GitHubAPIError(f"GitHub request timed out after {self.timeout}s: {method} {path}") from e
        except httpx.HTTPError as e:
            raise GitHubAPIError(f"GitHub request failed: {method} {path}: {e}") from e

    async def _request_json(
        self,
        method: str,
        path: str,
        expected: Tuple[int, ...] = (200, 201),
        **kwargs: Any,
    ) -> Any:
        response = await self._request(method, path, **kwargs)
        if response.status_code not in expected:
            raise GitHubAPIError(
                f"GitHub {method} {path} failed: HTTP {response.status_code} {response.text}",
                status_code=response.status_code,
                body=response.text,
            )
        return response.json()

    async def get_authenticated_login(self) -> str:
        """Return the login of the user the token belongs to."""
        user = await self._request_json("GET", "/user")
        return user["login"]

    async def get_repository(self, owner: str, repo: str) -> Optional[Dict[str, Any]]:
        """Return repository metadata, or ``None`` if it does not exist."""
        response = await self._request("GET", f"/repos/{quote(owner)}/{quote(repo)}")
        if response.status_code == 404:
            return None
        if response.status_code != 200:
            raise GitHubAPIError(
                f"Could not read repository {owner}/{repo}: HTTP {response.status_code} {response.text}",
                status_code=response.status_code,
                body=response.text,
            )
        return response.json()

    async def create_fork(
        self, owner: str, repo: str, organization: Optional[str] = None
    ) -> Dict[str, Any]:
        """Fork ``owner/repo`` into the token's account, or into ``organization``."""
        payload = {"organization": organization} if organization else {}
        logger.info(f"Creating fork of {owner}/{repo}" + (f" in {organization}" if organization else ""))
        return await self._request_json(
            "POST", f"/repos/{quote(owner)}/{quote(repo)}/forks", expected=(200, 202), json=payload
        )

    async def get_branch_sha(self, owner: str, repo: str, branch: str) -> str:
        """Return the commit SHA a branch points at."""
        ref = await self._request_json(
            "GET", f"/repos/{quote(owner)}/{quote(repo)}/git/ref/heads/{encode_content_path(branch)}"
        )
        return ref["object"]["sha"]

    async def create_branch(self, owner: str, repo: str, branch: str, sha: str) -> None:
        """Create ``branch`` in ``owner/repo`` pointing at ``sha``."""
        await self._request_json(
            "POST",
            f"/repos/{quote(owner)}/{quote(repo)}/git/refs",
            json={"ref": f"refs/heads/{branch}", "sha": sha},
        )

    async def get_file(self, owner: str, repo: str, path: str, ref: str) -> Optional[Dict[str, Any]]:
        """
        Read a file through the contents API.

        Returns:
            The contents payload (``content``, ``encoding``, ``sha``, ...), or
            ``None`` if the file does not exist

        Raises:
            GitHubAPIError: For any other non-success status
        """
        response = await self._request(
            "GET",
            f"/repos/{quote(owner)}/{quote(repo)}/contents/{encode_content_path(path)}",
            params={"ref": ref},
        )
        if response.status_code == 404:
            return None
        if response.status_code != 200:
            raise GitHubAPIError(
                f"HTTP {response.status_code} {response.text}",
                status_code=response.status_code,
                body=response.text,
            )
        return response.json()

    async def put_file(
        self,
        owner: str,
        repo: str,
        path: str,
        content: bytes,
        message: str,
        branch: str,
        sha: Optional[str] = None,
    ) -> Dict[str, Any]:
        """Create or update a file on ``branch`` with a single commit."""
        payload: Dict[str, Any] = {
            "message": message,
            "content": base64.b64encode(content).decode("ascii"),
            "branch": branch,
        }
        if sha:
            payload["sha"] = sha
        return await self._request_json(
            "PUT",
            f"/repos/{quote(owner)}/{quote(repo)}/contents/{encode_content_path(path)}",
            json=payload,
        )

    async def create_pull_request(
        self, owner: str, repo: str, title: str, head: str, base: str, body: str
    ) -> Dict[str, Any]:
        """Open a pull request against ``owner/repo``."""
        return await self._request_json(
            "POST",
            f"/repos/{quote(owner)}/{quote(repo)}/pulls",
            json={"title": title, "head": head, "base": base, "body": body},
        )
