"""GitHub REST client for the contents, git refs and pulls endpoints."""

import logging
from typing import Any
from urllib.parse import quote

import httpx

from harmonizer.remote.exceptions import RemoteApiError

logger = logging.getLogger(__name__)

DEFAULT_API_URL = "https://api.github.com"
DEFAULT_TIMEOUT = 30.0
API_VERSION = "2022-11-28"
USER_AGENT = "harmonizer"


class RepositoryClient:
    """Authenticated wrapper around GitHub REST API v3.

    Every call is issued once. Any non-2xx response raises RemoteApiError with
    the status and raw body; nothing is retried or rolled back here.
    """

    def __init__(
        self,
        token: str,
        api_url: str = DEFAULT_API_URL,
        timeout: float = DEFAULT_TIMEOUT,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self._client = httpx.Client(
            base_url=api_url,
            timeout=timeout,
            transport=transport,
            headers={
                "Authorization": f"Bearer {token}",
                "Accept": "application/vnd.github+json",
                "X-GitHub-Api-Version": API_VERSION,
                "User-Agent": USER_AGENT,
            },
        )

    def __enter__(self) -> "RepositoryClient":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def close(self) -> None:
        self._client.close()

    def request(
        self,
        method: str,
        path: str,
        json: dict[str, Any] | None = None,
        params: dict[str, str] | None = None,
    ) -> Any:
        """Issue one request and return the parsed JSON body.

        Raises:
            RemoteApiError: On a non-success status, a transport failure or a
                success status whose body is not JSON.
        """
        headers = {"Content-Type": "application/json"} if json is not None else None
        try:
            response = self._client.request(
                method, path, json=json, params=params, headers=headers
            )
        except httpx.HTTPError as exc:
            raise RemoteApiError(None, str(exc), method, path) from exc

        if not response.is_success:
            raise RemoteApiError(response.status_code, response.text, method, path)
        logger.debug("%s %s -> %s", method, path, response.status_code)
        try:
            return response.json()
        except ValueError as exc:
            raise RemoteApiError(response.status_code, response.text, method, path) from exc

    def get(self, path: str, params: dict[str, str] | None = None) -> Any:
        return self.request("GET", path, params=params)

    def post(self, path: str, body: dict[str, Any]) -> Any:
        return self.request("POST", path, json=body)

    def put(self, path: str, body: dict[str, Any]) -> Any:
        return self.request("PUT", path, json=body)

    # -- Endpoint helpers ---------------------------------------------------

    @staticmethod
    def _repo_path(owner: str, repo: str) -> str:
        return f"/repos/{quote(owner, safe='')}/{quote(repo, safe='')}"

    def contents_path(self, owner: str, repo: str, path: str) -> str:
        return f"{self._repo_path(owner, repo)}/contents/{quote(path.strip('/'), safe='/')}"

    def get_contents(self, owner: str, repo: str, path: str, ref: str) -> Any:
        """Return a directory listing (list) or file metadata (dict) at `ref`."""
        return self.get(self.contents_path(owner, repo, path), params={"ref": ref})

    def get_ref_sha(self, owner: str, repo: str, branch: str) -> str:
        ref = self.get(
            f"{self._repo_path(owner, repo)}/git/ref/heads/{quote(branch, safe='/')}"
        )
        return ref["object"]["sha"]

    def create_ref(self, owner: str, repo: str, branch: str, sha: str) -> Any:
        return self.post(
            f"{self._repo_path(owner, repo)}/git/refs",
            {"ref": f"refs/heads/{branch}", "sha": sha},
        )

    def put_file(
        self,
        owner: str,
        repo: str,
        path: str,
        content_b64: str,
        message: str,
        branch: str,
        sha: str | None = None,
    ) -> Any:
        """Create or update a file. `sha` must be the prior blob SHA on update."""
        payload: dict[str, Any] = {
            "message": message,
            "content": content_b64,
            "branch": branch,
        }
        if sha:
            payload["sha"] = sha
        return self.put(self.contents_path(owner, repo, path), payload)

    def create_pull_request(
        self,
        owner: str,
        repo: str,
        head: str,
        base: str,
        title: str,
        body: str,
    ) -> Any:
        return self.post(
            f"{self._repo_path(owner, repo)}/pulls",
            {"title": title, "head": head, "base": base, "body": body},
        )
