import base64
import json
from unittest.mock import MagicMock

import httpx
import pytest

from harmonizer.core.config import GitHubConfig, HarmonizerConfig, ModelConfig
from harmonizer.models import CollectedFile, ProposedChange, RewriteResult
from harmonizer.remote import RepositoryClient

OWNER = "acme"
REPO = "widgets"
BASE_SHA = "base0000000000000000000000000000000000000"
MUTATING_METHODS = {"POST", "PUT", "PATCH", "DELETE"}


def _b64(text: str) -> str:
    encoded = base64.b64encode(text.encode("utf-8")).decode("ascii")
    # The contents API wraps base64 at 60 columns
    return "\n".join(encoded[i : i + 60] for i in range(0, len(encoded), 60))


class FakeGitHub:
    """In-memory stand-in for the GitHub REST endpoints the harmonizer calls."""

    def __init__(self, files: dict[str, str] | None = None) -> None:
        self.files: dict[str, str] = dict(files or {})
        self.sizes: dict[str, int] = {}
        self.raw: dict[str, dict] = {}
        self.extra_entries: dict[str, list[dict]] = {}
        self.refs: dict[str, str] = {"main": BASE_SHA}
        self.failures: dict[tuple[str, str], int] = {}
        self.replies: dict[tuple[str, str], tuple[int, str]] = {}
        self.requests: list[httpx.Request] = []
        self.pr_number = 7
        self._commits = 0

    # -- helpers for tests --

    @property
    def calls(self) -> list[tuple[str, str]]:
        return [(r.method, r.url.path) for r in self.requests]

    @property
    def mutating_calls(self) -> list[tuple[str, str]]:
        return [c for c in self.calls if c[0] in MUTATING_METHODS]

    def body(self, index: int) -> dict:
        return json.loads(self.requests[index].content)

    def fail(self, method: str, path: str, status: int) -> None:
        self.failures[(method, path)] = status

    def reply_raw(self, method: str, path: str, status: int, text: str) -> None:
        self.replies[(method, path)] = (status, text)

    def blob_sha(self, path: str) -> str:
        return f"blob-{path}"

    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handle)

    def client(self) -> RepositoryClient:
        return RepositoryClient(token="gh-token", transport=self.transport())

    # -- request handling --

    def _children(self, directory: str) -> list[dict]:
        prefix = f"{directory}/" if directory else ""
        seen: dict[str, dict] = {}
        for path in list(self.files) + list(self.raw):
            if not path.startswith(prefix):
                continue
            head, _, rest = path[len(prefix):].partition("/")
            child = f"{prefix}{head}"
            kind = "dir" if rest else "file"
            seen.setdefault(child, {"type": kind, "path": child, "name": head})
        entries = sorted(seen.values(), key=lambda entry: entry["name"])
        return entries + self.extra_entries.get(directory, [])

    def handle(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path
        status = self.failures.get((request.method, path))
        if status is not None:
            return httpx.Response(status, json={"message": "forced failure"})
        if (request.method, path) in self.replies:
            status, text = self.replies[(request.method, path)]
            return httpx.Response(status, text=text)

        base = f"/repos/{OWNER}/{REPO}"
        if not path.startswith(base):
            return httpx.Response(404, json={"message": "Not Found"})
        rest = path[len(base):]

        if rest.startswith("/contents"):
            repo_path = rest[len("/contents"):].strip("/")
            if request.method == "GET":
                return self._get_contents(repo_path)
            if request.method == "PUT":
                return self._put_contents(repo_path, json.loads(request.content))
        if rest.startswith("/git/ref/heads/") and request.method == "GET":
            branch = rest[len("/git/ref/heads/"):]
            if branch not in self.refs:
                return httpx.Response(404, json={"message": "Not Found"})
            return httpx.Response(200, json={"object": {"sha": self.refs[branch]}})
        if rest == "/git/refs" and request.method == "POST":
            payload = json.loads(request.content)
            branch = payload["ref"][len("refs/heads/"):]
            if branch in self.refs:
                return httpx.Response(422, json={"message": "Reference already exists"})
            self.refs[branch] = payload["sha"]
            return httpx.Response(201, json={"ref": payload["ref"]})
        if rest == "/pulls" and request.method == "POST":
            payload = json.loads(request.content)
            return httpx.Response(
                201,
                json={
                    "number": self.pr_number,
                    "html_url": f"https://github.com/{OWNER}/{REPO}/pull/{self.pr_number}",
                    "head": {"ref": payload["head"]},
                },
            )
        return httpx.Response(404, json={"message": "Not Found"})

    def _get_contents(self, repo_path: str) -> httpx.Response:
        if repo_path in self.raw:
            return httpx.Response(200, json=self.raw[repo_path])
        if repo_path in self.files:
            text = self.files[repo_path]
            return httpx.Response(
                200,
                json={
                    "type": "file",
                    "path": repo_path,
                    "name": repo_path.rsplit("/", 1)[-1],
                    "size": self.sizes.get(repo_path, len(text.encode("utf-8"))),
                    "sha": self.blob_sha(repo_path),
                    "encoding": "base64",
                    "content": _b64(text),
                },
            )
        children = self._children(repo_path)
        if children or repo_path in self.extra_entries:
            return httpx.Response(200, json=children)
        return httpx.Response(404, json={"message": "Not Found"})

    def _put_contents(self, repo_path: str, payload: dict) -> httpx.Response:
        exists = repo_path in self.files
        if exists and payload.get("sha") != self.blob_sha(repo_path):
            return httpx.Response(422, json={"message": "sha wasn't supplied"})
        self.files[repo_path] = base64.b64decode(payload["content"]).decode("utf-8")
        self._commits += 1
        return httpx.Response(
            200 if exists else 201,
            json={
                "content": {"path": repo_path, "sha": f"new-{repo_path}"},
                "commit": {"sha": f"commit-{self._commits}"},
            },
        )


@pytest.fixture
def fake_github():
    return FakeGitHub()


@pytest.fixture
def config():
    return HarmonizerConfig(
        github=GitHubConfig(token="gh-token", owner=OWNER, repo=REPO),
        model=ModelConfig(provider="openai", openai_api_key="sk-test"),
    )


@pytest.fixture
def sample_rewrite():
    return RewriteResult(
        summary="Unified naming",
        files=[ProposedChange(path="src/a.txt", content="new", rationale="consistency")],
    )


@pytest.fixture
def mock_requester(sample_rewrite):
    requester = MagicMock()
    requester.request_rewrite.return_value = sample_rewrite
    return requester


@pytest.fixture
def collected_files():
    return [
        CollectedFile(path="src/a.txt", content="old"),
        CollectedFile(path="src/b.txt", content="other"),
    ]
