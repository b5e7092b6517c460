"""Tests for RepositoryClient against a mocked transport."""

import httpx
import pytest

from harmonizer.remote import RemoteApiError, RepositoryClient
from conftest import BASE_SHA, OWNER, REPO


def test_request_sends_fixed_headers(fake_github):
    with fake_github.client() as client:
        client.get_ref_sha(OWNER, REPO, "main")
    headers = fake_github.requests[0].headers
    assert headers["Authorization"] == "Bearer gh-token"
    assert headers["Accept"] == "application/vnd.github+json"
    assert headers["X-GitHub-Api-Version"] == "2022-11-28"
    assert headers["User-Agent"] == "harmonizer"


def test_get_ref_sha(fake_github):
    with fake_github.client() as client:
        assert client.get_ref_sha(OWNER, REPO, "main") == BASE_SHA
    assert fake_github.calls == [("GET", f"/repos/{OWNER}/{REPO}/git/ref/heads/main")]


def test_non_success_raises_remote_api_error(fake_github):
    with fake_github.client() as client:
        with pytest.raises(RemoteApiError) as exc_info:
            client.get_ref_sha(OWNER, REPO, "missing")
    assert exc_info.value.status == 404
    assert "Not Found" in exc_info.value.body
    assert exc_info.value.method == "GET"


def test_transport_failure_raises_remote_api_error():
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    with RepositoryClient(token="t", transport=httpx.MockTransport(handler)) as client:
        with pytest.raises(RemoteApiError) as exc_info:
            client.get("/repos/a/b")
    assert exc_info.value.status is None
    assert "connection refused" in exc_info.value.body


def test_get_contents_passes_ref_and_quotes_path(fake_github):
    fake_github.files["docs/read me.md"] = "hi"
    with fake_github.client() as client:
        data = client.get_contents(OWNER, REPO, "docs/read me.md", "dev")
    assert data["path"] == "docs/read me.md"
    request = fake_github.requests[0]
    assert request.url.params["ref"] == "dev"
    assert request.url.raw_path.startswith(
        f"/repos/{OWNER}/{REPO}/contents/docs/read%20me.md".encode()
    )


def test_put_file_sends_sha_only_when_given(fake_github):
    fake_github.files["a.txt"] = "old"
    with fake_github.client() as client:
        client.put_file(OWNER, REPO, "new.txt", "bmV3", "msg", "b1")
        client.put_file(OWNER, REPO, "a.txt", "bmV3", "msg", "b1", sha=fake_github.blob_sha("a.txt"))
    assert "sha" not in fake_github.body(0)
    assert fake_github.body(1)["sha"] == "blob-a.txt"
    assert fake_github.requests[0].headers["Content-Type"] == "application/json"


def test_create_ref_and_pull_request_payloads(fake_github):
    with fake_github.client() as client:
        client.create_ref(OWNER, REPO, "harmonizer-1", BASE_SHA)
        pr = client.create_pull_request(OWNER, REPO, "harmonizer-1", "main", "T", "B")
    assert fake_github.body(0) == {"ref": "refs/heads/harmonizer-1", "sha": BASE_SHA}
    assert fake_github.body(1) == {"title": "T", "head": "harmonizer-1", "base": "main", "body": "B"}
    assert pr["number"] == 7


def test_non_json_success_body_raises_remote_api_error(fake_github):
    fake_github.reply_raw("GET", f"/repos/{OWNER}/{REPO}/git/ref/heads/main", 200, "<html>")
    with fake_github.client() as client:
        with pytest.raises(RemoteApiError) as exc_info:
            client.get_ref_sha(OWNER, REPO, "main")
    assert exc_info.value.status == 200
    assert exc_info.value.body == "<html>"
