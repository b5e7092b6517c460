"""Tests for TreeCollector depth-first collection."""

import base64

import pytest

from harmonizer.agents.tree_collector import (
    MAX_CONTENT_CHARS,
    MAX_FILE_BYTES,
    TreeCollector,
)
from harmonizer.models import SkipReason
from conftest import OWNER, REPO


def _skip_reasons(result):
    return {entry.path: entry.reason for entry in result.skipped}


def _collect(fake_github, *paths):
    with fake_github.client() as client:
        return TreeCollector(client).collect_all(OWNER, REPO, "main", list(paths))


class TestTraversal:
    def test_depth_first_listing_order(self, fake_github):
        """Sub-directories are finished before the next sibling is visited."""
        fake_github.files.update(
            {
                "src/a.txt": "A",
                "src/lib/b.txt": "B",
                "src/lib/deep/c.txt": "C",
                "src/z.txt": "Z",
            }
        )
        result = _collect(fake_github, "src")
        assert [f.path for f in result.files] == [
            "src/a.txt",
            "src/lib/b.txt",
            "src/lib/deep/c.txt",
            "src/z.txt",
        ]
        assert result.skipped == []

    def test_multiple_paths_are_concatenated_in_order(self, fake_github):
        """Each start path is collected in turn into one result."""
        fake_github.files.update({"src/a.txt": "A", "docs/guide.md": "G"})
        result = _collect(fake_github, "docs", "src")
        assert [f.path for f in result.files] == ["docs/guide.md", "src/a.txt"]

    def test_single_file_path_fetched_once(self, fake_github):
        """A file start path is collected from its own metadata."""
        fake_github.files["README.md"] = "hello"
        result = _collect(fake_github, "README.md")
        assert [(f.path, f.content) for f in result.files] == [("README.md", "hello")]
        assert len(fake_github.requests) == 1

    def test_collection_issues_only_reads(self, fake_github):
        fake_github.files.update({"src/a.txt": "A", "src/lib/b.txt": "B"})
        _collect(fake_github, "src")
        assert fake_github.mutating_calls == []
        assert all(r.url.params["ref"] == "main" for r in fake_github.requests)

    def test_empty_directory_yields_nothing(self, fake_github):
        fake_github.extra_entries["empty"] = []
        result = _collect(fake_github, "empty")
        assert result.files == []
        assert result.skipped == []


class TestBounds:
    def test_file_at_size_limit_is_kept(self, fake_github):
        fake_github.files["src/edge.txt"] = "e"
        fake_github.sizes["src/edge.txt"] = MAX_FILE_BYTES
        result = _collect(fake_github, "src")
        assert [f.path for f in result.files] == ["src/edge.txt"]

    def test_file_over_size_limit_is_skipped(self, fake_github):
        fake_github.files.update({"src/big.txt": "b", "src/small.txt": "s"})
        fake_github.sizes["src/big.txt"] = MAX_FILE_BYTES + 1
        result = _collect(fake_github, "src")
        assert [f.path for f in result.files] == ["src/small.txt"]
        assert _skip_reasons(result) == {"src/big.txt": SkipReason.TOO_LARGE}

    def test_content_truncated_to_prefix(self, fake_github):
        text = "x" * MAX_CONTENT_CHARS + "tail"
        fake_github.files["src/long.txt"] = text
        result = _collect(fake_github, "src")
        content = result.files[0].content
        assert len(content) == MAX_CONTENT_CHARS
        assert text.startswith(content)

    def test_custom_limits(self, fake_github):
        fake_github.files["src/a.txt"] = "abcdef"
        with fake_github.client() as client:
            collector = TreeCollector(client, max_file_bytes=100, max_content_chars=3)
            result = collector.collect_all(OWNER, REPO, "main", ["src"])
        assert result.files[0].content == "abc"


class TestSkips:
    def test_missing_path_recorded_as_fetch_failure(self, fake_github):
        fake_github.files["src/a.txt"] = "A"
        result = _collect(fake_github, "missing", "src")
        assert [f.path for f in result.files] == ["src/a.txt"]
        assert result.skipped[0].path == "missing"
        assert result.skipped[0].reason == SkipReason.FETCH_FAILED
        assert result.skipped[0].detail == "HTTP 404"

    def test_failing_entry_does_not_abort_walk(self, fake_github):
        fake_github.files.update({"src/a.txt": "A", "src/b.txt": "B"})
        fake_github.fail("GET", f"/repos/{OWNER}/{REPO}/contents/src/a.txt", 500)
        result = _collect(fake_github, "src")
        assert [f.path for f in result.files] == ["src/b.txt"]
        assert _skip_reasons(result) == {"src/a.txt": SkipReason.FETCH_FAILED}

    def test_file_without_content_is_skipped(self, fake_github):
        fake_github.raw["src/huge.bin"] = {
            "type": "file",
            "path": "src/huge.bin",
            "size": 10,
            "content": "",
        }
        result = _collect(fake_github, "src")
        assert _skip_reasons(result) == {"src/huge.bin": SkipReason.NO_CONTENT}

    def test_binary_file_is_skipped(self, fake_github):
        fake_github.raw["src/logo.png"] = {
            "type": "file",
            "path": "src/logo.png",
            "size": 4,
            "content": base64.b64encode(b"\x89PNG\xff\xfe").decode("ascii"),
        }
        result = _collect(fake_github, "src")
        assert _skip_reasons(result) == {"src/logo.png": SkipReason.DECODE_FAILED}

    @pytest.mark.parametrize("entry_type", ["symlink", "submodule"])
    def test_unsupported_listing_entry_is_skipped(self, fake_github, entry_type):
        fake_github.files["src/a.txt"] = "A"
        fake_github.extra_entries["src"] = [{"type": entry_type, "path": "src/other"}]
        result = _collect(fake_github, "src")
        assert [f.path for f in result.files] == ["src/a.txt"]
        assert _skip_reasons(result) == {"src/other": SkipReason.UNSUPPORTED_TYPE}

    def test_unsupported_start_path_is_skipped(self, fake_github):
        fake_github.raw["vendor"] = {"type": "submodule", "path": "vendor"}
        result = _collect(fake_github, "vendor")
        assert result.files == []
        assert result.skipped[0].reason == SkipReason.UNSUPPORTED_TYPE
        assert result.skipped[0].detail == "submodule"

    def test_non_json_reply_recorded_as_fetch_failure(self, fake_github):
        """A success status with an HTML body is skipped, not fatal."""
        fake_github.files.update({"src/a.txt": "A", "src/b.txt": "B"})
        fake_github.reply_raw(
            "GET", f"/repos/{OWNER}/{REPO}/contents/src/a.txt", 200, "<html>proxy page</html>"
        )
        result = _collect(fake_github, "src")
        assert [f.path for f in result.files] == ["src/b.txt"]
        assert _skip_reasons(result) == {"src/a.txt": SkipReason.FETCH_FAILED}
        assert result.skipped[0].detail == "HTTP 200"
