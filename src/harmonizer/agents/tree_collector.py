"""Tree collector: expand repository paths into a flat list of text files."""

import logging
from typing import Any

from harmonizer.models import CollectedFile, CollectionResult, SkippedEntry, SkipReason
from harmonizer.remote import RemoteApiError, RepositoryClient
from harmonizer.utils.encoding import decode_content

logger = logging.getLogger(__name__)

# Constants
MAX_FILE_BYTES = 120_000  # Reported size above which a file is skipped
MAX_CONTENT_CHARS = 7_000  # Collected content is cut to this many characters


class TreeCollector:
    """Walks the contents API depth-first with an explicit worklist.

    Collection is best-effort: any path that cannot be fetched, is too large,
    carries no inline content or is not UTF-8 text is recorded in
    `CollectionResult.skipped` with a SkipReason and the walk continues.
    """

    def __init__(
        self,
        client: RepositoryClient,
        max_file_bytes: int = MAX_FILE_BYTES,
        max_content_chars: int = MAX_CONTENT_CHARS,
    ) -> None:
        self.client = client
        self.max_file_bytes = max_file_bytes
        self.max_content_chars = max_content_chars

    def collect_all(
        self,
        owner: str,
        repo: str,
        branch: str,
        paths: list[str],
    ) -> CollectionResult:
        """Collect every start path, in order, into one shared result."""
        result = CollectionResult()
        for start_path in paths:
            self.collect(owner, repo, branch, start_path, into=result)
        logger.info(
            "Collected %d file(s) from %d path(s), skipped %d",
            len(result.files),
            len(paths),
            len(result.skipped),
        )
        return result

    def collect(
        self,
        owner: str,
        repo: str,
        branch: str,
        start_path: str,
        into: CollectionResult | None = None,
    ) -> CollectionResult:
        """Append every collectable file under `start_path` to `into`.

        Directory entries are visited in listing order, descending into each
        sub-directory before moving on to its next sibling.
        """
        result = into if into is not None else CollectionResult()
        worklist: list[str] = [start_path]

        while worklist:
            path = worklist.pop()
            try:
                data = self.client.get_contents(owner, repo, path, branch)
            except RemoteApiError as exc:
                self._skip(result, path, SkipReason.FETCH_FAILED, f"HTTP {exc.status}")
                continue

            if isinstance(data, list):
                pending: list[str] = []
                for entry in data:
                    entry_type = entry.get("type")
                    entry_path = entry.get("path") or ""
                    if entry_type in ("dir", "file"):
                        pending.append(entry_path)
                    else:
                        self._skip(
                            result, entry_path, SkipReason.UNSUPPORTED_TYPE, str(entry_type)
                        )
                worklist.extend(reversed(pending))
            elif isinstance(data, dict) and data.get("type") == "file":
                self._push_file(result, data.get("path") or path, data)
            else:
                kind = data.get("type") if isinstance(data, dict) else type(data).__name__
                self._skip(result, path, SkipReason.UNSUPPORTED_TYPE, str(kind))

        return result

    def _push_file(self, result: CollectionResult, path: str, meta: dict[str, Any]) -> None:
        size = meta.get("size") or 0
        if size > self.max_file_bytes:
            self._skip(result, path, SkipReason.TOO_LARGE, f"{size} bytes")
            return

        encoded = meta.get("content")
        if not encoded:
            self._skip(result, path, SkipReason.NO_CONTENT)
            return

        try:
            text = decode_content(encoded)
        except ValueError as exc:
            self._skip(result, path, SkipReason.DECODE_FAILED, str(exc))
            return

        result.files.append(CollectedFile(path=path, content=text[: self.max_content_chars]))
        logger.debug("Collected %s (%d chars)", path, min(len(text), self.max_content_chars))

    @staticmethod
    def _skip(
        result: CollectionResult,
        path: str,
        reason: SkipReason,
        detail: str | None = None,
    ) -> None:
        logger.warning("Skipping %s: %s %s", path, reason.value, detail or "")
        result.skipped.append(SkippedEntry(path=path, reason=reason, detail=detail))
