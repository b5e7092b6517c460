"""Change applier: materialize a rewrite set as branch, commits and a PR."""

import logging
import time
from datetime import datetime, timezone
from typing import Callable

from harmonizer.agents.exceptions import PartialApplyError
from harmonizer.models import ApplyOutcome, ChangedFile, ChangeStatus, ProposedChange
from harmonizer.remote import RemoteApiError, RepositoryClient
from harmonizer.utils.encoding import encode_content

logger = logging.getLogger(__name__)

# Constants
DEFAULT_BRANCH_PREFIX = "harmonizer"
DEFAULT_PR_TITLE = "Harmonizer automatic PR"
MANIFEST_DIR = "harmonizer"
PR_FOOTER = "> Automatically generated by Harmonizer."


class RunManifest:
    """Metadata committed as a markdown file alongside the rewrites."""

    def __init__(self, caller: str, paths: list[str], notes: str) -> None:
        self.caller = caller
        self.paths = list(paths)
        self.notes = notes

    def render(self, created_at: datetime) -> str:
        targets = [f"- `{path}`" for path in self.paths] or ["- (none)"]
        return "\n".join(
            [
                "# Harmonizer run",
                "",
                f"Created at: {created_at.isoformat()}",
                f"Caller: {self.caller}",
                "",
                "## Target paths",
                "",
                *targets,
                "",
                "## Notes",
                "",
                self.notes,
                "",
            ]
        )


class ChangeApplier:
    """Creates a branch, writes each proposed file, and opens a pull request.

    Steps run strictly in order and each depends on the previous one. Once
    the branch exists, any failure raises PartialApplyError and leaves the
    branch plus already-written files on the remote.
    """

    def __init__(
        self,
        client: RepositoryClient,
        branch_prefix: str = DEFAULT_BRANCH_PREFIX,
        default_title: str = DEFAULT_PR_TITLE,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.client = client
        self.branch_prefix = branch_prefix
        self.default_title = default_title
        self._clock = clock

    def apply(
        self,
        owner: str,
        repo: str,
        base_branch: str,
        changes: list[ProposedChange],
        note: str,
        *,
        summary: str | None = None,
        title: str | None = None,
        description: str | None = None,
        manifest: RunManifest | None = None,
    ) -> ApplyOutcome:
        """Apply `changes` on a fresh branch cut from `base_branch`.

        Raises:
            RemoteApiError: If the base branch lookup or branch creation fails
                (nothing has been written yet).
            PartialApplyError: If a file write, the manifest write or the PR
                creation fails after the branch was created.
        """
        # Step 1: resolve base branch
        base_sha = self.client.get_ref_sha(owner, repo, base_branch)

        # Step 2: create the run branch
        millis = int(self._clock() * 1000)
        branch = f"{self.branch_prefix}-{millis}"
        self.client.create_ref(owner, repo, branch, base_sha)
        logger.info("Created branch %s from %s@%s", branch, base_branch, base_sha[:7])

        # Step 3: write each file in input order
        changed: list[ChangedFile] = []
        for change in changes:
            try:
                changed.append(self._write_file(owner, repo, branch, change))
            except RemoteApiError as exc:
                raise PartialApplyError(
                    branch, f"write {change.path}", [c.path for c in changed], exc
                ) from exc

        # Step 4: optional run manifest
        manifest_path: str | None = None
        if manifest is not None:
            manifest_path = f"{MANIFEST_DIR}/HARMONIZER_{millis}.md"
            created_at = datetime.fromtimestamp(millis / 1000, tz=timezone.utc)
            try:
                self.client.put_file(
                    owner,
                    repo,
                    manifest_path,
                    encode_content(manifest.render(created_at)),
                    f"Harmonizer manifest for {branch}",
                    branch,
                )
            except RemoteApiError as exc:
                raise PartialApplyError(
                    branch, "write manifest", [c.path for c in changed], exc
                ) from exc

        # Step 5: open the pull request
        body = description or summary or note
        try:
            pr = self.client.create_pull_request(
                owner,
                repo,
                head=branch,
                base=base_branch,
                title=title or self.default_title,
                body=f"{body}\n\n{PR_FOOTER}\n",
            )
            pr_url = pr["html_url"]
            pr_number = pr["number"]
        except (RemoteApiError, KeyError, TypeError) as exc:
            written = [c.path for c in changed]
            if manifest_path:
                written.append(manifest_path)
            raise PartialApplyError(branch, "create pull request", written, exc) from exc

        logger.info("Opened pull request #%s: %s", pr_number, pr_url)
        return ApplyOutcome(
            branch_name=branch,
            pull_request_url=pr_url,
            pull_request_number=pr_number,
            changed_files=changed,
            manifest_path=manifest_path,
        )

    def _write_file(
        self, owner: str, repo: str, branch: str, change: ProposedChange
    ) -> ChangedFile:
        existing_sha = self._probe_existing_sha(owner, repo, branch, change.path)
        result = self.client.put_file(
            owner,
            repo,
            change.path,
            encode_content(change.content),
            f"Harmonizer update: {change.path}",
            branch,
            sha=existing_sha,
        )
        commit = (result or {}).get("commit") or {}
        status = ChangeStatus.UPDATED if existing_sha else ChangeStatus.CREATED
        logger.debug("%s %s on %s", status.value, change.path, branch)
        return ChangedFile(path=change.path, status=status, commit_sha=commit.get("sha"))

    def _probe_existing_sha(
        self, owner: str, repo: str, branch: str, path: str
    ) -> str | None:
        """Return the current blob SHA at `path`, or None when absent.

        Probe failures of any status count as absent.
        """
        try:
            existing = self.client.get_contents(owner, repo, path, branch)
        except RemoteApiError as exc:
            if exc.status != 404:
                logger.warning(
                    "Existence probe for %s failed with %s; treating as new file",
                    path,
                    exc.status,
                )
            return None
        if isinstance(existing, dict):
            return existing.get("sha")
        return None
