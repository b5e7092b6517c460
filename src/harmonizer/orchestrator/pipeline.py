"""Pipeline entry point: validate, then run the harmonization graph."""

import logging
import uuid
from typing import Callable

from harmonizer.agents.change_applier import ChangeApplier, RunManifest
from harmonizer.agents.rewrite_requester import RewriteRequester
from harmonizer.agents.tree_collector import TreeCollector
from harmonizer.core.config import GitHubConfig, HarmonizerConfig
from harmonizer.models import PipelineResult
from harmonizer.orchestrator.exceptions import (
    ConfigurationError,
    HarmonizeValidationError,
)
from harmonizer.orchestrator.graph import build_graph
from harmonizer.orchestrator.state import make_initial_state
from harmonizer.remote import RepositoryClient

logger = logging.getLogger(__name__)

ClientFactory = Callable[[GitHubConfig], RepositoryClient]


def default_client_factory(github: GitHubConfig) -> RepositoryClient:
    return RepositoryClient(token=github.token, api_url=github.api_url, timeout=github.timeout)


class HarmonizePipeline:
    """Runs collect -> rewrite -> (preview stop) -> apply for one request.

    The pipeline holds only configuration; every run opens its own
    repository client and builds its own graph.
    """

    def __init__(
        self,
        config: HarmonizerConfig,
        requester: RewriteRequester | None = None,
        client_factory: ClientFactory = default_client_factory,
    ) -> None:
        self.config = config
        self._requester = requester
        self._built_requester: RewriteRequester | None = None
        self._client_factory = client_factory

    def run(
        self,
        paths: list[str],
        apply: bool = False,
        owner: str | None = None,
        repo: str | None = None,
        base_branch: str | None = None,
        note: str | None = None,
        *,
        title: str | None = None,
        description: str | None = None,
        caller: str | None = None,
        write_manifest: bool | None = None,
    ) -> PipelineResult:
        """Run the pipeline. Per-call arguments override configured defaults.

        Raises:
            HarmonizeValidationError: If `paths` is not a list or has no usable
                entry.
            ConfigurationError: If a credential or owner/repo is missing.
            NoFilesFoundError: If no path yielded a collectable file.
            RewriteError: If the model reply is malformed or empty.
            RemoteApiError: If a remote call fails before any mutation.
            PartialApplyError: If apply fails after the branch was created.
        """
        github = self.config.github
        owner = owner or github.owner
        repo = repo or github.repo
        base_branch = base_branch or github.base_branch
        note = note or self.config.apply.default_note
        clean_paths = self._validate(paths, owner, repo, base_branch)

        if write_manifest is None:
            write_manifest = self.config.apply.write_manifest
        manifest = None
        if write_manifest:
            manifest = RunManifest(
                caller=caller or self.config.apply.default_caller,
                paths=clean_paths,
                notes=description or note,
            )

        requester = self._requester or self._get_requester()
        run_id = uuid.uuid4().hex[:12]
        logger.info(
            "Harmonizing %s/%s@%s paths=%s mode=%s",
            owner,
            repo,
            base_branch,
            clean_paths,
            "apply" if apply else "preview",
            extra={"run_id": run_id, "step": "start"},
        )

        with self._client_factory(github) as client:
            limits = self.config.limits
            collector = TreeCollector(
                client,
                max_file_bytes=limits.max_file_bytes,
                max_content_chars=limits.max_content_chars,
            )
            applier = ChangeApplier(
                client,
                branch_prefix=self.config.apply.branch_prefix,
                default_title=self.config.apply.pr_title,
            )
            graph = build_graph(collector, requester, applier)
            state = graph.invoke(
                make_initial_state(
                    owner=owner,
                    repo=repo,
                    base_branch=base_branch,
                    note=note,
                    paths=clean_paths,
                    apply=apply,
                    title=title,
                    description=description,
                    manifest=manifest,
                    run_id=run_id,
                )
            )

        if state["failure"] is not None:
            logger.warning(
                "Run failed: %s",
                state["failure"],
                extra={"run_id": run_id, "step": "failed"},
            )
            raise state["failure"]

        collection = state["collection"]
        rewrite = state["rewrite"]
        logger.info(
            "Run finished with %d proposed file(s)",
            len(rewrite.files),
            extra={"run_id": run_id, "step": "done"},
        )
        return PipelineResult(
            mode="apply" if apply else "preview",
            summary=rewrite.summary,
            files=list(rewrite.files),
            outcome=state["outcome"],
            collected_count=len(collection.files),
            skipped=list(collection.skipped),
        )

    def _validate(
        self,
        paths: list[str],
        owner: str | None,
        repo: str | None,
        base_branch: str | None,
    ) -> list[str]:
        if not self.config.github.token:
            raise ConfigurationError("Missing GITHUB_TOKEN")
        model = self.config.model
        if self._requester is None and not model.api_key():
            env_name = "ANTHROPIC_API_KEY" if model.provider == "anthropic" else "OPENAI_API_KEY"
            raise ConfigurationError(f"Missing {env_name}")
        if not owner or not repo:
            raise ConfigurationError("Missing repo owner/name")
        if not base_branch:
            raise ConfigurationError("Missing base branch")

        if paths is not None and not isinstance(paths, (list, tuple)):
            raise HarmonizeValidationError("paths must be a list of strings")
        clean_paths = [p.strip() for p in paths or [] if isinstance(p, str) and p.strip()]
        if not clean_paths:
            raise HarmonizeValidationError("No paths provided")
        return clean_paths

    def _get_requester(self) -> RewriteRequester:
        """Build the requester on first use and reuse it for later runs."""
        if self._built_requester is None:
            self._built_requester = self._build_requester()
        return self._built_requester

    def _build_requester(self) -> RewriteRequester:
        model = self.config.model
        return RewriteRequester(
            api_key=model.api_key(),
            model=model.model,
            llm_provider=model.provider,
            max_files=self.config.limits.max_files_in_prompt,
            max_tokens=model.max_tokens,
        )
