"""Rewrite requester: one structured language-model call per pipeline run."""

import json
import logging
import os
from typing import Any, Literal

from anthropic import Anthropic
import anthropic
import openai
from pydantic import ValidationError

from harmonizer.agents.exceptions import (
    AgentError,
    EmptyRewriteError,
    MalformedModelResponseError,
)
from harmonizer.models import CollectedFile, RewriteRequest, RewriteResult
from harmonizer.remote import RemoteApiError

logger = logging.getLogger(__name__)

# Constants
MAX_FILES_IN_PROMPT = 12  # Hard volume budget, not a semantic filter
MAX_API_TOKENS = 8192
DEFAULT_OPENAI_MODEL = "gpt-4.1-mini"
DEFAULT_ANTHROPIC_MODEL = "claude-sonnet-4-5-20250929"
TOOL_NAME = "submit_rewrite"

SYSTEM_PROMPT = """You are the Harmonizer engine.
Unify, refactor and improve consistency across the given files without \
breaking code intent. Return every file you change as a COMPLETE replacement \
body, never a diff. Return JSON strictly like:

{
  "summary": "short summary",
  "files": [
    { "path": "...", "content": "...", "rationale": "..." }
  ]
}
"""


class RewriteRequester:
    """Sends collected files to the model and validates the rewrite set."""

    def __init__(
        self,
        api_key: str | None = None,
        model: str | None = None,
        llm_provider: str = "openai",
        max_files: int = MAX_FILES_IN_PROMPT,
        max_tokens: int = MAX_API_TOKENS,
    ) -> None:
        """Initialize the requester.

        Args:
            api_key: Key for the selected provider. Falls back to
                OPENAI_API_KEY or ANTHROPIC_API_KEY.
            model: Model ID; defaults per provider.
            llm_provider: "openai" (JSON mode) or "anthropic" (forced tool use).

        Raises:
            AgentError: If the provider is unknown or no API key is found.
        """
        self.llm_provider: Literal["openai", "anthropic"] = self._normalize_provider(
            llm_provider
        )
        self.max_files = max_files
        self.max_tokens = max_tokens
        self._openai_client: openai.OpenAI | None = None
        self._anthropic_client: Anthropic | None = None

        if self.llm_provider == "openai":
            self.api_key = api_key or os.getenv("OPENAI_API_KEY")
            self.model = model or DEFAULT_OPENAI_MODEL
            if self.api_key:
                self._openai_client = openai.OpenAI(api_key=self.api_key)
        else:
            self.api_key = api_key or os.getenv("ANTHROPIC_API_KEY")
            self.model = model or DEFAULT_ANTHROPIC_MODEL
            if self.api_key:
                self._anthropic_client = Anthropic(api_key=self.api_key)

        if not self.api_key:
            raise AgentError(
                f"No API key found for --llm-provider={self.llm_provider}. "
                "Provide one via parameter, OPENAI_API_KEY or ANTHROPIC_API_KEY."
            )

    @staticmethod
    def _normalize_provider(value: str) -> Literal["openai", "anthropic"]:
        if value not in {"openai", "anthropic"}:
            raise AgentError(f"Unsupported provider: {value}")
        return value

    def request_rewrite(
        self,
        files: list[CollectedFile],
        *,
        owner: str,
        repo: str,
        base_branch: str,
        note: str,
    ) -> RewriteResult:
        """Ask the model for a rewrite set covering `files`.

        Files beyond `max_files` are dropped from the prompt.

        Returns:
            RewriteResult with at least one validated ProposedChange.

        Raises:
            RemoteApiError: If the provider call fails.
            MalformedModelResponseError: If the reply is not the expected JSON shape.
            EmptyRewriteError: If the reply proposes no files.
        """
        if len(files) > self.max_files:
            logger.info(
                "Capping prompt to %d of %d collected files", self.max_files, len(files)
            )
        request = RewriteRequest(
            owner=owner,
            repo=repo,
            base_branch=base_branch,
            note=note,
            files=list(files[: self.max_files]),
        )
        prompt = self._build_prompt(request)

        if self.llm_provider == "openai":
            payload, raw = self._call_openai(prompt)
        else:
            payload, raw = self._call_anthropic(prompt)

        result = self._parse_payload(payload, raw)
        logger.info("Model proposed %d file rewrite(s)", len(result.files))
        return result

    def _build_prompt(self, request: RewriteRequest) -> str:
        """Render the user message; deterministic for identical input."""
        file_blocks = "\n\n".join(
            f"--- FILE: {item.path}\n{item.content}" for item in request.files
        )
        return (
            f"Repo: {request.owner}/{request.repo}\n"
            f"Branch: {request.base_branch}\n"
            f"Mission: {request.note}\n"
            "\n"
            "Files:\n"
            f"{file_blocks}\n"
        )

    def _get_tool_schema(self) -> dict[str, Any]:
        return {
            "name": TOOL_NAME,
            "description": "Submit the harmonized rewrite set",
            "input_schema": {
                "type": "object",
                "properties": {
                    "summary": {"type": "string"},
                    "files": {
                        "type": "array",
                        "items": {
                            "type": "object",
                            "properties": {
                                "path": {"type": "string"},
                                "content": {"type": "string"},
                                "rationale": {"type": "string"},
                            },
                            "required": ["path", "content"],
                        },
                    },
                },
                "required": ["files"],
            },
        }

    def _call_openai(self, prompt: str) -> tuple[Any, str]:
        if self._openai_client is None:
            raise AgentError("OpenAI client unavailable")
        try:
            response = self._openai_client.chat.completions.create(
                model=self.model,
                response_format={"type": "json_object"},
                messages=[
                    {"role": "system", "content": SYSTEM_PROMPT},
                    {"role": "user", "content": prompt},
                ],
            )
        except openai.APIStatusError as exc:
            raise RemoteApiError(
                exc.status_code, exc.response.text, "POST", "openai:chat.completions"
            ) from exc
        except openai.APIError as exc:
            raise RemoteApiError(None, str(exc), "POST", "openai:chat.completions") from exc

        try:
            raw = response.choices[0].message.content or ""
        except (AttributeError, IndexError) as exc:
            raise MalformedModelResponseError(f"OpenAI reply has no message: {exc}") from exc
        try:
            return json.loads(raw), raw
        except json.JSONDecodeError as exc:
            raise MalformedModelResponseError(
                f"Model reply is not valid JSON: {exc}", raw_reply=raw
            ) from exc

    def _call_anthropic(self, prompt: str) -> tuple[Any, str]:
        if self._anthropic_client is None:
            raise AgentError("Anthropic client unavailable")
        try:
            response = self._anthropic_client.messages.create(
                model=self.model,
                max_tokens=self.max_tokens,
                system=SYSTEM_PROMPT,
                tools=[self._get_tool_schema()],
                tool_choice={"type": "tool", "name": TOOL_NAME},
                messages=[{"role": "user", "content": prompt}],
            )
        except anthropic.APIStatusError as exc:
            raise RemoteApiError(
                exc.status_code, exc.response.text, "POST", "anthropic:messages"
            ) from exc
        except anthropic.APIError as exc:
            raise RemoteApiError(None, str(exc), "POST", "anthropic:messages") from exc

        for block in response.content:
            if block.type == "tool_use" and block.name == TOOL_NAME:
                return block.input, json.dumps(block.input, default=str)
        raise MalformedModelResponseError(
            "No tool_use block found in Anthropic response", raw_reply=str(response.content)
        )

    def _parse_payload(self, payload: Any, raw: str) -> RewriteResult:
        if not isinstance(payload, dict):
            raise MalformedModelResponseError(
                "Model reply is not a JSON object", raw_reply=raw
            )
        try:
            result = RewriteResult.model_validate(payload)
        except ValidationError as exc:
            raise MalformedModelResponseError(
                f"Model reply failed validation: {exc}", raw_reply=raw
            ) from exc
        if not result.files:
            raise EmptyRewriteError("Harmonizer returned no files")
        return result
