"""Models for the structured rewrite set returned by the language model."""

from pydantic import BaseModel, ConfigDict, Field, field_validator


class ProposedChange(BaseModel):
    """A full replacement body for one repository file."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    path: str
    content: str = Field(strict=True)
    rationale: str | None = None

    @field_validator("path")
    @classmethod
    def _check_path(cls, value: str) -> str:
        path = value.strip()
        if not path:
            raise ValueError("path must be non-empty")
        if path.startswith("/") or "\\" in path:
            raise ValueError(f"path must be repository-relative: {value!r}")
        if any(segment in ("", ".", "..") for segment in path.split("/")):
            raise ValueError(f"path contains an invalid segment: {value!r}")
        return path


class RewriteResult(BaseModel):
    """Summary plus ordered file rewrites; `files` may be empty until checked."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    summary: str | None = None
    files: list[ProposedChange]
