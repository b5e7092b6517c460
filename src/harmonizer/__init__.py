"""Repository harmonizer: collect files, ask a model for rewrites, open a PR."""

__version__ = "0.1.0"
