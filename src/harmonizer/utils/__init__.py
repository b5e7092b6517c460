"""Utility helpers for the harmonizer."""

from harmonizer.utils.encoding import decode_content, encode_content

__all__ = ["decode_content", "encode_content"]
