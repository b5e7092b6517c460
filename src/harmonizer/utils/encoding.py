"""Base64 transport encoding for repository file content."""

import base64
import binascii


def encode_content(text: str) -> str:
    """Encode text as UTF-8 then base64, the form the contents API accepts."""
    return base64.b64encode(text.encode("utf-8")).decode("ascii")


def decode_content(payload: str) -> str:
    """Decode base64 content as returned by the contents API.

    The API wraps the payload at 60 columns; embedded newlines are ignored.

    Raises:
        ValueError: If the payload is not valid base64 or not UTF-8 text.
    """
    try:
        raw = base64.b64decode("".join(payload.split()), validate=True)
    except (binascii.Error, ValueError) as exc:
        raise ValueError(f"invalid base64 content: {exc}") from exc
    return raw.decode("utf-8")
