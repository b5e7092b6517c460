"""Remote source-control access."""

from harmonizer.remote.client import RepositoryClient
from harmonizer.remote.exceptions import RemoteApiError, RemoteError

__all__ = ["RemoteApiError", "RemoteError", "RepositoryClient"]
