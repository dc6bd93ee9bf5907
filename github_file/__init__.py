"""GitHub-hosted file access"""

from .errors import AuthError, ConflictError, NotFoundError, RemoteFileError
from .github_client import GitHubFileClient
from .github_models import RemoteFile

__all__ = [
    'AuthError',
    'ConflictError',
    'GitHubFileClient',
    'NotFoundError',
    'RemoteFile',
    'RemoteFileError',
]
