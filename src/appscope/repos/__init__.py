from .repository_factory import AllRepositories, get_repositories
from .repository_generic import AppRepositoryGeneric, RepositoryGeneric

__all__ = ["AllRepositories", "AppRepositoryGeneric", "RepositoryGeneric", "get_repositories"]
