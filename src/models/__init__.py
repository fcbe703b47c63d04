"""
Domain models for the crawler.
"""

from .repository import Repository, RepositoryReference

__all__ = [
    "Repository",
    "RepositoryReference",
]
