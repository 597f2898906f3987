"""
Repository dependency for API routes.

The application holds one repository for its lifetime. Tests install
their own with ``set_repository`` before starting the app.
"""

from fastapi import HTTPException

from debtdesk.services.repository import Repository

_repository: Repository | None = None


def get_repository() -> Repository:
    if _repository is None:
        raise HTTPException(status_code=503, detail="Repository not initialized")
    return _repository


def set_repository(repo: Repository | None) -> None:
    global _repository
    _repository = repo


def has_repository() -> bool:
    return _repository is not None
