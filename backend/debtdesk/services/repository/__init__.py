"""
Repository Module - dual-source record access.

Provides:
- Repository: the facade callers use for every entity
- ReconciliationPolicy: source selection and hybrid merge rules
- HookRegistry: post-write side effects such as case audit entries
- IdGenerator: collision-resistant record ids
"""

from debtdesk.services.repository.facade import Repository
from debtdesk.services.repository.factory import build_repository
from debtdesk.services.repository.hooks import HookRegistry, default_hooks
from debtdesk.services.repository.ids import IdGenerator
from debtdesk.services.repository.policy import ReconciliationPolicy, merge_hybrid

__all__ = [
    "Repository",
    "build_repository",
    "HookRegistry",
    "default_hooks",
    "IdGenerator",
    "ReconciliationPolicy",
    "merge_hybrid",
]
