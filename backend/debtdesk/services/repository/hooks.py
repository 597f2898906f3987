"""
Lifecycle hooks.

Side effects that follow a successful primary write, registered per
entity. Each hook runs on its own: a failing hook is logged and never
rolls back or fails the write that triggered it.

Built-in hooks for cases:
- account_created_audit / dvn_sent_audit: two activity_logs entries on
  create, the second timestamped strictly after the first
- status_change_audit: one activity_logs entry when an update changes status
"""

from __future__ import annotations

from collections import defaultdict
from datetime import timedelta
from typing import TYPE_CHECKING, Awaitable, Callable

from debtdesk.domain.models.enums import ActivityType
from debtdesk.domain.models.record import Record, utcnow
from debtdesk.infrastructure.logging import get_logger

if TYPE_CHECKING:
    from debtdesk.services.repository.facade import Repository

logger = get_logger(__name__)

SYSTEM_ACTOR = "system"
AUDIT_ENTITY = "activity_logs"

PostCreateHook = Callable[["Repository", Record, "str | None"], Awaitable[None]]
PostUpdateHook = Callable[["Repository", Record, Record, "str | None"], Awaitable[None]]


class HookRegistry:
    """Per-entity ordered lists of post-create and post-update hooks."""

    def __init__(self) -> None:
        self._create_hooks: dict[str, list[PostCreateHook]] = defaultdict(list)
        self._update_hooks: dict[str, list[PostUpdateHook]] = defaultdict(list)

    def on_create(self, entity: str, hook: PostCreateHook) -> None:
        self._create_hooks[entity].append(hook)

    def on_update(self, entity: str, hook: PostUpdateHook) -> None:
        self._update_hooks[entity].append(hook)

    def create_hooks(self, entity: str) -> list[PostCreateHook]:
        return list(self._create_hooks.get(entity, []))

    def update_hooks(self, entity: str) -> list[PostUpdateHook]:
        return list(self._update_hooks.get(entity, []))

    async def run_create(self, repo: "Repository", record: Record, actor: str | None) -> int:
        """Run post-create hooks; returns how many failed."""
        failures = 0
        for hook in self.create_hooks(record.entity):
            try:
                await hook(repo, record, actor)
            except Exception as e:
                failures += 1
                logger.warning_with_context(
                    f"Post-create hook {_name(hook)} failed for {record.entity}/{record.id}: {e}",
                    context={"entity": record.entity, "id": record.id, "hook": _name(hook)},
                    exc_info=True,
                )
        return failures

    async def run_update(
        self,
        repo: "Repository",
        before: Record,
        after: Record,
        actor: str | None,
    ) -> int:
        """Run post-update hooks; returns how many failed."""
        failures = 0
        for hook in self.update_hooks(after.entity):
            try:
                await hook(repo, before, after, actor)
            except Exception as e:
                failures += 1
                logger.warning_with_context(
                    f"Post-update hook {_name(hook)} failed for {after.entity}/{after.id}: {e}",
                    context={"entity": after.entity, "id": after.id, "hook": _name(hook)},
                    exc_info=True,
                )
        return failures


def _name(hook: Callable) -> str:
    return getattr(hook, "__name__", type(hook).__name__)


def _stamp(record: Record, offset: timedelta = timedelta(0)) -> str:
    base = record.created_at or utcnow()
    return (base + offset).isoformat(timespec="microseconds")


async def account_created_audit(repo: "Repository", case: Record, actor: str | None) -> None:
    await repo.create(
        AUDIT_ENTITY,
        {
            "case_id": case.id,
            "activity_type": ActivityType.ACCOUNT_CREATED.value,
            "description": "Account Created",
            "performed_by": SYSTEM_ACTOR,
            "activity_date": _stamp(case),
        },
    )


async def dvn_sent_audit(repo: "Repository", case: Record, actor: str | None) -> None:
    await repo.create(
        AUDIT_ENTITY,
        {
            "case_id": case.id,
            "activity_type": ActivityType.DVN_SENT.value,
            "description": "DVN was sent",
            "performed_by": SYSTEM_ACTOR,
            "activity_date": _stamp(case, timedelta(milliseconds=1)),
        },
    )


async def status_change_audit(
    repo: "Repository",
    before: Record,
    after: Record,
    actor: str | None,
) -> None:
    old_status = before.get("status")
    new_status = after.get("status")
    if old_status == new_status:
        return

    when = after.updated_at or utcnow()
    await repo.create(
        AUDIT_ENTITY,
        {
            "case_id": after.id,
            "activity_type": ActivityType.STATUS_CHANGE.value,
            "description": f"Status changed from {old_status} to {new_status}",
            "performed_by": actor or SYSTEM_ACTOR,
            "activity_date": when.isoformat(timespec="microseconds"),
        },
    )


def default_hooks() -> HookRegistry:
    hooks = HookRegistry()
    hooks.on_create("cases", account_created_audit)
    hooks.on_create("cases", dvn_sent_audit)
    hooks.on_update("cases", status_change_audit)
    return hooks
