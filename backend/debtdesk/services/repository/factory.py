"""Assemble a repository from configuration."""

from debtdesk.core.config import DebtDeskConfig, get_config
from debtdesk.core.retry import RetryPolicy
from debtdesk.domain.metadata.registry import default_registry
from debtdesk.infrastructure.logging import get_logger
from debtdesk.services.repository.facade import Repository
from debtdesk.services.repository.hooks import default_hooks
from debtdesk.storage import create_record_store, create_remote_client

logger = get_logger(__name__)


def build_repository(config: DebtDeskConfig | None = None) -> Repository:
    """
    Build a repository with the stores, entity policies and retry
    settings named in ``config`` (the global config when omitted).

    Call ``await repo.store.init()`` (or use the repository as an async
    context manager) before the first operation.
    """
    config = config or get_config()

    registry = default_registry()
    registry.apply_overrides(config.entities)

    retry = RetryPolicy(
        max_retries=config.retry.max_retries,
        base_delay=config.retry.base_delay,
        max_delay=config.retry.max_delay,
        exponential_base=config.retry.exponential_base,
    )

    repo = Repository(
        store=create_record_store(config.local),
        remote=create_remote_client(config.remote),
        registry=registry,
        retry_policy=retry,
        hooks=default_hooks(),
    )
    logger.info_with_context(
        "Repository ready",
        context={
            "local_backend": config.local.backend,
            "remote": config.remote.base_url or "in-memory",
            "entities": len(registry.list_all()),
        },
    )
    return repo
