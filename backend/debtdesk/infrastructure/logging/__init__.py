from debtdesk.infrastructure.logging.logging_config import (
    DebtDeskLogger,
    get_log_context,
    get_log_level,
    get_logger,
    log_context,
    set_log_level,
    setup_logging,
)

__all__ = [
    "DebtDeskLogger",
    "get_log_context",
    "get_log_level",
    "get_logger",
    "log_context",
    "set_log_level",
    "setup_logging",
]
