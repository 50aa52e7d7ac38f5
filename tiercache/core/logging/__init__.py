from .logger import (
    get_logger,
    log_stage,
    redact_credentials,
    setup_logging,
)

__all__ = [
    "get_logger",
    "log_stage",
    "redact_credentials",
    "setup_logging",
]
