"""
Structured Logging Configuration
"""

import structlog
import logging
import sys
from typing import Any, Dict
from workspace_authz.core.config import settings

# Event keys that may carry a raw credential
CREDENTIAL_KEYS = frozenset({"token", "raw", "authorization", "jwt_secret_key", "secret_key"})


def setup_logging():
    """Configure structured logging for the authorization core"""

    # Configure standard library logging
    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=getattr(logging, settings.LOG_LEVEL),
    )

    # Configure structlog
    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            drop_credentials,
            # JSON formatting for production, pretty for development
            structlog.processors.JSONRenderer() if settings.ENVIRONMENT == "production"
            else structlog.dev.ConsoleRenderer(colors=True)
        ],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )


def drop_credentials(logger: Any, method_name: str, event_dict: Dict[str, Any]) -> Dict[str, Any]:
    """Redact raw credentials in log entries"""
    for key in CREDENTIAL_KEYS.intersection(event_dict):
        event_dict[key] = "[redacted]"
    return event_dict

