"""
Structured logging for Backend Charity.

get_logger() for module loggers, bind_resource() for per-resource sync
loggers, configure_logging() to apply the server's LOG_LEVEL at startup.
"""

from backend_charity.logging.logger import bind_resource, configure_logging, get_logger

__all__ = ["bind_resource", "configure_logging", "get_logger"]
