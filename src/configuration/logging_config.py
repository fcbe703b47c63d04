import logging
import sys
import structlog

SENSITIVE_FIELDS = ['password', 'secret', 'token', 'authorization']

def filter_sensitive_data(logger, log_method, event_dict):
    """
    A structlog processor to filter sensitive data from the event dictionary.
    """
    for field in SENSITIVE_FIELDS:
        if field in event_dict:
            event_dict[field] = '[FILTERED]'
    return event_dict

def configure_logging(log_level=logging.INFO, stream=None, force_reconfigure=False):
    """Configure structlog-based JSON logging."""
    if stream is None:
        stream = sys.stdout

    if isinstance(log_level, str):
        log_level = logging.getLevelName(log_level.upper())

    if not force_reconfigure and getattr(structlog, '_dependagraph_configured', False):
        return

    for handler in logging.root.handlers[:]:
        logging.root.removeHandler(handler)

    logging.basicConfig(
        format="%(message)s",
        stream=stream,
        level=log_level,
        force=True
    )
    logging.root.setLevel(log_level)

    # httpx logs every request at INFO
    logging.getLogger("httpx").setLevel(max(log_level, logging.WARNING))

    shared_processors = [
        structlog.stdlib.filter_by_level,
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_logger_name,
        structlog.processors.add_log_level,
        filter_sensitive_data,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.format_exc_info,
        structlog.processors.JSONRenderer(),
    ]

    structlog.configure(
        processors=shared_processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        logger_factory=structlog.stdlib.LoggerFactory(),
        # Crawls log from executor threads as well as the event loop
        cache_logger_on_first_use=False,
    )

    structlog._dependagraph_configured = True
