import json
import logging
import os
import sys

_DATEFMT = "%Y-%m-%d %H:%M:%S"


class JsonFormatter(logging.Formatter):
    """Single-line JSON formatter for structured output.

    Produces one JSON object per log record with fields: ts, level, logger, msg.
    Exception info is included as an "exc" field when present.
    """

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "ts": self.formatTime(record, self.datefmt),
            "level": record.levelname,
            "logger": record.name,
            "msg": record.getMessage(),
        }
        if record.exc_info:
            entry["exc"] = self.formatException(record.exc_info)
        return json.dumps(entry, default=str)


def _resolve_level(debug: bool, config_level: str | None) -> int:
    if debug:
        return logging.DEBUG
    level_name = (os.getenv("LOG_LEVEL") or config_level or "INFO").upper()
    return getattr(logging, level_name, logging.INFO)


def setup_logging(
    debug: bool = False,
    log_file: str | None = None,
    log_format: str = "text",
    config_level: str | None = None,
) -> None:
    """
    Configure logging for a sync run.

    Progress messages go to stderr so stdout stays free for the final
    report (human-readable or ``--json``).

    Args:
        debug: If True, overrides every other level source with DEBUG.
        log_file: Optional file that receives a copy of every record.
        log_format: "text" (default) or "json" for structured output.
        config_level: Level name from the config file ``logging`` section.

    Environment variables:
        LOG_LEVEL: Logging level (DEBUG, INFO, WARNING, ERROR).
                   Takes precedence over the config file, default INFO.
    """
    log_level = _resolve_level(debug, config_level)

    handlers: list[logging.Handler] = []
    stderr_handler = logging.StreamHandler(sys.stderr)

    if log_format == "json":
        stderr_handler.setFormatter(JsonFormatter(datefmt=_DATEFMT))
    else:
        stderr_handler.setFormatter(
            logging.Formatter(
                "[%(asctime)s] [%(levelname)s] %(message)s",
                datefmt=_DATEFMT,
            )
        )
    handlers.append(stderr_handler)

    if log_file:
        file_handler = logging.FileHandler(log_file, mode="a")
        if log_format == "json":
            file_handler.setFormatter(JsonFormatter(datefmt=_DATEFMT))
        else:
            file_handler.setFormatter(
                logging.Formatter(
                    "[%(asctime)s] [%(levelname)s] %(name)s %(message)s",
                    datefmt=_DATEFMT,
                )
            )
        handlers.append(file_handler)

    logging.basicConfig(
        level=log_level,
        handlers=handlers,
        force=True,
    )

    # Silence third-party libs unless DEBUG
    if log_level != logging.DEBUG:
        logging.getLogger("urllib3").setLevel(logging.WARNING)
        logging.getLogger("git").setLevel(logging.WARNING)
