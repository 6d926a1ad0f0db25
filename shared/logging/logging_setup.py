import logging
import logging.config
import os
from datetime import datetime
from logging import Logger

from pytz import timezone

debug_mode = os.getenv("LOG_LEVEL", "info").lower() == "debug"
loglevel = logging.DEBUG if debug_mode else logging.INFO

LOG_FORMAT = "%(asctime)s - %(levelname)s - %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

_LEVEL_MARKERS = {logging.ERROR: "⛔ ", logging.CRITICAL: "⛔ ", logging.WARNING: "⚠️ "}
_ANSI_RESET = "\033[0m"
_ANSI_COLORS = {
    "cyan": "\033[36m",
    "green": "\033[32m",
    "yellow": "\033[33m",
    "red": "\033[31m",
    "magenta": "\033[35m",
    "blue": "\033[34m",
}


class BridgeFormatter(logging.Formatter):
    """Timestamps in the configured timezone, a marker in front of warnings and errors.

    With colored=True a record logged with color=<name> is wrapped in that ANSI color.
    """

    def __init__(self, tz_name: str, colored: bool = False, **kwargs):
        super().__init__(**kwargs)
        self.tz = timezone(tz_name)
        self.colored = colored

    def formatTime(self, record, datefmt=None):
        dt = datetime.fromtimestamp(record.created, self.tz)
        return dt.strftime(datefmt) if datefmt else dt.isoformat()

    def format(self, record) -> str:
        try:
            message = record.getMessage()
        except (TypeError, ValueError):
            # third party record with mismatched %-args
            message = str(record.msg)
        record.msg = _LEVEL_MARKERS.get(record.levelno, "") + message
        record.args = ()
        line = super().format(record)

        ansi = _ANSI_COLORS.get(getattr(record, "color", None) or "") if self.colored else None
        return f"{ansi}{line}{_ANSI_RESET}" if ansi else line


class ColorLogger:
    """Logger wrapper accepting color=<name> on the log methods, e.g.

        logger.info("All clients booted.", color="green")

    Only the console handler renders colors. Everything else is delegated to the wrapped logger.
    """

    def __init__(self, logger: Logger):
        self._logger = logger

    def _log(self, level: int, msg, args, color: str | None, kwargs: dict) -> None:
        if color is not None:
            kwargs["extra"] = {**(kwargs.get("extra") or {}), "color": color}
        kwargs.setdefault("stacklevel", 3)
        self._logger.log(level, msg, *args, **kwargs)

    def debug(self, msg, *args, color: str | None = None, **kwargs):
        self._log(logging.DEBUG, msg, args, color, kwargs)

    def info(self, msg, *args, color: str | None = None, **kwargs):
        self._log(logging.INFO, msg, args, color, kwargs)

    def warning(self, msg, *args, color: str | None = None, **kwargs):
        self._log(logging.WARNING, msg, args, color, kwargs)

    def error(self, msg, *args, color: str | None = None, **kwargs):
        self._log(logging.ERROR, msg, args, color, kwargs)

    def exception(self, msg, *args, color: str | None = None, **kwargs):
        kwargs.setdefault("exc_info", True)
        self._log(logging.ERROR, msg, args, color, kwargs)

    def __getattr__(self, name):
        return getattr(self._logger, name)


def setup_logging() -> ColorLogger:
    """Configure the root logger and return the bridge logger.

    Environment:
        LOG_LEVEL: "debug" enables debug output, including httpx request logs.
        TIMEZONE: Timezone of the timestamps (default Europe/Berlin).
        LOG_TO_FILE: Set to false to skip $ROOT_DIR/logs/app.log.
    """
    tz_name = os.getenv("TIMEZONE", "Europe/Berlin")
    formatters = {
        "standard": {"()": BridgeFormatter, "tz_name": tz_name, "fmt": LOG_FORMAT, "datefmt": DATE_FORMAT},
        "colored": {"()": BridgeFormatter, "tz_name": tz_name, "colored": True, "fmt": LOG_FORMAT, "datefmt": DATE_FORMAT},
    }
    handlers: dict = {
        "console": {"class": "logging.StreamHandler", "formatter": "colored", "level": loglevel, "stream": "ext://sys.stdout"},
    }

    if os.getenv("LOG_TO_FILE", "true").lower() in ("true", "1", "yes"):
        log_dir = os.path.join(os.getenv("ROOT_DIR", os.getcwd()), "logs")
        os.makedirs(log_dir, exist_ok=True)
        handlers["file"] = {
            "class": "logging.FileHandler",
            "formatter": "standard",
            "level": loglevel,
            "filename": os.path.join(log_dir, "app.log"),
            "encoding": "utf-8",
        }

    logging.config.dictConfig({
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": formatters,
        "handlers": handlers,
        "root": {"handlers": list(handlers), "level": loglevel},
    })
    logging.getLogger("httpx").setLevel(logging.DEBUG if debug_mode else logging.WARNING)

    return ColorLogger(logging.getLogger("vector_memory_bridge"))
