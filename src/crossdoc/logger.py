import logging

from crossdoc.settings import settings as api_settings

_LEVELS = {
    "CRITICAL": logging.CRITICAL,
    "ERROR": logging.ERROR,
    "WARNING": logging.WARNING,
    "INFO": logging.INFO,
    "DEBUG": logging.DEBUG,
}

_configured = False


def setup_global_logging(level: str = "INFO") -> None:
    """Configure the root logger once.

    Args:
        level: Log level name; unknown names fall back to INFO
    """
    global _configured
    if _configured:
        return
    logging.basicConfig(
        level=_LEVELS.get(level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )
    _configured = True


class Logger:
    """Per-class logger for adapters, models and the client registry.

    `message` carries the one-line summary of each store operation at the
    level named by LOG_LEVEL; compiled filters go to `debug` and store
    failures to `error`.
    """

    def __init__(self, name: str) -> None:
        if not _configured:
            setup_global_logging(api_settings.LOG_LEVEL)
        self._logger = logging.getLogger(name)

    def debug(self, msg: str, *args, **kwargs) -> None:
        self._logger.debug(msg, *args, **kwargs)

    def error(self, msg: str, *args, **kwargs) -> None:
        self._logger.error(msg, *args, **kwargs)

    def message(self, msg: str, *args, **kwargs) -> None:
        # Unset LOG_LEVEL means INFO
        level = _LEVELS.get((api_settings.LOG_LEVEL or "INFO").upper(), logging.INFO)
        self._logger.log(level, msg, *args, **kwargs)
