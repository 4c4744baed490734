import logging
from colorlog import ColoredFormatter
from counterdesk.core.settings import settings

LOGGER_NAME = "counterdesk"
LOG_FORMAT = (
    "%(log_color)s[%(asctime)s] [%(levelname)-8s] "
    "%(reset)s%(blue)s%(name)s:%(reset)s %(message)s"
)
LOG_COLORS = {
    "DEBUG": "cyan",
    "INFO": "green",
    "WARNING": "yellow",
    "ERROR": "red",
    "CRITICAL": "bold_red",
}


def build_logger(name: str = LOGGER_NAME, level: str = settings.LOG_LEVEL) -> logging.Logger:
    """
    Colored console logger for the service.

    The handler is attached once per logger name; later calls only reset the level.
    """
    log = logging.getLogger(name)
    log.setLevel(level.upper())
    if not log.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(ColoredFormatter(LOG_FORMAT, datefmt="%Y-%m-%d %H:%M:%S", reset=True, log_colors=LOG_COLORS))
        log.addHandler(handler)
    log.propagate = False
    return log


logger = build_logger()
