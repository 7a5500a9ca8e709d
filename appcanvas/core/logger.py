"""
Loguru sinks for the service.

Debug runs get a colored console with call sites; otherwise plain lines for
container log collectors. ``log_to_file`` adds a rotating file sink.
"""
import sys
from pathlib import Path

from loguru import logger

from appcanvas.config import settings

CONSOLE_DEBUG = (
    "<green>{time:HH:mm:ss.SSS}</green> <level>{level: <8}</level> "
    "<cyan>{name}:{line}</cyan> {message}"
)
CONSOLE_PLAIN = "{time:YYYY-MM-DDTHH:mm:ss.SSSZ} {level: <8} {name}:{line} {message}"

LOG_FILE = Path("logs") / "appcanvas.log"


def setup_logging() -> None:
    """Replace loguru's default handler; safe to call more than once"""
    logger.remove()

    verbose = settings.debug
    logger.add(
        sys.stdout,
        level=settings.log_level,
        format=CONSOLE_DEBUG if verbose else CONSOLE_PLAIN,
        colorize=verbose,
        backtrace=verbose,
        diagnose=verbose,
    )

    if settings.log_to_file:
        LOG_FILE.parent.mkdir(exist_ok=True)
        logger.add(
            LOG_FILE,
            level="INFO",
            format=CONSOLE_PLAIN,
            rotation="100 MB",
            retention="14 days",
            compression="gz",
            enqueue=True,
        )

    logger.debug(f"Log level {settings.log_level}, debug={verbose}, file={settings.log_to_file}")
