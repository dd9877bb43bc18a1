import sys
from datetime import datetime
from pathlib import Path

from loguru import logger

LOG_FORMAT = "{time:YYYY-MM-DD HH:mm:ss.SSS} | {level: <8} | {name}:{function}:{line} - {message}"


def setup_logging(root: str, level: str = "INFO", console: bool = True):
    """Un archivo por día bajo <root>/YYYY/MM/DD, más salida a stderr."""
    logdir = Path(root) / datetime.now().strftime("%Y/%m/%d")
    logdir.mkdir(parents=True, exist_ok=True)
    logfile = logdir / "docintake.log"
    logger.remove()
    logger.add(
        str(logfile),
        format=LOG_FORMAT,
        rotation="00:00",
        retention="14 days",
        level=level,
        enqueue=True,
        backtrace=True,
        diagnose=False,
    )
    if console:
        # stdout queda libre para el JSON que imprime la CLI
        logger.add(sys.stderr, format=LOG_FORMAT, level=level)
    return logger
