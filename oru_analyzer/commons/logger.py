import os
import sys
from datetime import datetime
from pathlib import Path
from typing import Optional

from loguru import logger


def setup_logging(root: str, level: Optional[str] = None):
    level = (level or os.getenv("LOG_LEVEL") or "INFO").upper()
    logdir = Path(root) / datetime.now().strftime("%Y/%m/%d")
    logdir.mkdir(parents=True, exist_ok=True)
    logfile = logdir / "app.log"
    logger.remove()
    logger.add(
        str(logfile),
        rotation="00:00",
        retention="14 days",
        level=level,
        backtrace=True,
    )
    # consola por stderr: stdout queda libre para el JSON del CLI
    logger.add(sys.stderr, level=level)
    return logger
