import logging
import sys

from .config import settings


def setup_logging(level: str = "INFO") -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=[logging.StreamHandler(sys.stdout)],
    )


setup_logging(settings.LOG_LEVEL)
logger = logging.getLogger("ncs_api")
