import logging
import sys
from pathlib import Path

# Ensure project root is on sys.path
PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from aiteken.config import settings
from aiteken.database import build_engine, init_db
from aiteken.main import configure_logging


logger = logging.getLogger("init_db")


def main() -> int:
    configure_logging(settings.log_level)
    url = settings.sqlalchemy_url
    logger.info("Database URL: %s", url)
    engine = build_engine(url, settings)
    try:
        report = init_db(engine)
    finally:
        engine.dispose()

    if not report or any(state in {"failed", "skipped"} for state in report.values()):
        logger.error("Schema setup incomplete: %s", report or "no connection")
        return 1
    for table, state in report.items():
        logger.info("%s: %s", table, state)
    return 0


if __name__ == "__main__":
    sys.exit(main())
