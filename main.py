"""Entry point: load configured panels and report their health."""

import logging
import sys

from config.settings import LOG_LEVEL
from database import init_db, get_db_session
from services import KeyService, ServerRegistry


def setup_logging():
    """Configure logging for the application."""
    logging.basicConfig(
        level=getattr(logging, LOG_LEVEL, logging.INFO),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        handlers=[logging.StreamHandler(sys.stdout)],
    )


def main() -> int:
    """Ping every active server. Exit code 1 if any is unhealthy."""
    setup_logging()
    logger = logging.getLogger(__name__)

    init_db()
    with get_db_session() as db:
        registry = ServerRegistry.load(db)
        report = KeyService.ping_servers(registry)

    for name, health in report.items():
        if health.is_healthy:
            logger.info(f"{name}: online, {health.inbound_count} inbound(s)")
        else:
            logger.error(f"{name}: offline ({health.error_message})")

    return 0 if all(h.is_healthy for h in report.values()) else 1


if __name__ == '__main__':
    sys.exit(main())
