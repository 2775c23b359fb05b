"""One-shot grid update, meant to be launched by an external scheduler."""

import asyncio
import logging
import sys

from pydantic import ValidationError

from alertgrid.config import get_settings
from alertgrid.database import close_db
from alertgrid.services.grid_builder import run_grid_update

logger = logging.getLogger(__name__)


async def _run() -> None:
    try:
        result = await run_grid_update()
    finally:
        await close_db()

    logger.info(
        f"Density cells per window: {result.density_cells}; "
        f"diversity cells per radius group: {result.diversity_cells}; "
        f"{result.total_alerts} alerts in horizon"
    )


def main() -> int:
    """Run a single grid update. Returns the process exit code."""
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    try:
        settings = get_settings()
    except ValidationError as e:
        logger.error(f"Configuration errors:\n{e}")
        return 1

    logging.getLogger().setLevel(settings.log_level.upper())

    logger.info("[Grid Runner] Starting grid update task.")
    try:
        asyncio.run(_run())
    except Exception:
        logger.exception("[Grid Runner] Error during grid update task")
        return 1

    logger.info("[Grid Runner] Grid update task completed successfully.")
    return 0


if __name__ == "__main__":
    sys.exit(main())
