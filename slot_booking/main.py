import argparse
import logging
import os

import uvicorn

from slot_booking.app import create_app
from slot_booking.config import load_settings
from slot_booking.models import Document
from slot_booking.sample_data import build_sample_document
from slot_booking.storage import JsonFileStore


def _setup_logging(level: str) -> None:
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s %(name)s - %(message)s",
    )


def main() -> int:
    """Run the booking API with uvicorn server."""
    parser = argparse.ArgumentParser(description="Doctor slot booking API")
    parser.add_argument("--seed", action="store_true", help="Write a sample data file if none exists, then exit")
    args = parser.parse_args()

    settings = load_settings()
    _setup_logging(settings.log_level)
    logger = logging.getLogger(__name__)

    if args.seed:
        if os.path.exists(settings.data_file):
            logger.info("Data file %s already exists, leaving it untouched", settings.data_file)
            return 0
        JsonFileStore(settings.data_file).save(Document.model_validate(build_sample_document()))
        logger.info("Sample data written to %s", settings.data_file)
        return 0

    logger.info("Serving %s on %s:%s", settings.data_file, settings.host, settings.port)
    uvicorn.run(create_app(settings), host=settings.host, port=settings.port, log_level=settings.log_level.lower())
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
