import os

import uvicorn

from rxfire.config import settings
from utils.logging_utils import get_tagged_logger, setup_logging

logger = get_tagged_logger(__name__, tag="server")


if __name__ == "__main__":
    setup_logging(level=settings.log_level, job_name="rxfire_api")
    logger.info("Starting server", extra={"forecast_source": settings.forecast_source})

    uvicorn.run(
        "rxfire.main:app",
        host="0.0.0.0",
        port=int(os.getenv("PORT", 8000)),
        reload=False,
    )
