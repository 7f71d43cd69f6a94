import logging

import uvicorn

from watchprogress.config import API_HOST, API_PORT, LOG_LEVEL, LOG_TO_FILE
from watchprogress.utils.logger import setup_logging

# Initialize logging
setup_logging(level=LOG_LEVEL, log_to_file=LOG_TO_FILE)
logger = logging.getLogger("watchprogress")


def main():
    logger.info(f"Serving progress API on http://{API_HOST}:{API_PORT}")
    uvicorn.run("watchprogress.api.server:app", host=API_HOST, port=API_PORT, log_config=None)


if __name__ == "__main__":
    try:
        main()
    except KeyboardInterrupt:
        pass
