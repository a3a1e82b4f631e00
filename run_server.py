#!/usr/bin/env python3
"""
Message Board Server
Serves the thread and reply API under uvicorn
"""
import logging
import sys
import uvicorn
from config import DEFAULT_HOST, DEFAULT_PORT, DB_PATH, TABLE_SUFFIX, LOG_LEVEL

logger = logging.getLogger("run_server")


def main():
    logging.basicConfig(
        level=LOG_LEVEL,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s"
    )

    logger.info("Starting message board server on %s:%s", DEFAULT_HOST, DEFAULT_PORT)
    logger.info("Database: %s (table suffix %r)", DB_PATH, TABLE_SUFFIX)
    logger.info("API endpoints: /api/threads/{board} and /api/replies/{board}")

    try:
        from app import app

        uvicorn.run(
            app,
            host=DEFAULT_HOST,
            port=DEFAULT_PORT,
            reload=False,
            access_log=True,
            log_level=LOG_LEVEL.lower()
        )
    except KeyboardInterrupt:
        logger.info("Server stopped by user")
    except Exception:
        logger.exception("Error starting server")
        sys.exit(1)


if __name__ == "__main__":
    main()
