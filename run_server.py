#!/usr/bin/env python
"""
Start the advisory backend (FastAPI + uvicorn).
Exits with status 1 when the generation service API key is missing.
"""

import argparse
import logging
import os
import sys

import uvicorn

sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

from agro_helper.api.server import create_app
from agro_helper.infra.config import MissingApiKeyError, get_config

logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)


def main():
    cfg = get_config()
    parser = argparse.ArgumentParser(
        description="Start the Agro Helper advisory backend",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
    python run_server.py                    # default port from PORT (3001)
    python run_server.py --port 8080
    python run_server.py --reload           # auto reload for development
        """
    )
    parser.add_argument('--host', type=str, default='0.0.0.0', help='bind address (default: 0.0.0.0)')
    parser.add_argument('--port', type=int, default=cfg.port, help=f'port (default: {cfg.port})')
    parser.add_argument('--reload', action='store_true', help='enable auto reload')
    parser.add_argument('--log-path', type=str, default=None, help='write logs to a rotating file')
    args = parser.parse_args()

    if args.log_path:
        os.environ['LOG_PATH'] = args.log_path
        get_config.cache_clear()

    try:
        app = create_app()
    except MissingApiKeyError as exc:
        logger.critical("Cannot start: %s", exc)
        sys.exit(1)

    host = args.host if args.host != '0.0.0.0' else 'localhost'
    logger.info(f"Server listening on http://{host}:{args.port}")
    if args.reload:
        uvicorn.run(
            "agro_helper.api.server:create_app",
            factory=True,
            host=args.host,
            port=args.port,
            reload=True,
            log_level="info",
        )
    else:
        uvicorn.run(app, host=args.host, port=args.port, log_level="info")


if __name__ == '__main__':
    main()
