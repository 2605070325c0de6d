#!/usr/bin/env python
"""
Start the chainlit front end for the five advisory forms.
"""

import argparse
import logging
import os
import subprocess
import sys

sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)


def main():
    parser = argparse.ArgumentParser(
        description="Start the Agro Helper chainlit UI",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
    python run_chainlit.py
    python run_chainlit.py --port 8080
    python run_chainlit.py --backend-url http://localhost:3001
        """
    )
    parser.add_argument('--host', type=str, default='localhost', help='bind address (default: localhost)')
    parser.add_argument('--port', type=int, default=8000, help='port (default: 8000)')
    parser.add_argument('--watch', dest='watch', action='store_true', default=True, help='reload on change (default)')
    parser.add_argument('--no-watch', dest='watch', action='store_false', help='disable reload')
    parser.add_argument('--headless', action='store_true', help='do not open a browser')
    parser.add_argument('--backend-url', type=str, default=None, help='advisory backend URL (BACKEND_URL)')
    args = parser.parse_args()

    if args.backend_url:
        os.environ['BACKEND_URL'] = args.backend_url

    cmd = ['chainlit', 'run', 'chainlit_app.py', '--host', args.host, '--port', str(args.port)]
    if args.watch:
        cmd.append('--watch')
    if args.headless:
        cmd.append('--headless')

    logger.info(f"UI: http://{args.host if args.host != '0.0.0.0' else 'localhost'}:{args.port}")
    try:
        subprocess.run(cmd, check=True)
    except KeyboardInterrupt:
        logger.info("UI stopped")
    except subprocess.CalledProcessError as e:
        logger.error(f"UI failed to start: {e}")
        sys.exit(1)
    except FileNotFoundError:
        logger.error("chainlit is not installed: pip install chainlit")
        sys.exit(1)


if __name__ == '__main__':
    main()
