"""
Standings Extractor Service: Main Entry Point
=============================================
Starts the Flask-based standings parsing service.

Usage:
    python main.py                    # Default: 0.0.0.0:5000
    python main.py --port 8000        # Custom port
    python main.py --debug            # Debug mode
"""

import argparse
import logging

from standings_extractor.server import create_app

logging.basicConfig(
    level=logging.INFO,
    format="[%(asctime)s] %(levelname)-8s %(name)s: %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)
logger = logging.getLogger(__name__)


def main():
    parser = argparse.ArgumentParser(description="Standings Extractor Service")
    parser.add_argument("--host", default="0.0.0.0", help="Bind host")
    parser.add_argument("--port", type=int, default=5000, help="Bind port")
    parser.add_argument("--debug", action="store_true", help="Debug mode")
    parser.add_argument(
        "--ignore-case",
        action="store_true",
        help="Match class markers regardless of case by default",
    )
    args = parser.parse_args()

    app = create_app({"IGNORE_CASE_DEFAULT": args.ignore_case})

    logger.info(f"Starting server on {args.host}:{args.port}")
    app.run(host=args.host, port=args.port, debug=args.debug)


if __name__ == "__main__":
    main()
