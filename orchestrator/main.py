"""Command line entry point for the front desk board."""
from __future__ import annotations

import argparse
import json
import logging
import os
import sys
from pathlib import Path
from typing import List, Optional

if __package__ is None or __package__ == "":  # pragma: no cover - runtime safety for script execution
    sys.path.append(str(Path(__file__).resolve().parent.parent))

from connector import BoardAPIClient, InMemoryBoardBackend
from connector.board_client import DEFAULT_BASE_URL
from scheduling import FrontDeskBoard
from scheduling.sync import BoardBackend

logger = logging.getLogger(__name__)


def _setup_logging(level_name: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level_name.upper(), logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )


def build_backend(kind: str, base_url: str) -> BoardBackend:
    if kind == "memory":
        return InMemoryBoardBackend()
    return BoardAPIClient(base_url=base_url)


def build_board(kind: str, base_url: str) -> FrontDeskBoard:
    board = FrontDeskBoard(build_backend(kind, base_url))
    online = board.start()
    logger.info("Front desk board started (%s)", "online" if online else "offline")
    return board


def run_server(board: FrontDeskBoard, host: str, port: int) -> None:
    from ui.dashboard import create_app

    create_app(board).run(host=host, port=port, debug=False)


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Clinic front desk scheduling board")
    parser.add_argument(
        "command",
        nargs="?",
        choices=("serve", "snapshot", "probe"),
        default="serve",
        help="Command to execute",
    )
    parser.add_argument(
        "--backend",
        choices=("http", "memory"),
        default="http",
        help="Remote store to use; 'memory' runs against an in-process simulator",
    )
    parser.add_argument("--base-url", default=DEFAULT_BASE_URL, help="Board API base URL")
    parser.add_argument("--host", default="0.0.0.0")
    parser.add_argument("--port", type=int, default=int(os.environ.get("PORT", "5000")))
    parser.add_argument(
        "--log-level",
        default=os.environ.get("FRONTDESK_LOG_LEVEL", "INFO"),
        help="Logging level name",
    )
    return parser.parse_args(argv)


def main(argv: Optional[List[str]] = None) -> int:
    args = parse_args(argv)
    _setup_logging(args.log_level)

    board = build_board(args.backend, args.base_url)
    if args.command == "probe":
        print(json.dumps({"online": board.online}))
        return 0 if board.online else 1
    if args.command == "snapshot":
        print(json.dumps(board.snapshot(), indent=2))
        return 0

    run_server(board, args.host, args.port)
    return 0


if __name__ == "__main__":
    sys.exit(main())
