"""Run the admin API with uvicorn: ``python -m onboard_admin [--seed]``."""

from __future__ import annotations

import argparse
import logging

import uvicorn

from onboard_admin.db.base import get_engine
from onboard_admin.db.migrations_runner import apply_migrations
from onboard_admin.logic.seed import seed_questions
from onboard_admin.main import create_app

logger = logging.getLogger(__name__)


def _parse_args(argv=None) -> argparse.Namespace:  # type: ignore[no-untyped-def]
    parser = argparse.ArgumentParser(prog="onboard-admin", description="Onboarding admin API")
    parser.add_argument("--host", default="127.0.0.1")
    parser.add_argument("--port", type=int, default=8000)
    parser.add_argument("--seed", action="store_true", help="replace stored questions with the starter set")
    return parser.parse_args(argv)


def main(argv=None) -> None:  # type: ignore[no-untyped-def]
    args = _parse_args(argv)
    app = create_app()
    if args.seed:
        apply_migrations(get_engine())
        seed_questions(replace=True)
    logger.info("server.start host=%s port=%s", args.host, args.port)
    uvicorn.run(app, host=args.host, port=args.port, log_config=None)


if __name__ == "__main__":
    main()
