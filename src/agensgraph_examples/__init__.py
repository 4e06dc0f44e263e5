import argparse
import logging
import sys
from typing import Dict, List, Optional, Type

import psycopg  # type: ignore

from .exceptions import GraphAppError
from .following import FollowingApp
from .gods import GodsApp
from .graph_app import GraphApp
from .social import SocialApp

logger = logging.getLogger("agensgraph_examples")
logger.setLevel(logging.INFO)

EXAMPLES: Dict[str, Type[GraphApp]] = {
    "following": FollowingApp,
    "gods": GodsApp,
    "social": SocialApp,
}


def build_parser(example: Optional[str] = None) -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="AgensGraph example: create schema and data, then read, update and delete"
    )
    if example is None:
        parser.add_argument("example", choices=sorted(EXAMPLES), help="Example to run")
    parser.add_argument("properties", help="Path to the connection properties file")
    parser.add_argument(
        "action",
        nargs="?",
        choices=["drop"],
        type=str.lower,
        help="Drop the graph instead of running the example",
    )
    parser.add_argument("--verbose", action="store_true", help="Log every statement")
    return parser


def main(argv: Optional[List[str]] = None, example: Optional[str] = None) -> int:
    """Main entry point for the package."""
    args = build_parser(example).parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s - %(message)s",
    )
    if args.verbose:
        logger.setLevel(logging.DEBUG)

    app_class = EXAMPLES[example or args.example]
    try:
        app = app_class.from_properties(args.properties)
        if args.action == "drop":
            app.drop()
        else:
            app.run()
    except (FileNotFoundError, ValueError, GraphAppError, psycopg.Error) as e:
        logger.error(str(e))
        return 1
    return 0


def following() -> None:
    sys.exit(main(example="following"))


def gods() -> None:
    sys.exit(main(example="gods"))


def social() -> None:
    sys.exit(main(example="social"))


def run() -> None:
    sys.exit(main())


__all__ = ["main", "EXAMPLES", "GraphApp", "FollowingApp", "GodsApp", "SocialApp"]
