"""Application entry point."""

import argparse
import logging
import shutil
import sys

from .app.app_config import AppConfig, build_engine
from .app.engine import Engine
from .common.app import app_dirs
from .common.context import background
from .common.errors import MetasearchError
from .common.pydantic import Request

logger = logging.getLogger(__name__)


def reset_all() -> None:
    """Delete the app data directory."""
    if app_dirs.app_data_dir.exists():
        shutil.rmtree(app_dirs.app_data_dir)
        print(f"App data directory deleted: {app_dirs.app_data_dir}")
    else:
        print(f"App data directory does not exist: {app_dirs.app_data_dir}")


def run_query(engine: Engine, args: argparse.Namespace) -> int:
    """Print up to ``args.limit`` merged results and the continuation token."""
    ctx = background()
    if args.token:
        try:
            token = bytes.fromhex(args.token)
        except ValueError as e:
            print(f"error: invalid token: {e}", file=sys.stderr)
            return 1
        it = engine.continue_search(token, ctx)
    else:
        request = Request(
            query=" ".join(args.query),
            language=args.lang,
            region=args.region,
            safe_search=args.safe_search,
        )
        it = engine.search(request, ctx)

    with it:
        count = 0
        while count < args.limit and it.next(ctx):
            r = it.result()
            if r is not None:
                print(f'{r.url} - "{r.title}" ({type(r).__name__})\n')
            count += 1
        if it.err is not None:
            print(f"error: {it.err}", file=sys.stderr)
            return 1
        token, err = it.checkpoint()
        if err is not None:
            print(f"error: {err}", file=sys.stderr)
            return 1
        if token is not None:
            print("\n\ntoken:", token.hex())
    return 0


def run_complete(engine: Engine, args: argparse.Namespace) -> int:
    """Print merged autocomplete suggestions."""
    suggestions, err = engine.autocomplete(" ".join(args.query), background())
    if err is not None:
        print(f"error: {err}", file=sys.stderr)
        return 1
    for s in suggestions:
        print(s)
    return 0


def build_parser() -> argparse.ArgumentParser:
    """Command line parser."""
    parser = argparse.ArgumentParser(prog="metasearch", description="Metasearch - query several search engines at once")
    parser.add_argument("--temp", action="store_true", help="Run in temporary mode")
    parser.add_argument("--reset", action="store_true", help="Delete all app data")
    parser.add_argument("-v", "--verbose", action="store_true", help="Verbose logging")
    commands = parser.add_subparsers(dest="command")

    query = commands.add_parser("query", aliases=["qu", "q"], help="Run a search query")
    query.add_argument("query", nargs="*", help="Search query")
    query.add_argument("-n", "--limit", type=int, default=10, help="Limit the number of results")
    query.add_argument("--lang", default=None, help="Language code, e.g. en or de-DE")
    query.add_argument("--region", default=None, help="Region code, e.g. US")
    query.add_argument("--safe-search", action=argparse.BooleanOptionalAction, default=None, help="Safe search")
    query.add_argument("--token", default=None, help="Hex token printed by a previous query")
    query.set_defaults(func=run_query)

    complete = commands.add_parser("complete", aliases=["ac"], help="Autocomplete a search query")
    complete.add_argument("query", nargs="*", help="Text to complete")
    complete.set_defaults(func=run_complete)
    return parser


def main(argv: list[str] | None = None) -> int:
    """Main entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    if args.reset:
        reset_all()
        return 0

    if args.temp:
        app_dirs.use_temp_app_data_dir()

    if args.command is None:
        parser.print_help()
        return 1

    try:
        config = AppConfig.load(app_dirs.app_config_path)
        if not app_dirs.app_config_path.exists():
            config.save(app_dirs.app_config_path)
        engine = build_engine(config)
    except (OSError, ValueError, MetasearchError) as e:
        print(f"error: {e}", file=sys.stderr)
        return 1

    logger.debug("Providers: %s", [p.provider_id for p in engine.registry.providers])
    with engine:
        return args.func(engine, args)


if __name__ == "__main__":
    sys.exit(main())
