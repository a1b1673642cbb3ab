"""Command line entry point for qiita-sync.

Commands:
    publish  Create or update Qiita items for Markdown articles.
    check    Report duplicate, malformed or ambiguous mapping lines.
    resolve  Show the mapping classification for one article path.
"""

import argparse
import json
import logging
import sys
from pathlib import Path

import pydantic
import yaml
from dotenv import load_dotenv

from . import __version__
from .config import Config, load_config
from .config_loader import load_hierarchical_config
from .config_schema import (
    LoggingConfig,
    UnifiedConfig,
    build_config,
    to_yaml_fallbacks,
)
from .errors import QiitaSyncError
from .logger import setup_logging
from .sync.models import MatchStrategy
from .sync.publisher import Publisher
from .sync.reporter import (
    diagnostics_to_json,
    format_classification,
    format_diagnostics,
    format_publish_result,
)
from .sync.resolver import IdentityResolver
from .sync.store import MappingStore

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_FAILURE = 1
EXIT_CONFIG_ERROR = 2


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="qiita-sync",
        description="Publish Markdown articles to Qiita and track their item ids",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Publish a new article
  qiita-sync publish --mode create articles/foo.md

  # Update articles, failing if one was never published
  qiita-sync publish --mode update --strict articles/foo.md articles/bar.md

  # Check the mapping file for duplicate or malformed entries
  qiita-sync check --mapping-file mapping.txt

Settings can also come from QIITA_ACCESS_TOKEN, MAPPING_FILEPATH, STRICT
environment variables, a .env file, or .qiita_sync/config.yml.
        """,
    )
    parser.add_argument(
        "--debug", action="store_true", help="Enable debug logging"
    )
    parser.add_argument(
        "--log-file", help="Also append log records to this file"
    )
    parser.add_argument(
        "--log-format",
        choices=("text", "json"),
        default="text",
        help="Log record format (default: text)",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"qiita-sync version {__version__}",
    )

    mapping_parent = argparse.ArgumentParser(add_help=False)
    mapping_parent.add_argument(
        "--mapping-file",
        help="Mapping file path (takes precedence over MAPPING_FILEPATH)",
    )
    mapping_parent.add_argument(
        "--match-strategy",
        choices=[s.value for s in MatchStrategy],
        help="How mapping lines are matched against paths (default: prefix)",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    publish = subparsers.add_parser(
        "publish",
        parents=[mapping_parent],
        help="Create or update Qiita items",
    )
    publish.add_argument("files", nargs="+", help="Markdown article files")
    publish.add_argument(
        "--mode",
        required=True,
        help="Requested operation: create or update",
    )
    strict_group = publish.add_mutually_exclusive_group()
    strict_group.add_argument(
        "--strict",
        dest="strict",
        action="store_true",
        default=None,
        help="Fail updates of articles missing from the mapping file",
    )
    strict_group.add_argument(
        "--no-strict",
        dest="strict",
        action="store_false",
        help="Create articles missing from the mapping file on update",
    )
    publish.add_argument(
        "--article-root",
        help="Directory mapping paths are relative to (default: current directory)",
    )
    publish.add_argument(
        "--token",
        help="Qiita access token (visible in process list -- prefer QIITA_ACCESS_TOKEN)",
    )

    check = subparsers.add_parser(
        "check",
        parents=[mapping_parent],
        help="Report problems in the mapping file",
    )
    check.add_argument(
        "--json", action="store_true", help="Print the report as JSON"
    )

    resolve = subparsers.add_parser(
        "resolve",
        parents=[mapping_parent],
        help="Show the mapping classification for an article path",
    )
    resolve.add_argument("path", help="Article path as stored in the mapping file")

    return parser


def _load(args: argparse.Namespace, unified: UnifiedConfig) -> Config:
    """Build the runtime Config from CLI args, env and config files."""
    return load_config(
        access_token=getattr(args, "token", None),
        mapping_filepath=args.mapping_file,
        strict=getattr(args, "strict", None),
        match_strategy=args.match_strategy,
        article_root=getattr(args, "article_root", None),
        debug=args.debug,
        yaml_fallbacks=to_yaml_fallbacks(unified),
        require_token=args.command == "publish",
    )


def cmd_publish(args: argparse.Namespace, config: Config) -> int:
    publisher = Publisher(config)
    try:
        for file_path in args.files:
            try:
                result = publisher.publish_file(Path(file_path), args.mode)
            except OSError as e:
                logger.error("Cannot read article %s: %s", file_path, e)
                return EXIT_FAILURE
            print(format_publish_result(result))
    finally:
        publisher.client.close()
    return EXIT_OK


def cmd_check(args: argparse.Namespace, config: Config) -> int:
    store = MappingStore(Path(config.mapping_filepath))
    diagnostics = store.diagnose(MatchStrategy(config.match_strategy))
    if args.json:
        print(json.dumps(diagnostics_to_json(diagnostics), indent=2))
    else:
        print(format_diagnostics(diagnostics))
    return EXIT_OK if diagnostics.ok else EXIT_FAILURE


def cmd_resolve(args: argparse.Namespace, config: Config) -> int:
    store = MappingStore(Path(config.mapping_filepath))
    resolver = IdentityResolver(store, MatchStrategy(config.match_strategy))
    print(format_classification(args.path, resolver.resolve(args.path)))
    return EXIT_OK


_COMMANDS = {
    "publish": cmd_publish,
    "check": cmd_check,
    "resolve": cmd_resolve,
}


def main(argv: list[str] | None = None) -> int:
    """Parse *argv*, run the command, and return the exit status."""
    args = build_parser().parse_args(argv)

    load_dotenv()

    unified: UnifiedConfig | None = None
    config: Config | None = None
    config_error: Exception | None = None
    try:
        unified = build_config(load_hierarchical_config())
        config = _load(args, unified)
    except (
        OSError,
        ValueError,
        yaml.YAMLError,
        pydantic.ValidationError,
    ) as e:
        config_error = e

    # Uses the merged config when available; runs even if loading failed.
    logging_section = (
        unified.logging if unified is not None else LoggingConfig()
    )
    try:
        setup_logging(
            debug=config.debug if config is not None else args.debug,
            log_file=args.log_file or logging_section.file,
            debug_format=args.log_format,
            level=logging_section.level,
        )
    except OSError as e:
        print(f"Cannot open log file: {e}", file=sys.stderr)
        return EXIT_CONFIG_ERROR

    if config_error is not None:
        logger.error("Configuration error: %s", config_error)
        return EXIT_CONFIG_ERROR

    try:
        return _COMMANDS[args.command](args, config)
    except QiitaSyncError as e:
        logger.error("%s", e)
        return EXIT_FAILURE


def run() -> None:
    """Console script entry point."""
    try:
        sys.exit(main())
    except KeyboardInterrupt:
        print("\nInterrupted.", file=sys.stderr)
        sys.exit(130)


if __name__ == "__main__":
    run()
