#!/usr/bin/env python3
"""
CloudResolve - CLI Interface

Resolve domains through a pool of nameservers and flag addresses that
belong to cloud providers.
"""

import argparse
import sys
from pathlib import Path
from typing import List, Optional

from colorama import init as colorama_init

from . import __version__
from .core.config import Config
from .core.errors import CloudResolveError, ConfigurationError
from .core.inputs import read_list, read_nameservers
from .core.logger import setup_logger
from .core.models import BatchItem, LookupState
from .feeds.loader import FeedLoader
from .orchestrator import BatchOrchestrator
from .reporters import ConsoleReporter, JSONReporter
from .resolver import Resolver


def create_parser() -> argparse.ArgumentParser:
    """Create argument parser."""
    parser = argparse.ArgumentParser(
        prog="cloudresolve",
        description="Resolve domains and attribute their addresses to cloud providers",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Resolve domains using the nameservers in nameservers.txt
  cloudresolve -df domains.txt

  # Refresh provider ranges first and write a JSON report
  cloudresolve -df domains.txt -nf resolvers.txt --update -o results.json

  # Only refresh the provider range cache
  cloudresolve --update
        """
    )

    input_group = parser.add_argument_group("Input Options")
    input_group.add_argument(
        "-df", "--domains-file",
        dest="domains_file",
        metavar="FILE",
        help="File containing domains to look up (one per line)",
    )
    input_group.add_argument(
        "-nf", "--nameservers-file",
        dest="nameservers_file",
        default="nameservers.txt",
        metavar="FILE",
        help="File containing nameservers to use (default: nameservers.txt)",
    )

    output_group = parser.add_argument_group("Output Options")
    output_group.add_argument(
        "-o", "--output",
        dest="output_file",
        metavar="FILE",
        help="Write results to a JSON file",
    )

    config_group = parser.add_argument_group("Configuration")
    config_group.add_argument(
        "-c", "--config",
        dest="config_file",
        metavar="FILE",
        help="Path to config.yaml file",
    )
    config_group.add_argument(
        "--env",
        dest="env_file",
        metavar="FILE",
        help="Path to .env.local file",
    )
    config_group.add_argument(
        "--update",
        action="store_true",
        help="Download fresh cloud provider IP ranges",
    )

    exec_group = parser.add_argument_group("Execution Options")
    exec_group.add_argument(
        "-w", "--workers",
        type=int,
        metavar="N",
        help="Maximum concurrent lookups (default: from config, 50)",
    )
    exec_group.add_argument(
        "-t", "--timeout",
        type=float,
        metavar="SECONDS",
        help="Per-domain DNS timeout (default: from config, 10)",
    )

    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Enable verbose output",
    )
    parser.add_argument(
        "-q", "--quiet",
        action="store_true",
        help="Suppress the summary",
    )
    parser.add_argument(
        "--no-color",
        action="store_true",
        help="Disable colored output",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"CloudResolve v{__version__}",
    )

    return parser


def load_classifier(loader: FeedLoader, update: bool, logger):
    """Load provider ranges, falling back to the cache if a refresh fails."""
    try:
        return loader.load(update=update)
    except ConfigurationError as e:
        if update and loader.cache_file.exists():
            logger.warning(f"Could not refresh provider ranges ({e}); using cached {loader.cache_file}")
            return loader.load(update=False)
        raise


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point. Returns the process exit code."""
    parser = create_parser()
    args = parser.parse_args(argv)

    if not args.domains_file and not args.update:
        parser.error("Please specify a domains file (-df) or --update")

    orchestrator = None

    try:
        config = Config(config_path=args.config_file, env_path=args.env_file)

        if args.verbose:
            config.set("logging.level", "DEBUG")
        if args.workers is not None:
            config.set("concurrency.max_workers", args.workers)
        if args.timeout is not None:
            config.set("resolver.timeout", args.timeout)

        log_file = config.log_file
        logger = setup_logger(
            level=config.get("logging.level", "INFO"),
            log_format=config.get("logging.format", "json"),
            log_file=str(log_file) if log_file else None,
        )

        classifier = load_classifier(FeedLoader.from_config(config), args.update, logger)

        if not args.domains_file:
            return 0

        nameservers = read_nameservers(args.nameservers_file)
        domains = read_list(args.domains_file)
        logger.info(f"Loaded {len(domains)} domains and {len(nameservers)} nameservers")

        resolver = Resolver(
            timeout=config.resolver_timeout,
            port=config.resolver_port,
            record_types=config.record_types,
        )
        orchestrator = BatchOrchestrator(classifier, resolver=resolver, max_workers=config.max_workers)
        console = ConsoleReporter(use_colors=not args.no_color)

        items: List[BatchItem] = []
        for item in orchestrator.run(domains, nameservers):
            console.emit(item)
            items.append(item)

        if args.output_file:
            JSONReporter(config, output_dir=Path.cwd()).generate(
                items, filename=str(Path(args.output_file).resolve())
            )

        if not args.quiet:
            console.print_summary(BatchOrchestrator.summarize(items))

        if any(item.lookup.state != LookupState.RESOLVED for item in items):
            return 1
        return 0

    except CloudResolveError as e:
        print(f" Error: {e}", file=sys.stderr)
        return 1
    except KeyboardInterrupt:
        if orchestrator is not None:
            orchestrator.cancel()
        print("\n\n Interrupted by user", file=sys.stderr)
        return 130


def run() -> None:
    colorama_init()
    sys.exit(main())


if __name__ == "__main__":
    run()
