#!/usr/bin/env python3
"""
Main entry point for the site mirroring crawler.
"""

import asyncio
import argparse
import logging
import signal
import sys
from typing import Optional, Sequence

from sitemirror import __version__
from sitemirror.crawler.errors import CrawlError
from sitemirror.crawler.host_policy import HOST_POLICIES
from sitemirror.crawler.scheduler import CrawlerScheduler
from sitemirror.utils.config import Config, load_config, parse_duration
from sitemirror.utils.logger import setup_logging


class CrawlerApp:
    """Main application class for the crawler."""

    def __init__(self):
        self.scheduler: Optional[CrawlerScheduler] = None
        self.logger = logging.getLogger(__name__)
        self._shutdown_event: Optional[asyncio.Event] = None

    def setup_signal_handlers(self):
        """Setup signal handlers for graceful shutdown."""
        loop = asyncio.get_running_loop()

        def signal_handler(signum, frame):
            self.logger.info(f"Received signal {signum}, initiating shutdown...")
            loop.call_soon_threadsafe(self._shutdown_event.set)

        signal.signal(signal.SIGINT, signal_handler)
        signal.signal(signal.SIGTERM, signal_handler)

    async def run(self, config: Config) -> int:
        """Run the crawler."""
        self._shutdown_event = asyncio.Event()
        setup_logging(config.logging)
        self.setup_signal_handlers()

        self.logger.info("=== CRAWLER STARTING ===")
        self.logger.info(f"Seed URLs: {config.crawler.seed_urls}")
        self.logger.info(f"Output root: {config.crawler.output_root}")
        self.logger.info(f"Wait between dispatches: {config.crawler.wait_between}s")
        self.logger.info(f"Host policy: {config.crawler.host_policy}")

        self.scheduler = CrawlerScheduler(config)
        try:
            # Startup errors end the process before anything is fetched
            try:
                await self.scheduler.initialize()
                await self.scheduler.add_seed_urls()
            except CrawlError as e:
                self.logger.error(f"Startup failed: {e}")
                return 1

            crawl_task = asyncio.create_task(self.scheduler.start_crawling())
            shutdown_task = asyncio.create_task(self._shutdown_event.wait())

            # Wait for either crawling to complete or shutdown signal
            done, pending = await asyncio.wait(
                [crawl_task, shutdown_task],
                return_when=asyncio.FIRST_COMPLETED
            )

            if shutdown_task in done:
                self.logger.info("Shutdown requested, stopping crawler...")
                await self.scheduler.stop_crawling()
                await crawl_task
            else:
                shutdown_task.cancel()
                crawl_task.result()

        finally:
            await self.scheduler.close()
            self.logger.info("=== CRAWLER FINISHED ===")

        return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="sitemirror",
        description="Mirror one or more hosts onto the local filesystem",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  sitemirror --url http://example.com/ --root ./mirror
  sitemirror --url http://a.example/,http://b.example/ --root ./mirror --wait 100ms
  sitemirror --config crawl.yaml
        """
    )

    parser.add_argument(
        '--url',
        help='initial url(s) to start at, comma separated'
    )
    parser.add_argument(
        '--root',
        help='folder to save'
    )
    parser.add_argument(
        '--wait',
        type=parse_duration,
        help='duration to wait between requests (default: 20ms)'
    )
    parser.add_argument(
        '--config',
        help='YAML configuration file; command-line flags take precedence'
    )
    parser.add_argument(
        '--host-policy',
        choices=HOST_POLICIES,
        help='seeds: allow the seed hosts (default); '
             'first-response: lock onto the host of the first successful response'
    )
    parser.add_argument(
        '--queue-size',
        type=int,
        help='frontier capacity before enqueuing blocks (default: 100)'
    )
    parser.add_argument(
        '--log-level',
        choices=['DEBUG', 'INFO', 'WARNING', 'ERROR'],
        type=str.upper,
        help='log level (default: INFO)'
    )
    parser.add_argument(
        '--log-file',
        help='also write logs to this file'
    )
    parser.add_argument(
        '--metrics-port',
        type=int,
        help='serve Prometheus metrics on this port'
    )
    parser.add_argument(
        '--version',
        action='version',
        version=f'sitemirror {__version__}'
    )
    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Main entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.config and (not args.url or not args.root):
        parser.print_usage(sys.stderr)
        print("error: --url and --root are required", file=sys.stderr)
        return 1

    overrides = {
        'seed_urls': args.url,
        'output_root': args.root,
        'wait_between': args.wait,
        'host_policy': args.host_policy,
        'queue_capacity': args.queue_size,
        'log_level': args.log_level,
        'log_file': args.log_file,
        'prometheus_port': args.metrics_port,
    }

    try:
        config = load_config(args.config, overrides)
    except (OSError, ValueError) as e:
        parser.print_usage(sys.stderr)
        print(f"error: {e}", file=sys.stderr)
        return 1

    app = CrawlerApp()
    try:
        return asyncio.run(app.run(config))
    except KeyboardInterrupt:
        print("\nInterrupted by user")
        return 1
    except Exception as e:
        print(f"Fatal error: {e}")
        return 1


if __name__ == '__main__':
    sys.exit(main())
