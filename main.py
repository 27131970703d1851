"""
Entry point for the WordPress to Strapi migration tool.
"""

import argparse
import logging
import os
import sys

from wp2strapi.migration_tool import StrapiMigrationTool
from wp2strapi.utils.errors import ConfigError, MigrationError
from wp2strapi.utils.pre_flight_checks import check_destination_reachable, validate_config

CONFIG_FILE = "config/migration_config.json"
LOG_FILE = "reports/migration/migration.log"

logger = logging.getLogger("wp2strapi")


def setup_logging(verbose=False):
    os.makedirs(os.path.dirname(LOG_FILE), exist_ok=True)
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="[%(levelname)s] %(message)s",
        handlers=[logging.StreamHandler(sys.stderr), logging.FileHandler(LOG_FILE, encoding="utf-8")],
        force=True,
    )


def parse_args(argv=None):
    parser = argparse.ArgumentParser(description="Migrate WordPress posts into a Strapi collection.")
    parser.add_argument("--config", default=CONFIG_FILE, help="Path to the JSON configuration file.")
    parser.add_argument("--dry-run", action="store_true", help="Convert posts without uploading anything.")
    parser.add_argument("--limit", type=int, default=None, help="Only migrate the first N posts.")
    parser.add_argument(
        "--skip-preflight",
        action="store_true",
        help="Do not check that the Strapi posts endpoint is reachable before starting.",
    )
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging.")
    return parser.parse_args(argv)


def main(argv=None):
    """
    Run the WordPress to Strapi migration.  Returns the process exit code.
    """
    args = parse_args(argv)
    setup_logging(args.verbose)

    try:
        tool = StrapiMigrationTool(config_file=args.config)
        if args.dry_run:
            tool.config["migration"]["dry_run"] = True
        if args.limit is not None:
            tool.config["migration"]["limit"] = args.limit

        validate_config(tool.config, require_source=True)
        if not args.skip_preflight and not tool.config["migration"]["dry_run"]:
            check_destination_reachable(tool.config)
        summary = tool.run()
    except ConfigError as e:
        logger.error("Configuration error: %s", e)
        return 2
    except MigrationError as e:
        logger.error("Migration aborted: %s", e)
        return 1

    return 1 if summary.posts_failed else 0


if __name__ == "__main__":
    sys.exit(main())
