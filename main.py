"""
Entry point for the WordPress to WordPress migration tool.
"""

import argparse
import sys

from wp_migrator.migration_tool import DEFAULT_CONFIG_FILE, WordPressMigrationTool
from wp_migrator.utils.errors import MigrationError


def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Migrate posts or pages between two WordPress sites.")
    parser.add_argument("--config", default=DEFAULT_CONFIG_FILE, help="Path to the JSON configuration file")
    parser.add_argument("--type", dest="content_type", choices=["posts", "pages"], default=None)
    parser.add_argument("--ids", default=None, help="Comma separated source ids to migrate (default: all)")
    parser.add_argument("--skip-images", action="store_true", default=None, help="Do not transfer featured images")
    parser.add_argument("--list-only", action="store_true", help="Only list the source content")
    return parser.parse_args(argv)


def _parse_ids(raw):
    if not raw:
        return None
    try:
        return [int(part) for part in raw.split(",") if part.strip()]
    except ValueError:
        raise ValueError(f"--ids must be a comma separated list of numeric ids, got {raw!r}") from None


def main(argv=None) -> int:
    """
    Main function to run the WordPress to WordPress migration tool.
    """
    args = parse_args(argv)
    try:
        tool = WordPressMigrationTool(config_file=args.config)
        item_ids = _parse_ids(args.ids)
    except ValueError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        return 1

    # CLI flags override the file; connect() reads them afterwards
    if args.content_type:
        tool.config["migration"]["content_type"] = args.content_type
    if args.skip_images:
        tool.config["migration"]["skip_image_transfer"] = True
    tool.log_message("Starting WordPress content migration.")

    try:
        tool.connect()
        items = tool.fetch_items(
            lambda loaded, total: tool.log_message(f"Fetching {tool.content_type}... ({loaded}/{total})")
        )
    except (MigrationError, ValueError) as e:
        tool.log_message(str(e), level="ERROR")
        return 1

    if args.list_only:
        for item in items:
            print(f"{item.id}\t{item.status}\t{item.plain_title}")
        return 0

    if not items:
        tool.log_message(f"No {tool.content_type} found on the source site.", level="WARNING")
        return 0

    result = tool.migrate(item_ids)
    for item_id in result.item_ids:
        status = result.statuses[item_id]
        line = f"{item_id}: {status.state.value}"
        if status.message:
            line += f" - {status.message}"
        print(line)
    return 2 if result.failed else 0


if __name__ == "__main__":
    sys.exit(main())
