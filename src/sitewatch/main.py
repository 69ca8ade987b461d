"""Console entry point for sitewatch."""

import sys

from .utils.logging import get_structured_logger

logger = get_structured_logger(__name__)


def main_cli() -> None:
    """Run the ``sitewatch`` command group."""
    try:
        from .cli.main import cli

        cli()
    except KeyboardInterrupt:
        print("\n❌ Operation cancelled by user", file=sys.stderr)
        sys.exit(1)
    except Exception as e:
        # Expected failures already exit inside the commands
        logger.exception("Unhandled error", error=str(e))
        print(f"❌ Error: {str(e)}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main_cli()
