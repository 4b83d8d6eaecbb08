from __future__ import annotations
import logging
import sys
from asset_pipeline.infrastructure.config import get_settings
from asset_pipeline.interface import cli


def _configure_logging() -> None:
    settings = get_settings()
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s  %(levelname)-8s  %(name)s  %(message)s",
    )


def main() -> None:
    """Run ``asset-build`` and exit with its status."""
    _configure_logging()
    sys.exit(cli.main())


def clean() -> None:
    """Run ``asset-clean`` and exit with its status."""
    _configure_logging()
    sys.exit(cli.clean())


if __name__ == "__main__":
    main()
