"""Protean Engine runner for the storefront domain.

Runs the workers that deliver domain events to event handlers when the
domain is configured with ``event_processing = "async"`` (the production
overlay). Order notifications are then sent from here instead of from
the request that placed or moved the order.

Usage:
    PROTEAN_ENV=production python src/server.py
    python src/server.py --test-mode      # drain pending events and exit
"""

import argparse

from protean.server.engine import Engine

from storefront.domain import logger, storefront


def run(test_mode: bool = False):
    storefront.init()
    engine = Engine(storefront, test_mode=test_mode)
    logger.info("Starting storefront engine", test_mode=test_mode)
    engine.run()


def main():
    parser = argparse.ArgumentParser(description="Storefront Engine runner")
    parser.add_argument(
        "--test-mode",
        action="store_true",
        help="Process the pending events once and exit",
    )
    args = parser.parse_args()

    run(args.test_mode)


if __name__ == "__main__":
    main()
