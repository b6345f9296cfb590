#!/usr/bin/env python3
"""Entry point for sony2mqtt."""

import argparse
import logging
import sys

from sony_av.config import device_config

from . import __version__
from .bridge import SonyMQTTBridge
from .config import load_bridge_config, validate_bridge_config


def setup_logging(level: str = "INFO"):
    """Set up logging configuration."""
    log_level = getattr(logging, level.upper(), logging.INFO)

    logging.basicConfig(
        level=log_level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=[logging.StreamHandler(sys.stdout)],
    )

    # Reduce noise from paho-mqtt
    logging.getLogger("paho").setLevel(logging.WARNING)


def main(argv=None):
    """Main entry point."""
    parser = argparse.ArgumentParser(
        prog="sony2mqtt",
        description="MQTT bridge for PlayStation 5 and Sony Bravia TV control",
    )
    parser.add_argument(
        "-c", "--config",
        help="Path to config file (default: config.yaml)",
    )
    parser.add_argument(
        "-v", "--version",
        action="version",
        version=f"sony2mqtt {__version__}",
    )
    parser.add_argument(
        "--debug",
        action="store_true",
        help="Enable debug logging",
    )
    parser.add_argument(
        "--validate",
        action="store_true",
        help="Validate config and exit",
    )

    args = parser.parse_args(argv)

    try:
        config = load_bridge_config(args.config)
    except Exception as e:
        print(f"Error loading config: {e}", file=sys.stderr)
        return 1

    log_level = "DEBUG" if args.debug else config.get("options", {}).get("log_level", "INFO")
    setup_logging(log_level)

    logger = logging.getLogger(__name__)
    logger.info("Loaded config from: %s", config.get("_loaded_from") or "defaults")

    errors = validate_bridge_config(config)
    if errors:
        for error in errors:
            logger.error("Config error: %s", error)
        if args.validate:
            print("Configuration is INVALID")
        return 1

    if args.validate:
        print("Configuration is valid")
        print(f"  MQTT Broker: {config['mqtt']['host']}:{config['mqtt']['port']}")
        for device_id, raw in config["devices"].items():
            device = device_config(raw)
            print(f"  {device_id}: {device['type']} at {device['host']}"
                  f" (refresh {device['refresh_interval']}s)")
        return 0

    logger.info("sony2mqtt v%s starting...", __version__)

    bridge = SonyMQTTBridge(config)

    try:
        bridge.run_forever()
    except Exception as e:
        logger.exception("Fatal error: %s", e)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
