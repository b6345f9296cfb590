#!/usr/bin/env python3
"""Command-line interface for PS5 and Bravia TV control."""

import argparse
import json
import logging
import sys
from typing import Any, Dict, Optional

from .bravia import BraviaHandler
from .bravia_api import CHANNEL_TARGETS, INPUT_URIS, BraviaClient
from .channels import GROUP_SEPARATOR, CHANNEL_GROUP_VIDEO, DeviceStatus
from .config import (
    DEVICE_TYPE_PS5,
    DEVICE_TYPE_TV,
    BRAVIA_REQUEST_TIMEOUT,
    device_config,
    find_device,
    get_device_by_id,
    load_config,
    validate_device_config,
)
from .ddp import send_wakeup
from .exceptions import SonyAVError
from .playstation import PlayStationHandler

# Short setting names accepted by "tv set", e.g. "brightness" -> "video#brightness"
SETTING_CHANNELS = {
    channel.split(GROUP_SEPARATOR, 1)[1]: channel
    for channel in CHANNEL_TARGETS
    if channel.startswith(CHANNEL_GROUP_VIDEO + GROUP_SEPARATOR)
}


class ManualScheduler:
    """Scheduler stand-in for one-shot use: ticks are run by the caller."""

    def __init__(self, task, interval, name=None):
        self.task = task
        self.interval = interval
        self.name = name

    def start(self, initial_delay: float = 0.0) -> None:
        pass

    def cancel(self, wait: bool = False, timeout: Optional[float] = None) -> None:
        pass


def get_device(args, device_type: str) -> Dict[str, Any]:
    """Build the device config from the config file and CLI overrides.

    Raises:
        ValueError: If no usable device is configured
    """
    config = load_config(args.config)

    if args.device:
        device = get_device_by_id(config, args.device)
        if device is None:
            raise ValueError(f"Device '{args.device}' not found. Use 'sonyav config show' to list devices.")
        if device.get("type") != device_type:
            raise ValueError(f"Device '{args.device}' is a {device.get('type')}, not a {device_type}")
    else:
        device = find_device(config, device_type) or device_config({"type": device_type})

    if args.host:
        device["host"] = args.host
    secret = getattr(args, "credential", None) if device_type == DEVICE_TYPE_PS5 else getattr(args, "psk", None)
    if secret:
        device["credential" if device_type == DEVICE_TYPE_PS5 else "psk"] = secret

    errors = validate_device_config(args.device or device_type, device)
    if errors:
        raise ValueError("; ".join(errors))
    return device


def _print_states(name: str, status: DeviceStatus, states: Dict[str, Any], as_json: bool) -> None:
    if as_json:
        print(json.dumps({"status": status.status.value, "reason": status.reason, "channels": states}, indent=2))
        return
    print(f"{name}: {status}")
    for channel, value in sorted(states.items()):
        if isinstance(value, bool):
            value = "ON" if value else "OFF"
        elif value is None:
            value = "-"
        print(f"  {channel:<32} {value}")


def cmd_ps5_status(args):
    """Query PS5 power and running app."""
    device = get_device(args, DEVICE_TYPE_PS5)
    handler = PlayStationHandler(device, scheduler_factory=ManualScheduler)
    handler.initialize()
    handler.refresh()
    _print_states("PS5", handler.status, handler.states, args.json)
    handler.dispose()
    return 0 if handler.status.is_online else 1


def cmd_ps5_wake(args):
    """Wake the PS5 from rest mode."""
    device = get_device(args, DEVICE_TYPE_PS5)
    send_wakeup(device["host"], device["credential"])
    print("Wake command sent")
    return 0


def create_tv_client(args) -> BraviaClient:
    device = get_device(args, DEVICE_TYPE_TV)
    return BraviaClient(
        device["host"], device["psk"], timeout=device.get("request_timeout", BRAVIA_REQUEST_TIMEOUT)
    )


def cmd_tv_status(args):
    """Query TV power, input, and picture settings."""
    device = get_device(args, DEVICE_TYPE_TV)
    handler = BraviaHandler(device, scheduler_factory=ManualScheduler)
    handler.initialize()
    handler.refresh()
    _print_states("TV", handler.status, handler.states, args.json)
    handler.dispose()
    return 0 if handler.status.is_online else 1


def cmd_tv_power(args):
    """Switch the TV on or off."""
    create_tv_client(args).set_power_status(args.state == "on")
    print(f"Power {args.state}")
    return 0


def cmd_tv_display(args):
    """Switch the picture off (audio keeps playing) or back on."""
    create_tv_client(args).set_display_off(args.state == "off")
    print(f"Display {args.state}")
    return 0


def cmd_tv_input(args):
    """Switch input by friendly name or URI."""
    if args.input == "list":
        for name, uri in INPUT_URIS.items():
            print(f"  {name:<10} {uri}")
        return 0
    create_tv_client(args).set_input(args.input)
    print(f"Input set to {args.input}")
    return 0


def cmd_tv_set(args):
    """Change one picture quality setting."""
    channel = SETTING_CHANNELS.get(args.setting)
    if channel is None:
        print(f"Unknown setting '{args.setting}'. Known: {', '.join(sorted(SETTING_CHANNELS))}",
              file=sys.stderr)
        return 1
    create_tv_client(args).set_picture_quality(CHANNEL_TARGETS[channel], args.value)
    print(f"{args.setting} set to {args.value}")
    return 0


def cmd_config(args):
    """Show configured devices."""
    config = load_config(args.config)
    print(f"Config file: {config.get('_loaded_from') or 'none (defaults)'}")
    devices = config.get("devices", {})
    if not devices:
        print("No devices configured.")
        return 0
    for device_id, raw in devices.items():
        device = device_config(raw)
        print(f"  {device_id}: {device.get('type')} at {device.get('host') or '?'}"
              f" (refresh every {device.get('refresh_interval')}s)")
    return 0


def main(argv=None):
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        prog="sonyav",
        description="Control a PlayStation 5 and a Sony Bravia TV from the command line",
    )
    parser.add_argument("-c", "--config", help="Path to config file (default: config.yaml)")
    parser.add_argument("--device", help="Device ID from the config file")
    parser.add_argument("--host", help="Device IP or hostname (overrides config)")
    parser.add_argument("--debug", action="store_true", help="Enable debug logging")

    subparsers = parser.add_subparsers(dest="command", help="Commands")

    # PS5
    p_ps5 = subparsers.add_parser("ps5", help="PlayStation 5 commands")
    p_ps5.add_argument("--credential", help="Remote Play user credential (overrides config)")
    ps5_sub = p_ps5.add_subparsers(dest="action")

    p = ps5_sub.add_parser("status", help="Show power state and running app")
    p.add_argument("--json", action="store_true", help="Print JSON")
    p.set_defaults(func=cmd_ps5_status)

    p = ps5_sub.add_parser("wake", help="Wake the console from rest mode")
    p.set_defaults(func=cmd_ps5_wake)

    # TV
    p_tv = subparsers.add_parser("tv", help="Bravia TV commands")
    p_tv.add_argument("--psk", help="Pre-shared key (overrides config)")
    tv_sub = p_tv.add_subparsers(dest="action")

    p = tv_sub.add_parser("status", help="Show power, input, and picture settings")
    p.add_argument("--json", action="store_true", help="Print JSON")
    p.set_defaults(func=cmd_tv_status)

    p = tv_sub.add_parser("power", help="Switch the TV on or off")
    p.add_argument("state", choices=["on", "off"])
    p.set_defaults(func=cmd_tv_power)

    p = tv_sub.add_parser("display", help="Switch the picture on or off")
    p.add_argument("state", choices=["on", "off"])
    p.set_defaults(func=cmd_tv_display)

    p = tv_sub.add_parser("input", aliases=["source"], help="Change input")
    p.add_argument("input", help="hdmi1-4, miracast, a raw URI, or 'list'")
    p.set_defaults(func=cmd_tv_input)

    p = tv_sub.add_parser("set", help="Change a picture setting")
    p.add_argument("setting", help="Setting name (brightness, contrast, picture_mode, ...)")
    p.add_argument("value", help="New value")
    p.set_defaults(func=cmd_tv_set)

    # Config
    p_cfg = subparsers.add_parser("config", help="Configuration commands")
    p_cfg.add_argument("action", nargs="?", choices=["show"], default="show")
    p_cfg.set_defaults(func=cmd_config)

    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.debug else logging.WARNING,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    if not getattr(args, "func", None):
        parser.print_help()
        return 0

    try:
        return args.func(args)
    except (SonyAVError, ValueError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
