#!/usr/bin/env python3
"""
Command-Line Interface for PipeFish
-----------------------------------
Small front end for poking at a UCI engine from the shell:

    pipefish --engine /usr/bin/stockfish probe
    pipefish --config configs/engine.yaml send "isready" "go depth 5"
"""

import argparse
import logging
import queue
import sys
import time

from uci_engine.channel import ChannelClosed
from uci_engine.driver import EngineDriver
from uci_engine.errors import EngineError
from uci_engine.options import EngineOptions
from uci_utils.config_loader import DEFAULT_CONFIG_PATH, load_config
from uci_utils.logging_setup import setup_logging

logger = logging.getLogger(__name__)


def _start_driver(config: dict) -> EngineDriver:
    engine_cfg = config["engine"]
    driver = EngineDriver(engine_cfg["path"], EngineOptions(**engine_cfg["options"]))
    driver.run()
    if driver.options.multipv != 1:
        driver.set_option("multipv", driver.options.multipv)
    return driver


def _print_until(driver: EngineDriver, stop_token, timeout: float) -> bool:
    """Echo engine lines. Returns True if *stop_token* was seen."""
    deadline = time.monotonic() + timeout
    while True:
        remaining = deadline - time.monotonic()
        if remaining <= 0:
            return False
        try:
            line = driver.recv(timeout=remaining)
        except (queue.Empty, ChannelClosed):
            return False
        print(line)
        if stop_token is not None and line == stop_token:
            return True
        if stop_token is None:
            # Idle timeout: keep going while the engine is talking.
            deadline = time.monotonic() + timeout


def probe_engine(config: dict, args) -> int:
    """Run the engine, print everything up to ``uciok`` and shut down."""
    driver = _start_driver(config)
    try:
        ok = _print_until(driver, "uciok", args.timeout)
    finally:
        driver.close()
    if not ok:
        logger.error("No uciok from %s within %.1fs", driver.path, args.timeout)
        return 1
    return 0


def send_commands(config: dict, args) -> int:
    """Send each command and print output until the engine goes quiet."""
    driver = _start_driver(config)
    try:
        _print_until(driver, "uciok", args.timeout)
        for command in args.commands:
            driver.send_command(command)
        _print_until(driver, None, args.timeout)
    finally:
        driver.close()
    return 0


def main(argv=None) -> int:
    """
    Main function to parse arguments and run commands.
    """
    parser = argparse.ArgumentParser(description="PipeFish UCI engine host")
    parser.add_argument(
        "--config",
        type=str,
        default=None,
        help=f"Path to the configuration file (default: {DEFAULT_CONFIG_PATH}).",
    )
    parser.add_argument(
        "--engine",
        type=str,
        default=None,
        help="Engine binary; overrides engine.path from the config.",
    )
    parser.add_argument(
        "-v", "--verbose", action="store_true", help="Log wire traffic."
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    probe_parser = subparsers.add_parser(
        "probe", help="Start the engine and print its identification."
    )
    probe_parser.add_argument(
        "--timeout", type=float, default=5.0, help="Seconds to wait for uciok."
    )
    probe_parser.set_defaults(func=probe_engine)

    send_parser = subparsers.add_parser(
        "send", help="Send commands and print the engine's replies."
    )
    send_parser.add_argument("commands", nargs="+", help="UCI command lines.")
    send_parser.add_argument(
        "--timeout",
        type=float,
        default=2.0,
        help="Stop after this many seconds without output.",
    )
    send_parser.set_defaults(func=send_commands)

    args = parser.parse_args(argv)

    if args.config is None and args.engine is None:
        args.config = DEFAULT_CONFIG_PATH

    try:
        config = load_config(args.config, engine_path=args.engine)
    except (FileNotFoundError, ValueError) as e:
        setup_logging(verbose=args.verbose)
        logger.error("%s", e)
        return 1

    setup_logging(config, verbose=args.verbose)

    try:
        return args.func(config, args)
    except EngineError as e:
        logger.error("%s", e)
        return 1


if __name__ == "__main__":
    sys.exit(main())
