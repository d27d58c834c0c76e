"""CLI entry point for the Herme agent.

Runs the agent continuously until SIGINT/SIGTERM, or one cycle of every
enabled monitor with ``--once``. The shutdown path (payment drain, monitor
stop, connection close) runs on every exit.

Examples:
    ```bash
    python -m herme
    python -m herme --once
    python -m herme --config config/agent.yaml --log-level DEBUG
    ```
"""

import argparse
import asyncio
import logging
import signal
import sys
from pathlib import Path

from herme.core.exceptions import ConfigurationError
from herme.core.logger import Logger, StructuredFormatter
from herme.services.agent import Agent


DEFAULT_CONFIG = Path("config") / "agent.yaml"

logger = Logger("cli")


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command-line arguments for the agent runner."""
    parser = argparse.ArgumentParser(
        prog="herme",
        description="Herme Nostr agent",
    )

    parser.add_argument(
        "--config",
        type=Path,
        default=DEFAULT_CONFIG,
        help=f"Agent config path (default: {DEFAULT_CONFIG})",
    )

    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default="INFO",
        help="Log level (default: INFO)",
    )

    parser.add_argument(
        "--once",
        action="store_true",
        help="Run one cycle of every monitor and exit (default: run continuously)",
    )

    return parser.parse_args(argv)


def setup_logging(level: str) -> None:
    """Configure the root logger with structured formatting.

    Installs a ``StructuredFormatter`` on the root handler so that all
    log output -- from both ``Logger`` (with ``structured_kv`` extra) and
    plain ``logging.getLogger()`` calls in models/utils -- is unified as
    ``level name message key=value ...``.
    """
    handler = logging.StreamHandler()
    handler.setFormatter(StructuredFormatter())
    logging.root.addHandler(handler)
    logging.root.setLevel(getattr(logging, level))


def load_agent(path: Path) -> Agent:
    """Build the agent from *path*, or from defaults when the file does not exist."""
    if not path.exists():
        logger.warning("config_not_found", path=str(path))
        return Agent()
    return Agent.from_yaml(str(path))


async def run_agent(agent: Agent, *, once: bool) -> int:
    """Start *agent*, run it, and always run its shutdown path.

    Returns:
        Exit code: 0 for success, 1 for failure.
    """
    try:
        shutdown = await agent.start(once=once)
    except Exception as e:  # Intentionally broad: CLI error boundary for initialization
        logger.error("agent_start_failed", error=str(e), error_type=type(e).__name__)
        return 1

    if once:
        try:
            ok = await agent.run_once()
        finally:
            await shutdown()
        logger.info("agent_completed", ok=ok)
        return 0 if ok else 1

    def handle_signal(sig: signal.Signals) -> None:
        logger.info("shutdown_signal", signal=sig.name)
        agent.request_shutdown()

    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(sig, handle_signal, sig)

    try:
        await agent.serve()
        return 0
    except Exception as e:  # Intentionally broad: CLI error boundary for continuous mode
        logger.error("agent_failed", error=str(e), error_type=type(e).__name__)
        return 1
    finally:
        await shutdown()


async def main(argv: list[str] | None = None) -> int:
    """Main entry point: parse args, load the configuration and run the agent."""
    args = parse_args(argv)
    setup_logging(args.log_level)

    try:
        agent = load_agent(args.config)
    except (OSError, ValueError, ConfigurationError) as e:
        logger.error("config_invalid", path=str(args.config), error=str(e))
        return 1

    try:
        return await run_agent(agent, once=args.once)
    except KeyboardInterrupt:
        logger.info("interrupted")
        return 130


def cli() -> None:
    """Synchronous entry point for console_scripts."""
    sys.exit(asyncio.run(main()))


if __name__ == "__main__":
    cli()
