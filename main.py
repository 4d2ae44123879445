import argparse
import asyncio
import sys
from pathlib import Path

from loguru import logger

from antirsi.adapters.idle_source import default_idle_source
from antirsi.adapters.output import CliOutputAdapter, EventHub, LogOutputAdapter
from antirsi.adapters.process_watcher import ProcessWatcher
from antirsi.config_provider import ConfigProvider
from antirsi.logging_config import setup_logging
from antirsi.orchestrator import AppOrchestrator
from antirsi.service import AntiRsiService
from antirsi.timing.store import TimingStore


DEFAULT_CONFIG_PATH = Path("config/antirsi.yaml")


def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="AntiRSI break timer (headless demo)")
    parser.add_argument("--config", type=Path, default=DEFAULT_CONFIG_PATH, help="timing config YAML")
    parser.add_argument("--log-level", default="INFO")
    parser.add_argument("--log-file", type=Path, default=None)
    parser.add_argument("--output", choices=("cli", "log"), default="cli", help="where break events go")
    parser.add_argument("--no-process-watch", action="store_true", help="do not poll watched processes")
    parser.add_argument("--reload-interval", type=float, default=2.0, help="config hot-reload poll seconds")
    return parser.parse_args(argv)


async def watch_config(provider: ConfigProvider, service: AntiRsiService, interval: float) -> None:
    """Apply edits to the YAML file while running (the file is already the source, so no re-save)."""
    while True:
        await asyncio.sleep(interval)
        if provider.reload_if_changed():
            cfg = provider.snapshot()
            if cfg != service.get_config():
                logger.info("Config file changed on disk, applying")
                service.set_config(cfg.to_dict(), persist=False)


async def main(args: argparse.Namespace) -> None:
    """
    Headless entry:
    - load config (defaults if missing / broken)
    - start the tick timer, process watcher and config watcher
    - print break events to the terminal
    - Ctrl+C exits cleanly
    """
    provider = ConfigProvider(args.config)
    store = TimingStore(provider.snapshot().to_dict())

    service = AntiRsiService(
        store,
        default_idle_source(),
        config_provider=provider,
        on_config_changed=lambda cfg: logger.info(f"Timing config active: {cfg}"),
    )
    watcher = None if args.no_process_watch else ProcessWatcher()
    orchestrator = AppOrchestrator(
        service,
        process_watcher=watcher,
        hub=EventHub([CliOutputAdapter() if args.output == "cli" else LogOutputAdapter()]),
    )

    orchestrator.start()
    service.start()
    config_task = asyncio.create_task(watch_config(provider, service, args.reload_interval))

    try:
        logger.info("AntiRSI running, Ctrl+C to quit")
        await asyncio.Event().wait()
    finally:
        config_task.cancel()
        await asyncio.gather(config_task, return_exceptions=True)
        orchestrator.stop()
        service.close()
        logger.info(f"Main exit (store metrics: {store.metrics})")


if __name__ == "__main__":
    args = parse_args()
    setup_logging(level=args.log_level, log_file=args.log_file)

    if sys.platform == "win32":
        asyncio.set_event_loop_policy(asyncio.WindowsProactorEventLoopPolicy())

    try:
        asyncio.run(main(args))
    except KeyboardInterrupt:
        pass
