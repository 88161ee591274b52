# main.py
"""
ScreenWatch - periodic background screen capture

Mirrors the desktop, saves a PNG screenshot every interval into
<STORAGE_ROOT>/<SCREENSHOT_DIR_NAME>, and runs until Ctrl+C.
Settings come from .env / environment variables, see config.py.
"""
import argparse
import sys
import time
from pathlib import Path

from config import config
from core.capture import (
    CaptureCommandChannel,
    CaptureLifecycleManager,
    ScreenshotProjectionProvider,
)
from core.capture.command_channel import START_CAPTURE, STOP_CAPTURE
from core.storage import ImageStore
from utils.logger import logger, set_log_level


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Capture the screen periodically and store PNG screenshots")
    parser.add_argument("--interval", type=float, default=None,
                        help=f"Seconds between captures (default: {config.CAPTURE_INTERVAL_SECONDS})")
    parser.add_argument("--storage-root", type=str, default=None,
                        help=f"Directory holding the screenshot folder (default: {config.STORAGE_ROOT})")
    parser.add_argument("--grab-interval", type=float, default=None,
                        help=f"Seconds between screen grabs of the mirror (default: {config.GRAB_INTERVAL_SECONDS})")
    parser.add_argument("--duration", type=float, default=None,
                        help="Stop automatically after this many seconds")
    parser.add_argument("--log-level", type=str, default=None,
                        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
                        help="Override LOG_LEVEL")
    return parser


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    if args.log_level:
        set_log_level(args.log_level)

    storage_dir = (
        Path(args.storage_root) / config.SCREENSHOT_DIR_NAME
        if args.storage_root else config.SCREENSHOT_DIR
    )
    interval = args.interval if args.interval is not None else config.CAPTURE_INTERVAL_SECONDS

    print("\n" + "=" * 60)
    print("ScreenWatch - periodic screen capture")
    print("=" * 60)
    print(f"  • Interval:  {interval}s")
    print(f"  • Storage:   {storage_dir}")
    print("=" * 60)

    provider = ScreenshotProjectionProvider(grab_interval=args.grab_interval)
    store = ImageStore(storage_dir=str(storage_dir))
    manager = CaptureLifecycleManager(provider=provider, store=store, interval=interval)
    channel = CaptureCommandChannel(manager)

    capability = provider.request_capability()
    result = channel.handle(START_CAPTURE, {"capability": capability})
    if not result.success:
        logger.error(f"Could not start capture: {result.message}")
        manager.on_teardown()
        return 1

    print("\nCapturing... (press Ctrl+C to stop)\n")
    try:
        while True:
            time.sleep(1.0)
            if not manager.is_running:
                logger.info("Capture session ended")
                break
            if args.duration is not None and manager.get_stats()["runtime_seconds"] >= args.duration:
                logger.info(f"Duration of {args.duration}s reached")
                break
    except KeyboardInterrupt:
        logger.info("Received shutdown signal")
    finally:
        channel.handle(STOP_CAPTURE)
        manager.on_teardown()

    stats = store.get_stats()
    print(f"\nScreenshots stored: {stats['total_artifacts']} ({stats['storage_path']})")
    return 0


if __name__ == "__main__":
    sys.exit(main())
