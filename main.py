import argparse
import logging
import sys
from pathlib import Path

from dotenv import load_dotenv

from sleephq_uploader.archive import ArchiveBuilder
from sleephq_uploader.auth import SleepHQAuth
from sleephq_uploader.client import SleepHQClient
from sleephq_uploader.config import load_config
from sleephq_uploader.environment import check_required_tools, verify_remote
from sleephq_uploader.errors import ExitCode, UploaderError
from sleephq_uploader.sync import RcloneSync
from sleephq_uploader.utils import (
    LOG_DATEFMT,
    configure_logging,
    daily_log_file,
    ensure_dir,
    format_day,
    utc_now,
    utc_yesterday,
)

# Load environment from .env (if present), e.g. SLEEPHQ_CONFIG_DIR
load_dotenv(encoding="utf-8")

SCRIPT_NAME = "sleephq-upload"
SCRIPT_VERSION = "1.3.7"

logger = logging.getLogger("sleephq_uploader")


def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog=SCRIPT_NAME,
        description="Download CPAP data from a WebDAV share and upload it to SleepHQ.",
    )
    parser.add_argument(
        "--config-dir",
        type=Path,
        default=None,
        help="Directory holding settings.conf (defaults to $SLEEPHQ_CONFIG_DIR, then ./settings.conf)",
    )
    return parser.parse_args(argv)


def run_once(config_dir: Path | None = None) -> None:
    """Initialize, sync, archive and upload. Raises UploaderError on failure."""
    logger.info("Initializing script...")
    config = load_config(config_dir)

    for folder in config.working_dirs():
        ensure_dir(folder)
    configure_logging(daily_log_file(config.log_dir))

    check_required_tools()
    verify_remote(config.webdav_name, config.webdav_addr)

    yesterday = utc_yesterday()
    logger.info("=== Script Start ===")
    logger.info("Script: %s (v%s)", SCRIPT_NAME, SCRIPT_VERSION)
    logger.info("Start Time: %s UTC", utc_now().strftime(LOG_DATEFMT))
    logger.info("Yesterday's date: %s", format_day(yesterday))

    builder = ArchiveBuilder(config, RcloneSync(config.webdav_name))
    if not builder.maybe_build_archive():
        return

    auth = SleepHQAuth(config)
    SleepHQClient(config, auth).upload(builder.archive_path)


def main(argv=None) -> int:
    args = parse_args(argv)
    configure_logging()

    exit_code = ExitCode.FAILURE
    try:
        run_once(args.config_dir)
        exit_code = ExitCode.SUCCESS
    except UploaderError as e:
        logger.error("%s", e)
        exit_code = e.exit_code
    except KeyboardInterrupt:
        logger.error("Stopped by user.")
    except Exception as e:
        logger.exception("Fatal Error: %s", e)
    finally:
        logger.info("=== Script End ===")
        logger.info("End Time: %s UTC", utc_now().strftime(LOG_DATEFMT))
        logger.info("Exit Code: %d", exit_code)
    return int(exit_code)


def run() -> None:
    sys.exit(main())


if __name__ == "__main__":
    run()
