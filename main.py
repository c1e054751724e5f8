"""
main.py
-------
Command-line entry point: migrate a whole database between two engines.

Usage::

    python main.py --source-env db_source.env --target-env db_target.env \\
                   --overwrite ask --log-file dbbridge.log

Each env file is a key=value file (``DB_DIALECT``, ``DB_HOST``, ``DB_PORT``,
``DB_NAME``, ``DB_USER``, ``DB_PASS``, ``DB_DSN``, ``DB_PATH``).  Exit code
is 0 on success and 1 when the migration fails or is aborted.
"""
from __future__ import annotations

import argparse
import signal
import sys
from dataclasses import replace

from config import CONFIG, ConnectionConfig
from core.database import DatabaseError, DatabaseManager
from core.errors import BridgeError, ConfigurationError, MigrationInterrupted
from core.migrator import MigrationOrchestrator
from dialects import open_metadata_source
from logger import configure_logging, get_logger
from models.overwrite import OverwriteChoice, OverwritePolicy

log = get_logger(__name__)

_CHOICES = {
    "s": OverwriteChoice.SKIP,
    "o": OverwriteChoice.OVERWRITE,
    "!": OverwriteChoice.OVERWRITE_ALL,
    "q": OverwriteChoice.ABORT,
}


def console_prompt(table: str) -> OverwriteChoice:
    """Ask on the terminal what to do with an existing target table."""
    print(f"Table '{table}' already exists. What do you want to do?")
    print("  [S]kip")
    print("  [O]verwrite")
    print("  [!]Overwrite All")
    print("  [Q]uit")
    answer = input("Your choice: ").strip().lower()
    choice = _CHOICES.get(answer[:1])
    if choice is None:
        raise ConfigurationError("prompt", f"invalid choice {answer!r}; migration aborted")
    return choice


def _signal_handler(signum, frame) -> None:
    """Turn SIGINT/SIGTERM into an orderly abort of the running migration."""
    raise MigrationInterrupted("run", f"received signal {signum}")


def _mask(value: str) -> int:
    return int(value, 0)


def build_parser() -> argparse.ArgumentParser:
    migration = CONFIG.migration
    parser = argparse.ArgumentParser(
        prog="db-bridge",
        description="Copy schema and data from one SQL engine to another.",
    )
    parser.add_argument("--source-env", default="db_source.env",
                        help="key=value file describing the source connection")
    parser.add_argument("--target-env", default="db_target.env",
                        help="key=value file describing the target connection")
    parser.add_argument("--overwrite", default=migration.overwrite_policy.value,
                        choices=[p.value for p in OverwritePolicy],
                        help="what to do when a target table already exists")
    parser.add_argument("--log-mask", type=_mask, default=migration.log_mask,
                        help="debug flags written to the log file (e.g. 0xFFFF)")
    parser.add_argument("--show-mask", type=_mask, default=migration.show_mask,
                        help="debug flags shown on the console (e.g. 0x4000)")
    parser.add_argument("--log-file", default=migration.log_file or "dbbridge.log",
                        help="log file path; empty string disables it")
    parser.add_argument("--skip-prefix", default=migration.skip_table_prefix,
                        help="skip source tables whose name starts with this prefix")
    parser.add_argument("--target-workarea", default=migration.target_workarea,
                        help="target database/schema (defaults to the source one)")
    parser.add_argument("--progress-every", type=int,
                        default=migration.progress_every,
                        help="log a progress line every N rows")
    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    configure_logging(args.log_mask, args.show_mask, args.log_file or None)

    previous = {
        signum: signal.signal(signum, _signal_handler)
        for signum in (signal.SIGINT, signal.SIGTERM)
    }

    source_db = target_db = None
    try:
        migration = replace(
            CONFIG.migration,
            overwrite_policy=OverwritePolicy.parse(args.overwrite),
            log_mask=args.log_mask,
            show_mask=args.show_mask,
            log_file=args.log_file or None,
            skip_table_prefix=args.skip_prefix,
            target_workarea=args.target_workarea,
            progress_every=args.progress_every,
        )
        source_db = DatabaseManager.from_config(ConnectionConfig.from_env_file(args.source_env))
        target_db = DatabaseManager.from_config(ConnectionConfig.from_env_file(args.target_env))
        source_db.connect()
        target_db.connect()

        orchestrator = MigrationOrchestrator(
            open_metadata_source(source_db),
            open_metadata_source(target_db),
            migration,
            console_prompt,
        )
        for result in orchestrator.run():
            print(result)
        return 0
    except DatabaseError as exc:
        log.error("Connection failed: %s", exc)
        return 1
    except BridgeError as exc:
        log.error("Migration failed: %s", exc)
        return 1
    finally:
        for db in (source_db, target_db):
            if db is not None:
                db.close()
        for signum, handler in previous.items():
            signal.signal(signum, handler)


if __name__ == "__main__":
    sys.exit(main())
