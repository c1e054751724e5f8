"""
core/migrator.py
----------------
Migration orchestrator: copies every source table to the target.

Per run::

    ENSURING_TARGET_DATABASE → REBUILDING_PLAN_LOG →
        per table: LOADING_DEFS → TRANSFORMING → CREATING_TABLE →
                   SELECTING_SOURCE → IMPORTING_ROWS → RECORDING_PLAN
    → DONE

Design Decisions:
    * The orchestrator is a plain class with injected dependencies (two
      metadata sources, a ``MigrationConfig`` and an optional decision
      callback).  No global state; the "overwrite all" latch is an
      instance attribute.
    * Strictly sequential: one table is fully created, loaded and
      recorded before the next one starts.
    * The first failure aborts the run.  Tables already created or
      partially loaded are left as they are.
    * The overwrite prompt is a callback so the engine is testable
      without a terminal.
"""
from __future__ import annotations

import time
from dataclasses import dataclass
from enum import Enum
from typing import Callable

from config import MigrationConfig
from core.compiler import compile_create_table, compile_insert, compile_select
from core.errors import BridgeError, ConfigurationError, MigrationAborted
from core.importer import RowImporter
from core.plan_log import PlanLog
from core.transformer import transform
from dialects.base import MetadataSource
from logger import DebugFlag, get_logger, tag
from models.overwrite import OverwriteChoice, OverwritePolicy

log = get_logger(__name__)

DecisionCallback = Callable[[str], OverwriteChoice]   # table name → choice


class MigrationState(str, Enum):
    IDLE = "idle"
    ENSURING_TARGET_DATABASE = "ensuring_target_database"
    REBUILDING_PLAN_LOG = "rebuilding_plan_log"
    LOADING_DEFS = "loading_defs"
    TRANSFORMING = "transforming"
    CREATING_TABLE = "creating_table"
    SELECTING_SOURCE = "selecting_source"
    IMPORTING_ROWS = "importing_rows"
    RECORDING_PLAN = "recording_plan"
    DONE = "done"


@dataclass
class TableResult:
    """Outcome of one table."""
    table: str
    rows: int = 0
    skipped: bool = False
    elapsed_seconds: float = 0.0

    def __str__(self) -> str:
        if self.skipped:
            return f"[SKIPPED] {self.table}"
        return f"[OK] {self.table}: {self.rows} rows in {self.elapsed_seconds:.1f}s"


class MigrationOrchestrator:
    """
    Drives the transformer, compiler and importer over every source table.

    Args:
        source:  Source :class:`MetadataSource`.
        target:  Target :class:`MetadataSource`.
        config:  Migration settings (overwrite policy, skip prefix, ...).
        decide:  Callback asked what to do with an existing target table
                 when the policy is ``ASK``.

    Example::

        orchestrator = MigrationOrchestrator(source, target, CONFIG.migration, prompt)
        results = orchestrator.run()
    """

    def __init__(
        self,
        source: MetadataSource,
        target: MetadataSource,
        config: MigrationConfig,
        decide: DecisionCallback | None = None,
    ) -> None:
        self.source = source
        self.target = target
        self.config = config
        self._decide = decide
        self._policy = config.overwrite_policy
        self.state = MigrationState.IDLE
        self.plan_log = PlanLog(target, config.plan_table)

    @property
    def policy(self) -> OverwritePolicy:
        """Current policy; becomes ``OVERWRITE_ALL`` once that is chosen."""
        return self._policy

    def _enter(self, state: MigrationState, table: str | None = None) -> None:
        self.state = state
        log.debug("State: %s%s", state.value, f" ({table})" if table else "")

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def run(self) -> list[TableResult]:
        """
        Migrate every source table.

        Returns:
            One :class:`TableResult` per table processed or skipped by the
            overwrite policy (system tables are not listed).

        Raises:
            BridgeError: On the first failure; nothing is rolled back.
        """
        if self._policy is OverwritePolicy.ASK and self._decide is None:
            raise ConfigurationError(
                "run", "overwrite policy 'ask' needs a decision callback"
            )
        try:
            self._enter(MigrationState.ENSURING_TARGET_DATABASE)
            workarea = self.config.target_workarea or self.source.current_workarea()
            self.target.ensure_workarea(workarea)
            log.info("Importing database '%s'...", workarea)

            self._enter(MigrationState.REBUILDING_PLAN_LOG)
            self.plan_log.rebuild()

            results = []
            for table in self.source.list_tables():
                if self.config.skip_table(table) or table == self.config.plan_table:
                    log.debug("Skipping system table '%s'.", table)
                    continue
                results.append(self.migrate_table(table))

            self._enter(MigrationState.DONE)
            log.info("Data imported successfully (%d table(s)).", len(results))
            return results
        except BridgeError:
            raise
        except Exception as exc:
            raise BridgeError("run", cause=exc) from exc

    def migrate_table(self, table: str) -> TableResult:
        """Run the full per-table cycle for *table*."""
        started = time.monotonic()
        source_dialect = self.source.dialect
        target_dialect = self.target.dialect

        self._enter(MigrationState.LOADING_DEFS, table)
        log.info("Loading table definitions: '%s'", table)
        definitions = self.source.list_columns(table)

        self._enter(MigrationState.TRANSFORMING, table)
        log.info(
            "Creating migration plan for '%s' from %s to %s.",
            table, source_dialect.value, target_dialect.value,
        )
        columns = transform(definitions, source_dialect, target_dialect)

        self._enter(MigrationState.CREATING_TABLE, table)
        if not self._prepare_target_table(table):
            return TableResult(table, skipped=True)
        self.target.execute_ddl(
            "create_table", compile_create_table(table, columns, target_dialect)
        )
        log.info("Created table '%s'.", table)

        self._enter(MigrationState.SELECTING_SOURCE, table)
        select = compile_select(table, columns, source_dialect)
        insert_sql = compile_insert(table, columns, target_dialect)

        self._enter(MigrationState.IMPORTING_ROWS, table)
        log.info("Importing data for table '%s'...", table)
        importer = RowImporter(
            self.target.db, insert_sql, columns, self.config.progress_every
        )
        rows = importer.import_table(self.source.db, select)

        self._enter(MigrationState.RECORDING_PLAN, table)
        self.plan_log.save(table, columns)

        result = TableResult(table, rows=rows, elapsed_seconds=time.monotonic() - started)
        log.info("%s", result)
        return result

    # ------------------------------------------------------------------
    # Overwrite policy
    # ------------------------------------------------------------------

    def _prepare_target_table(self, table: str) -> bool:
        """
        Apply the overwrite policy to *table*.

        Returns:
            True when the table should be created (any existing copy has
            been dropped), False when it is skipped.

        Raises:
            MigrationAborted: Policy ``NEVER`` or the user chose to abort.
        """
        policy = self._policy
        if policy in (OverwritePolicy.OVERWRITE, OverwritePolicy.OVERWRITE_ALL):
            log.debug(
                "Policy %s: table '%s' will be overwritten.", policy.value, table,
                extra=tag(DebugFlag.OVERWRITE),
            )
            self.target.drop_table(table)
            return True

        if not self.target.table_exists(table):
            return True

        if policy is OverwritePolicy.NEVER:
            raise MigrationAborted(
                "create_table",
                f"table '{table}' already exists and the overwrite policy is 'never'",
            )
        if policy is OverwritePolicy.SKIP:
            log.info("Table '%s' exists; skipped.", table, extra=tag(DebugFlag.OVERWRITE))
            return False
        if policy is OverwritePolicy.OVERWRITE_EMPTY:
            if self.target.count_rows(table) > 0:
                log.info(
                    "Table '%s' is not empty; skipped.", table,
                    extra=tag(DebugFlag.OVERWRITE),
                )
                return False
        elif policy is OverwritePolicy.ASK:
            if not self._ask(table):
                return False

        self.target.drop_table(table)
        return True

    def _ask(self, table: str) -> bool:
        choice = self._decide(table)
        if choice is OverwriteChoice.ABORT:
            raise MigrationAborted("create_table", "migration aborted by user")
        if choice is OverwriteChoice.SKIP:
            log.info("User chose to skip '%s'.", table, extra=tag(DebugFlag.OVERWRITE))
            return False
        if choice is OverwriteChoice.OVERWRITE_ALL:
            log.info(
                "User chose to overwrite all remaining tables.",
                extra=tag(DebugFlag.OVERWRITE),
            )
            self._policy = OverwritePolicy.OVERWRITE_ALL
            return True
        if choice is OverwriteChoice.OVERWRITE:
            log.info("User chose to overwrite '%s'.", table, extra=tag(DebugFlag.OVERWRITE))
            return True
        raise ConfigurationError("create_table", f"unsupported overwrite choice {choice!r}")
