"""
Structured logging for the production planner.

Provides insight into plan computation at multiple verbosity levels:
    - MINIMAL: Final plan size and errors
    - SUMMARY: Catalog/resource changes and recompute overview
    - DETAILED: Plan tables, compaction stages, queue compaction
    - DEBUG: Every step emitted during demand propagation
    - TRACE: Everything including each queue pop

Usage:
    from Planner.planner_logging import PlannerLogger, LogLevel

    logger = PlannerLogger(level=LogLevel.DETAILED)
    calculator = Calculator(logger=logger)
    calculator.set_target(Stack("Wooden Shovel", 1))
    print(logger.to_string())
"""
from __future__ import annotations

import sys
from dataclasses import dataclass, field
from datetime import datetime
from enum import IntEnum
from io import StringIO
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, TextIO, Tuple, Union


class LogLevel(IntEnum):
    """Verbosity levels for planner logging."""
    SILENT = 0      # No output at all
    MINIMAL = 10    # Final plan size and errors
    SUMMARY = 20    # Catalog changes and recompute overview
    DETAILED = 30   # Plan tables and ordering stages
    DEBUG = 40      # Every propagated step
    TRACE = 50      # Every queue pop


@dataclass
class LogEntry:
    """A single log entry with metadata."""
    timestamp: datetime
    level: LogLevel
    category: str
    message: str
    data: Optional[Dict[str, Any]] = None

    def format(self, include_timestamp: bool = True, include_level: bool = True) -> str:
        """Format the log entry as a string."""
        parts = []
        if include_timestamp:
            parts.append(f"[{self.timestamp.strftime('%H:%M:%S.%f')[:-3]}]")
        if include_level:
            parts.append(f"[{self.level.name:8}]")
        parts.append(f"[{self.category}]")
        parts.append(self.message)
        return " ".join(parts)


@dataclass
class PlannerLogger:
    """
    Structured logger for the calculator.

    Collects log entries at various verbosity levels and writes them to an
    output stream and, optionally, a file.

    Attributes
    ----------
    level : LogLevel
        Minimum level to log (entries above this level are ignored)
    output : TextIO | None
        Output stream (defaults to sys.stdout)
    log_to_file : Path | None
        Optional path to also write logs to a file
    entries : list[LogEntry]
        All logged entries (for programmatic access)
    """
    level: LogLevel = LogLevel.SUMMARY
    output: Optional[TextIO] = None
    log_to_file: Optional[Path] = None
    include_timestamp: bool = True
    include_level: bool = True
    entries: List[LogEntry] = field(default_factory=list)
    _file_handle: Optional[TextIO] = field(default=None, repr=False)

    def __post_init__(self):
        if self.output is None:
            self.output = sys.stdout
        if self.log_to_file:
            self._file_handle = open(self.log_to_file, "w", encoding="utf-8")

    def close(self):
        """Close the file handle if opened."""
        if self._file_handle:
            self._file_handle.close()
            self._file_handle = None

    def __enter__(self):
        return self

    def __exit__(self, *args):
        self.close()

    def _log(self, level: LogLevel, category: str, message: str,
             data: Optional[Dict[str, Any]] = None) -> None:
        """Record and output a log entry."""
        if level > self.level:
            return

        entry = LogEntry(
            timestamp=datetime.now(),
            level=level,
            category=category,
            message=message,
            data=data,
        )
        self.entries.append(entry)

        formatted = entry.format(self.include_timestamp, self.include_level)
        if self.output:
            self.output.write(formatted + "\n")
            self.output.flush()
        if self._file_handle:
            self._file_handle.write(formatted + "\n")
            self._file_handle.flush()

    def _log_table(self, level: LogLevel, category: str,
                   headers: List[str], rows: List[List[Any]],
                   title: Optional[str] = None) -> None:
        """Log a formatted table."""
        if level > self.level:
            return

        all_rows = [headers] + rows
        widths = [max(len(str(row[i])) for row in all_rows) for i in range(len(headers))]

        lines = []
        if title:
            lines.append(title)
            lines.append("=" * len(title))

        header_line = " | ".join(str(h).ljust(w) for h, w in zip(headers, widths))
        lines.append(header_line)
        lines.append("-" * len(header_line))

        for row in rows:
            lines.append(" | ".join(str(v).ljust(w) for v, w in zip(row, widths)))

        for line in lines:
            self._log(level, category, line)

    # -------------------------------------------------------------------------
    # Catalog and resource changes
    # -------------------------------------------------------------------------

    def log_recipes_added(self, added: int, catalog_size: int) -> None:
        self._log(LogLevel.SUMMARY, "RECIPES",
                  f"Registered {added} recipe(s), catalog now has {catalog_size}")

    def log_recipes_loaded(self, path: Path, count: int) -> None:
        self._log(LogLevel.SUMMARY, "RECIPES", f"Loaded {count} recipe(s) from {path}")

    def log_resource_added(self, item: str, added: int, total: int) -> None:
        self._log(LogLevel.SUMMARY, "RESOURCES",
                  f"Added {added} {item} to storage (now {total})")

    def log_target_set(self, target: Any) -> None:
        self._log(LogLevel.SUMMARY, "PLANNER", f"Target set to {target}")

    def log_error(self, message: str) -> None:
        self._log(LogLevel.MINIMAL, "ERROR", message)

    # -------------------------------------------------------------------------
    # Demand propagation
    # -------------------------------------------------------------------------

    def log_recalculate_start(self, target: Any, recipe_count: int,
                              resource_count: int) -> None:
        """Log the start of a full plan recomputation."""
        self._log(LogLevel.SUMMARY, "PLANNER",
                  f"Recalculating plan for {target} "
                  f"({recipe_count} recipes, {resource_count} stored items)")

    def log_demand(self, item: str, depth: int, demand: int) -> None:
        """Log a queue pop (TRACE level)."""
        if self.level < LogLevel.TRACE:
            return
        self._log(LogLevel.TRACE, "DEMAND", f"Pop {item} at depth {depth}: need {demand}")

    def log_surplus_used(self, item: str, amount: int) -> None:
        if self.level < LogLevel.DEBUG:
            return
        self._log(LogLevel.DEBUG, "DEMAND", f"  {amount} {item} taken from crafted surplus")

    def log_storage_used(self, item: str, amount: int) -> None:
        if self.level < LogLevel.DEBUG:
            return
        self._log(LogLevel.DEBUG, "DEMAND", f"  {amount} {item} taken from storage")

    def log_craft(self, item: str, method: str, repeats: int, excess: int) -> None:
        if self.level < LogLevel.DEBUG:
            return
        message = f"  Craft {item} via {method} x{repeats}"
        if excess:
            message += f" ({excess} surplus)"
        self._log(LogLevel.DEBUG, "DEMAND", message)

    def log_raw_material(self, item: str, count: int) -> None:
        if self.level < LogLevel.DEBUG:
            return
        self._log(LogLevel.DEBUG, "DEMAND", f"  {count} {item} needed as raw material")

    def log_queue_compacted(self, queued: int, new_depth: int) -> None:
        self._log(LogLevel.DETAILED, "QUEUE",
                  f"Depth range exhausted, compacted {queued} queued item(s); "
                  f"current depth is now {new_depth}")

    def log_propagation_complete(self, candidate_count: int) -> None:
        self._log(LogLevel.DETAILED, "DEMAND",
                  f"Demand propagation produced {candidate_count} candidate step(s)")

    # -------------------------------------------------------------------------
    # Ordering and final plan
    # -------------------------------------------------------------------------

    def log_stage(self, stage: int, items: Sequence[str], carried: int) -> None:
        if self.level < LogLevel.DETAILED:
            return
        self._log(LogLevel.DETAILED, "ORDER",
                  f"Stage {stage}: {', '.join(items)} ({carried} step(s) waiting)")

    def log_plan(self, target: Any, steps: Sequence[Tuple[Any, int]]) -> None:
        """Log the final plan, as a table at DETAILED level."""
        self._log(LogLevel.MINIMAL, "PLAN", f"Plan for {target}: {len(steps)} step(s)")
        if self.level < LogLevel.DETAILED or not steps:
            return

        rows = []
        for index, (recipe, repeats) in enumerate(steps, start=1):
            rows.append([
                index,
                recipe.method,
                recipe.result.item,
                repeats,
                recipe.result.count * repeats,
            ])
        self._log_table(LogLevel.DETAILED, "PLAN",
                        ["#", "Method", "Result", "Repeats", "Produces"],
                        rows, title="Production Plan")

    # -------------------------------------------------------------------------
    # Utility Methods
    # -------------------------------------------------------------------------

    def get_all_entries(self) -> List[LogEntry]:
        """Return all logged entries."""
        return self.entries.copy()

    def get_entries_by_level(self, level: LogLevel) -> List[LogEntry]:
        """Return entries at or below a specific level."""
        return [e for e in self.entries if e.level <= level]

    def get_entries_by_category(self, category: str) -> List[LogEntry]:
        """Return entries matching a category."""
        return [e for e in self.entries if e.category == category]

    def to_string(self, level: Optional[LogLevel] = None) -> str:
        """Format all entries to a string."""
        entries = self.entries if level is None else self.get_entries_by_level(level)
        return "\n".join(e.format(self.include_timestamp, self.include_level)
                         for e in entries)

    def clear(self) -> None:
        """Clear all logged entries."""
        self.entries.clear()


def parse_log_level(level: Union[LogLevel, str, int]) -> LogLevel:
    """Convert a level name, number, or LogLevel into a LogLevel."""
    if isinstance(level, LogLevel):
        return level
    if isinstance(level, str):
        try:
            return LogLevel[level.strip().upper()]
        except KeyError:
            raise ValueError(f"Unknown log level {level!r}") from None
    return LogLevel(level)


def create_logger(
    level: Union[LogLevel, str, int] = LogLevel.SUMMARY,
    output: Optional[TextIO] = None,
    log_file: Optional[Path] = None,
) -> PlannerLogger:
    """
    Factory function to create a PlannerLogger.

    Parameters
    ----------
    level : LogLevel | str | int
        Verbosity level. Can be LogLevel enum, string name, or integer.
    output : TextIO | None
        Output stream. Defaults to sys.stdout.
    log_file : Path | None
        Optional path to write logs to file.
    """
    return PlannerLogger(
        level=parse_log_level(level),
        output=output,
        log_to_file=log_file,
    )


def create_string_logger(level: LogLevel = LogLevel.DETAILED) -> Tuple[PlannerLogger, StringIO]:
    """
    Create a logger that writes to a string buffer.

    Useful for testing or capturing logs programmatically.
    """
    buffer = StringIO()
    logger = PlannerLogger(level=level, output=buffer)
    return logger, buffer
