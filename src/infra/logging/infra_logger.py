"""
Purpose
-------
Provide the structured logger shared by every stage of the DDR pipeline and
the text-preprocessing helpers. Centralizes log levels, output formats,
destinations, run metadata, and the pipeline stage that produced an entry.

Key behaviors
-------------
- Emits one structured log entry per call (`emit`).
- Supports log level thresholding (DEBUG, INFO, WARNING, ERROR).
- Serializes entries as JSON (default) or human-readable text.
- Binds child loggers to a pipeline stage (`for_stage`) so diagnostics
  always identify which stage and input they refer to.
- Handles invalid environment variables by falling back to defaults.

Conventions
-----------
- Default log level is INFO; an explicit `level` passed to
  `initialize_logger` wins over the LOG_LEVEL environment variable.
- Default format is JSON; text output is line-based with key=value context.
- Default destination is STDERR; file destinations are opened in append mode.
- Timestamps are UTC ISO-8601 with a trailing "Z".
- The stage of a root logger is the literal string "pipeline".

Downstream usage
----------------
Call `initialize_logger` once at process start, then hand
`logger.for_stage("<stage_name>")` to each pipeline stage. Use
`logger.debug`, `logger.info`, `logger.warning`, or `logger.error` in code.
"""

import datetime as dt
import json
import os
import sys
from typing import TypedDict

LOG_LEVELS: set[str] = {"DEBUG", "INFO", "WARNING", "ERROR"}
LEVEL_MAPPING: dict[str, int] = {"DEBUG": 10, "INFO": 20, "WARNING": 30, "ERROR": 40}
LOG_FORMATS: set[str] = {"json", "text"}
ROOT_STAGE: str = "pipeline"


class LogEntry(TypedDict):
    """
    Purpose
    -------
    Typed dictionary describing the structure of a single log entry.

    Fields
    ------
    timestamp : str
        UTC ISO-8601 timestamp string with a "Z" suffix.
    level : str
        Log severity level ("DEBUG", "INFO", "WARNING", "ERROR").
    run_id : str
        Identifier for the pipeline run that emitted this entry.
    component : str
        Name of the component producing the log.
    stage : str
        Pipeline stage the entry belongs to (e.g. "embedding_loader").
    event : str
        Short machine-readable event name (snake_case).
    message : str
        Human-readable message string.
    run_meta : dict
        Run metadata attached at logger initialization.
    context : dict
        Event-specific context payload (small, JSON-serializable).
    """

    timestamp: str
    level: str
    run_id: str
    component: str
    stage: str
    event: str
    message: str
    run_meta: dict
    context: dict


class InfraLogger:
    """
    Purpose
    -------
    Structured logger that enforces level thresholds, normalizes output
    format, and tags every entry with the pipeline stage it came from.

    Key behaviors
    -------------
    - Emits structured log entries with `emit`.
    - Provides convenience methods for each level (`debug`, `info`, `warning`, `error`).
    - Derives stage-bound child loggers with `for_stage`; children share the
      parent's run_id, run_meta, level, format, and destination.

    Parameters
    ----------
    component_name : str
        Human-readable name of the component using this logger.
    run_id : str
        Identifier for this execution.
    run_meta : dict
        Run-scoped metadata (e.g. input paths, policy knobs).
    log_level : str, default="INFO"
        Minimum log level threshold.
    log_format : str, default="json"
        Output format ("json" or "text").
    log_dest : str, default="stderr"
        Destination for logs ("stderr" or a file path).
    stage : str, default="pipeline"
        Stage label written into every entry.

    Notes
    -----
    - Serialization falls back to `default=str` so numpy scalars or paths
      in the context never break logging.
    """

    def __init__(
        self,
        component_name: str,
        run_id: str,
        run_meta: dict,
        log_level: str = "INFO",
        log_format: str = "json",
        log_dest: str = "stderr",
        stage: str = ROOT_STAGE,
    ) -> None:
        self.component_name = component_name
        self.run_id = run_id
        self.run_meta = run_meta
        self.level = log_level
        self.format = log_format
        self.dest = log_dest
        self.stage = stage

    def for_stage(self, stage: str) -> "InfraLogger":
        """
        Return a logger bound to `stage` that otherwise mirrors this one.

        Parameters
        ----------
        stage : str
            Pipeline stage name, e.g. "vocabulary_builder".

        Returns
        -------
        InfraLogger
            New logger instance; the receiver is left untouched.
        """

        return InfraLogger(
            component_name=self.component_name,
            run_id=self.run_id,
            run_meta=self.run_meta,
            log_level=self.level,
            log_format=self.format,
            log_dest=self.dest,
            stage=stage,
        )

    def emit(
        self, event: str, level: str = "INFO", msg: str | None = None, context: dict | None = None
    ) -> None:
        """
        Emit one structured log entry.

        Parameters
        ----------
        event : str
            Snake_case event name describing what happened.
        level : str, default="INFO"
            Log severity level.
        msg : str, optional
            Human-readable message string.
        context : dict, optional
            Event-specific payload; must be JSON-serializable or convertible to str.

        Returns
        -------
        None

        Notes
        -----
        - Entries below the threshold return before any timestamping.
        """

        if LEVEL_MAPPING[level] < LEVEL_MAPPING[self.level]:
            return
        entry: LogEntry = {
            "timestamp": dt.datetime.now(dt.timezone.utc).isoformat().replace("+00:00", "Z"),
            "level": level,
            "run_id": self.run_id,
            "component": self.component_name,
            "stage": self.stage,
            "event": event,
            "message": msg if msg is not None else "",
            "run_meta": self.run_meta,
            "context": context if context is not None else {},
        }
        self.write_entry(self.format_entry(entry))

    def debug(self, event: str, msg: str | None = None, context: dict | None = None) -> None:
        """Emit a DEBUG log entry."""

        self.emit(event=event, level="DEBUG", msg=msg, context=context)

    def info(self, event: str, msg: str | None = None, context: dict | None = None) -> None:
        """Emit an INFO log entry."""

        self.emit(event=event, level="INFO", msg=msg, context=context)

    def warning(self, event: str, msg: str | None = None, context: dict | None = None) -> None:
        """Emit a WARNING log entry."""

        self.emit(event=event, level="WARNING", msg=msg, context=context)

    def error(self, event: str, msg: str | None = None, context: dict | None = None) -> None:
        """Emit an ERROR log entry."""

        self.emit(event=event, level="ERROR", msg=msg, context=context)

    def format_entry(self, entry: LogEntry) -> str:
        """
        Format a log entry into the configured output format.

        Parameters
        ----------
        entry : LogEntry
            Structured log entry dictionary.

        Returns
        -------
        str
            JSON string, or a text line of the form
            `<ts> [<LEVEL>] <component>/<stage> <event> - <message> k=v ...`.
        """

        if self.format == "json":
            return json.dumps(entry, ensure_ascii=False, default=str)
        context_str = " ".join(f"{k}={v}" for k, v in entry["context"].items())
        return (
            f"{entry['timestamp']} [{entry['level']}] "
            f"{entry['component']}/{entry['stage']} {entry['event']} - {entry['message']} "
            f"{context_str}"
        ).rstrip()

    def write_entry(self, formatted_entry: str) -> None:
        """
        Write a formatted log entry to STDERR or append it to the destination file.
        """

        if self.dest == "stderr":
            print(formatted_entry, file=sys.stderr)
        else:
            with open(self.dest, "a", encoding="utf-8") as f:
                f.write(formatted_entry + "\n")


def initialize_logger(
    component_name: str,
    level: str | None = None,
    run_id: str | None = None,
    run_meta: dict | None = None,
) -> InfraLogger:
    """
    Factory function to configure and return an InfraLogger.

    Parameters
    ----------
    component_name : str
        Name of the component using the logger.
    level : str, optional
        Explicit level override (e.g. from a CLI argument). Ignored when it
        is not one of LOG_LEVELS.
    run_id : str, optional
        Identifier for the run; generated from the component name, UTC time
        and PID when omitted.
    run_meta : dict, optional
        Run metadata dictionary.

    Returns
    -------
    InfraLogger
        Root logger (stage "pipeline") with validated environment overrides.

    Notes
    -----
    - Environment variables LOG_LEVEL, LOG_FORMAT, LOG_DEST are honored.
    - Invalid values fall back to defaults with warnings emitted.
    """

    fall_backs: dict[str, bool] = {
        "level": False,
        "log_format": False,
        "log_dest": False,
    }
    env_level, log_format, log_dest = extract_env_vars(fall_backs)
    if level is not None and level.upper() in LOG_LEVELS:
        env_level = level.upper()

    if run_id is None:
        run_id = generate_run_id(component_name)

    if run_meta is None:
        run_meta = {}

    logger = InfraLogger(
        component_name=component_name,
        run_id=run_id,
        run_meta=run_meta,
        log_level=env_level,
        log_format=log_format,
        log_dest=log_dest,
    )
    handle_fallbacks(logger, fall_backs)
    return logger


def extract_env_vars(fall_backs: dict[str, bool]) -> tuple[str, str, str]:
    """
    Extract and validate logging configuration from environment variables.

    Parameters
    ----------
    fall_backs : dict[str, bool]
        Mutable dict tracking whether defaults had to be applied.

    Returns
    -------
    tuple[str, str, str]
        Normalized (level, format, destination).

    Notes
    -----
    - Destination must be "stderr" or a path that can be opened for append.
    """

    level: str = os.environ.get("LOG_LEVEL", "INFO")
    log_format: str = os.environ.get("LOG_FORMAT", "json")
    log_dest: str = os.environ.get("LOG_DEST", "stderr")

    if level.upper() not in LOG_LEVELS:
        fall_backs["level"] = True
        level = "INFO"

    if log_format.lower() not in LOG_FORMATS:
        fall_backs["log_format"] = True
        log_format = "json"

    if log_dest.lower() != "stderr":
        try:
            with open(log_dest, "a", encoding="utf-8"):
                pass
        except OSError:
            fall_backs["log_dest"] = True
            log_dest = "stderr"

    return level.upper(), log_format.lower(), log_dest


def generate_run_id(component_name: str) -> str:
    """
    Build a run identifier of the form `<component>--<UTC timestamp>--<pid>`.
    """

    return (
        component_name
        + "--"
        + dt.datetime.now(dt.timezone.utc).strftime("%Y%m%dT%H%M%SZ")
        + "--"
        + str(os.getpid())
    )


FALLBACK_EVENTS: dict[str, tuple[str, str, str]] = {
    "level": ("FALLBACK_LOG_LEVEL", "LOG_LEVEL", "Invalid LOG_LEVEL env var; defaulting to INFO"),
    "log_format": (
        "FALLBACK_LOG_FORMAT",
        "LOG_FORMAT",
        "Invalid LOG_FORMAT env var; defaulting to json",
    ),
    "log_dest": (
        "FALLBACK_LOG_DEST",
        "LOG_DEST",
        "Invalid LOG_DEST env var; defaulting to stderr",
    ),
}


def handle_fallbacks(logger: InfraLogger, fall_backs: dict[str, bool]) -> None:
    """
    Emit one WARNING per environment variable that had to fall back to its default.

    Parameters
    ----------
    logger : InfraLogger
        Logger instance used to emit warnings.
    fall_backs : dict[str, bool]
        Mapping of config keys ("level", "log_format", "log_dest") to fallback flags.

    Returns
    -------
    None
    """

    for key, triggered in fall_backs.items():
        if not triggered:
            continue
        event, env_var, message = FALLBACK_EVENTS[key]
        logger.warning(
            event=event,
            msg=message,
            context={"invalid_value": os.environ.get(env_var, None)},
        )
