"""
Pipeline Logging System
=======================
Structured logging for pipeline runs.

This module provides:
- Structured JSON logging for machine-parseable run logs
- A human-readable console format for operators
- Pipeline and decision loggers
- Event helpers for stage start, job submission, completion and errors

Usage:
    from racestats.logging_config import setup_logging, log_job_submitted

    setup_logging("INFO", log_file="run.jsonl")
    log_job_submitted("ProcessVideos", run_id, job_id)
"""

import sys
import json
import logging
from datetime import datetime
from pathlib import Path
from typing import Optional, Dict, Any, Union


_RESERVED_ATTRS = frozenset((
    'name', 'msg', 'args', 'created', 'filename',
    'funcName', 'levelname', 'levelno', 'lineno',
    'module', 'msecs', 'pathname', 'process',
    'processName', 'relativeCreated', 'stack_info',
    'exc_info', 'exc_text', 'thread', 'threadName',
    'message', 'context', 'taskName',
))


# =============================================================================
# CUSTOM FORMATTERS
# =============================================================================

class StructuredFormatter(logging.Formatter):
    """
    JSON formatter for structured logging.

    Outputs log records as JSON objects with consistent structure:
    {
        "timestamp": "2024-01-15T10:30:00.123456",
        "level": "INFO",
        "logger": "racestats.pipeline",
        "message": "Submitted job",
        "stage_name": "ProcessVideos",
        "job_id": "..."
    }
    """

    def format(self, record: logging.LogRecord) -> str:
        log_data = {
            "timestamp": datetime.fromtimestamp(record.created).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        if hasattr(record, 'context') and record.context:
            log_data['context'] = record.context

        # Anything passed via extra={}
        for key, value in record.__dict__.items():
            if key in _RESERVED_ATTRS:
                continue
            try:
                json.dumps(value)
                log_data[key] = value
            except (TypeError, ValueError):
                log_data[key] = str(value)

        if record.exc_info:
            log_data['exception'] = self.formatException(record.exc_info)

        return json.dumps(log_data)


class ConsoleFormatter(logging.Formatter):
    """
    Human-readable formatter for console output.

    Format: [LEVEL] logger: message (key=value, ...)
    """

    COLORS = {
        'DEBUG': '\033[36m',     # Cyan
        'INFO': '\033[32m',      # Green
        'WARNING': '\033[33m',   # Yellow
        'ERROR': '\033[31m',     # Red
        'CRITICAL': '\033[35m',  # Magenta
    }
    RESET = '\033[0m'

    def __init__(self, use_colors: bool = True):
        super().__init__()
        self.use_colors = use_colors and sys.stderr.isatty()

    def format(self, record: logging.LogRecord) -> str:
        level = record.levelname
        if self.use_colors and level in self.COLORS:
            level = f"{self.COLORS[level]}{level}{self.RESET}"

        msg = f"[{level}] {record.name}: {record.getMessage()}"

        extras = []
        for key, value in record.__dict__.items():
            if key in _RESERVED_ATTRS:
                continue
            if isinstance(value, (str, int, float, bool)):
                extras.append(f"{key}={value}")

        if extras:
            msg += f" ({', '.join(extras)})"

        if record.exc_info:
            msg += "\n" + self.formatException(record.exc_info)

        return msg


# =============================================================================
# SETUP
# =============================================================================

_initialized: bool = False


def setup_logging(
    level: str = "INFO",
    log_file: Optional[Union[str, Path]] = None,
    force: bool = False
) -> None:
    """
    Configure the root logger once: console on stderr, optional JSONL file.

    Args:
        level: Log level name
        log_file: Optional path of a JSON lines log file
        force: Reconfigure even if already initialized
    """
    global _initialized
    if _initialized and not force:
        return

    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, level.upper(), logging.INFO))
    root_logger.handlers = []

    console_handler = logging.StreamHandler()
    console_handler.setFormatter(ConsoleFormatter())
    root_logger.addHandler(console_handler)

    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_path, mode='a', encoding='utf-8')
        file_handler.setFormatter(StructuredFormatter())
        root_logger.addHandler(file_handler)

    _initialized = True


# =============================================================================
# LOGGER FACTORY
# =============================================================================

def get_pipeline_logger() -> logging.Logger:
    """Get the logger stage events are written to."""
    return logging.getLogger("racestats.pipeline")


def get_decision_logger() -> logging.Logger:
    """Get a logger for planning decisions."""
    return logging.getLogger("racestats.decisions")


# =============================================================================
# CONVENIENCE LOGGING FUNCTIONS
# =============================================================================

def log_pipeline_decision(
    decision_type: str,
    details: Dict[str, Any],
    run_id: Optional[str] = None,
    enabled: bool = True,
    logger: Optional[logging.Logger] = None
) -> None:
    """
    Log a planning decision (stage enabled/skipped, input mode).

    Args:
        decision_type: Type of decision (e.g. "stage_skipped", "input_mode")
        details: Decision details
        run_id: Pipeline run ID
        enabled: False to suppress (see LoggingConfig.log_decisions)
        logger: Optional logger override
    """
    if not enabled:
        return

    log = logger or get_decision_logger()
    extra = {
        'decision_type': decision_type,
        'details': details
    }
    if run_id:
        extra['run_id'] = run_id

    log.info(f"Decision: {decision_type}", extra=extra)


def log_stage_start(
    stage_name: str,
    run_id: str,
    input_mode: str,
    logger: Optional[logging.Logger] = None
) -> None:
    """Log the start of a pipeline stage."""
    log = logger or get_pipeline_logger()
    log.info(
        f"Starting stage: {stage_name}",
        extra={
            'stage_name': stage_name,
            'run_id': run_id,
            'event': 'stage_start',
            'input_mode': input_mode,
        }
    )


def log_job_submitted(
    stage_name: str,
    run_id: str,
    job_id: str,
    logger: Optional[logging.Logger] = None
) -> None:
    """Log the job id a stage's submission produced."""
    log = logger or get_pipeline_logger()
    log.info(
        f"Submitted job {job_id} for stage: {stage_name}",
        extra={
            'stage_name': stage_name,
            'run_id': run_id,
            'event': 'job_submitted',
            'job_id': job_id,
        }
    )


def log_stage_complete(
    stage_name: str,
    run_id: str,
    duration_seconds: float,
    job_id: Optional[str] = None,
    logger: Optional[logging.Logger] = None
) -> None:
    """Log the completion of a pipeline stage."""
    log = logger or get_pipeline_logger()
    log.info(
        f"Completed stage: {stage_name} ({duration_seconds:.2f}s)",
        extra={
            'stage_name': stage_name,
            'run_id': run_id,
            'event': 'stage_complete',
            'duration_seconds': duration_seconds,
            'job_id': job_id or "",
        }
    )


def log_stage_error(
    stage_name: str,
    run_id: str,
    error: str,
    duration_seconds: float,
    logger: Optional[logging.Logger] = None
) -> None:
    """Log a pipeline stage error."""
    log = logger or get_pipeline_logger()
    log.error(
        f"Stage failed: {stage_name}",
        extra={
            'stage_name': stage_name,
            'run_id': run_id,
            'event': 'stage_error',
            'error': error,
            'duration_seconds': duration_seconds
        }
    )


# =============================================================================
# LOG FILE UTILITIES
# =============================================================================

def read_log_file(log_path: Union[str, Path]) -> list:
    """
    Read a JSONL log file and return list of log entries.

    Args:
        log_path: Path to the log file

    Returns:
        List of parsed log entry dictionaries
    """
    entries = []
    with open(log_path, 'r', encoding='utf-8') as f:
        for line in f:
            line = line.strip()
            if line:
                try:
                    entries.append(json.loads(line))
                except json.JSONDecodeError:
                    continue
    return entries


def get_job_ids_for_run(log_path: Union[str, Path], run_id: str) -> Dict[str, str]:
    """Map stage name to job id for one run, from a JSONL log file."""
    jobs = {}
    for entry in read_log_file(log_path):
        if entry.get('run_id') == run_id and entry.get('event') == 'job_submitted':
            jobs[entry['stage_name']] = entry['job_id']
    return jobs
