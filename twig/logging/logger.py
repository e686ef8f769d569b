"""
Logging setup for twig.

All records go through loguru with a ``component`` bound in ``extra``
(objects, graph, state, working_dir, merge, repository, system). The
console handler writes to stderr so command output on stdout stays
clean. File handlers are optional and live inside the control directory:

- ``twig.log``        every record at the configured level
- ``operations.log``  DEBUG audit trail of state-changing components
- ``errors.log``      ERROR and above
"""

import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Tuple

from loguru import logger

DEFAULT_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss.SSS}</green> | "
    "<level>{level: <8}</level> | "
    "<cyan>{extra[component]}</cyan> | "
    "<level>{message}</level>"
)

OPERATION_COMPONENTS = ("repository", "merge", "working_dir", "state")


def component_filter(*components: str) -> Callable[[Dict[str, Any]], bool]:
    """Build a loguru filter accepting records bound to one of ``components``."""
    accepted = frozenset(components)

    def accept(record: Dict[str, Any]) -> bool:
        return record["extra"].get("component") in accepted

    return accept


class TwigLogger:
    """
    Owns the loguru handlers for one twig process.

    Creating an instance replaces every existing handler, so the last
    instance created wins.
    """

    def __init__(
        self,
        log_dir: Optional[Path] = None,
        rotation: str = "10 MB",
        retention: str = "1 month",
        level: str = "WARNING",
        format_string: Optional[str] = None,
        enable_file_logging: bool = False,
        enable_console_logging: bool = True,
    ):
        """
        Args:
            log_dir: Directory for log files, created only when file logging is on
            rotation: Size or age at which a log file is rotated
            retention: How long rotated files are kept
            level: Level for the console handler and ``twig.log``
            format_string: loguru format; defaults to DEFAULT_FORMAT
            enable_file_logging: Add the three file handlers
            enable_console_logging: Add the stderr handler
        """
        self.log_dir = log_dir or Path(".twig") / "logs"
        self.rotation = rotation
        self.retention = retention
        self.level = level
        self.format_string = format_string or DEFAULT_FORMAT
        self.handler_ids: List[int] = []

        logger.remove()
        logger.configure(extra={"component": "system"})

        if enable_console_logging:
            self.handler_ids.append(
                logger.add(sys.stderr, format=self.format_string, level=level, colorize=True)
            )

        if enable_file_logging:
            self.log_dir.mkdir(parents=True, exist_ok=True)
            for filename, file_level, record_filter in self._file_specs():
                self.handler_ids.append(
                    logger.add(
                        self.log_dir / filename,
                        format=self.format_string,
                        level=file_level,
                        rotation=self.rotation,
                        retention=self.retention,
                        filter=record_filter,
                    )
                )

        self.logger = logger.bind(component="system")

    def _file_specs(self) -> List[Tuple[str, str, Optional[Callable]]]:
        return [
            ("twig.log", self.level, None),
            ("operations.log", "DEBUG", component_filter(*OPERATION_COMPONENTS)),
            ("errors.log", "ERROR", None),
        ]

    def get_logger(self, component: str) -> Any:
        return logger.bind(component=component)


def get_twig_logger(component: str = "system") -> Any:
    """
    Get a logger bound to ``component``.

    Context goes through ``bind`` so user text in the message is never
    treated as a format string:

        >>> log = get_twig_logger("merge")
        >>> log.bind(branch="feature").info("Fast-forwarded master")
    """
    return logger.bind(component=component)


def log_repository_operation(logger_instance: Any, operation: str, **context: Any) -> None:
    """
    Emit one DEBUG audit record for a repository operation.

    Args:
        logger_instance: Component logger
        operation: Operation name, e.g. ``commit`` or ``merge_error``
        **context: Extra fields stored on the record
    """
    logger_instance.bind(
        operation=operation,
        timestamp=datetime.now(timezone.utc).isoformat(),
        **context,
    ).debug(f"Repository operation: {operation}")


_twig_logger: Optional[TwigLogger] = None


def initialize_logging(
    log_dir: Optional[Path] = None, level: str = "WARNING", **kwargs: Any
) -> TwigLogger:
    """
    Configure process-wide logging. The CLI calls this once per invocation.

    Args:
        log_dir: Directory for log files
        level: Console level
        **kwargs: Passed through to TwigLogger
    """
    global _twig_logger
    _twig_logger = TwigLogger(log_dir=log_dir, level=level, **kwargs)
    return _twig_logger


def get_logger_instance() -> Optional[TwigLogger]:
    return _twig_logger
