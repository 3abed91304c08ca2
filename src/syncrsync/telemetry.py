"""Telemetry - logging and metrics entry points

Log format: [module] msg
Metric examples: sync.started, sync.finished{state=...}, runner.spawn_errors,
trigger.ignored{source=...}
"""

import logging

_LOG_FORMAT = "[%(name)s] %(message)s"


def get_logger(name: str) -> logging.Logger:
    """Return the logger for a module.

    Args:
        name: Module name (usually ``__name__``)
    """
    return logging.getLogger(name)


def configure_logging(level: str | None = None) -> None:
    """Install the root handler used by the service entry points.

    Args:
        level: Level name; defaults to ``config.LOG_LEVEL``
    """
    from .config import LOG_LEVEL

    logging.basicConfig(level=(level or LOG_LEVEL).upper(), format=_LOG_FORMAT)


def format_command_log(command: str, args: list[str], max_len: int | None = None) -> str:
    """Render a command line for a log record, truncated.

    Args:
        command: Executable name
        args: Arguments
        max_len: Truncation length, ``config.LOG_MAX_CMD_LEN`` by default

    Returns:
        ``"cmd arg1 arg2..."`` cut to ``max_len`` characters
    """
    from .config import LOG_MAX_CMD_LEN

    limit = max_len or LOG_MAX_CMD_LEN
    line = " ".join([command, *args])
    if len(line) > limit:
        return line[: limit - 3] + "..."
    return line


class Metrics:
    """In-memory metrics facade

    Counters and gauges keyed by name plus optional labels.
    """

    def __init__(self):
        self._counters: dict[str, int] = {}
        self._gauges: dict[str, float] = {}

    def inc(self, name: str, labels: dict[str, str] | None = None, value: int = 1) -> None:
        """Increment a counter.

        Args:
            name: Metric name (e.g. "sync.started")
            labels: Optional labels (e.g. {"source": "watch"})
            value: Increment, 1 by default
        """
        key = self._make_key(name, labels)
        self._counters[key] = self._counters.get(key, 0) + value

    def gauge(self, name: str, value: float, labels: dict[str, str] | None = None) -> None:
        """Set a gauge value."""
        key = self._make_key(name, labels)
        self._gauges[key] = value

    def get_counter(self, name: str, labels: dict[str, str] | None = None) -> int:
        key = self._make_key(name, labels)
        return self._counters.get(key, 0)

    def get_gauge(self, name: str, labels: dict[str, str] | None = None) -> float:
        key = self._make_key(name, labels)
        return self._gauges.get(key, 0.0)

    def reset(self) -> None:
        """Clear everything (tests)."""
        self._counters.clear()
        self._gauges.clear()

    def _make_key(self, name: str, labels: dict[str, str] | None) -> str:
        if not labels:
            return name
        label_str = ",".join(f"{k}={v}" for k, v in sorted(labels.items()))
        return f"{name}{{{label_str}}}"

    def get_all_counters(self) -> dict[str, int]:
        return dict(self._counters)

    def get_all_gauges(self) -> dict[str, float]:
        return dict(self._gauges)


metrics = Metrics()
