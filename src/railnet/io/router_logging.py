# io/router_logging.py
import json
import logging
import sys

from railnet.app.hooks import NoopHooks


def _default_json_logger(name="railnet", level="INFO"):
    logger = logging.getLogger(name)
    if not logger.handlers:
        h = logging.StreamHandler(sys.stdout)

        class _JsonFormatter(logging.Formatter):
            def format(self, record: logging.LogRecord) -> str:
                payload = {
                    "level": record.levelname,
                    "msg": record.getMessage(),
                    "logger": record.name,
                }
                extra = getattr(record, "extra", None)
                if isinstance(extra, dict):
                    payload.update(extra)
                return json.dumps(payload, default=str)

        h.setFormatter(_JsonFormatter())
        logger.addHandler(h)
        logger.setLevel(level)
    return logger


class RouterLogging(NoopHooks):
    """
    One place to shape and emit structured logs for network builds and queries.
    """

    def __init__(
        self,
        network: str = "network",
        level: str = "INFO",
        debug: bool = False,
        logger: logging.Logger | None = None,
    ):
        self.network, self.debug = network, debug
        self.log = logger or _default_json_logger(level=level)

    def _emit(self, level: str, msg: str, **extra):
        self.log.log(getattr(logging, level), msg, extra={"extra": {"network": self.network, **extra}})

    # build lifecycle

    def build_start(self, *, lines, stations):
        self._emit("INFO", "build_start", lines=lines, stations=stations)

    def phase_start(self, phase: str):
        if self.debug:
            self._emit("DEBUG", "phase_start", phase=phase)

    def phase_progress(self, phase: str, *, done, total):
        if self.debug:
            self._emit("DEBUG", "phase_progress", phase=phase, done=done, total=total)

    def phase_end(self, phase: str, **stats):
        self._emit("INFO", "phase_end", phase=phase, **stats)

    def build_end(self, *, wall_ms, **stats):
        # the line list can be long; counts are enough here
        stats.pop("lines", None)
        self._emit("INFO", "build_end", wall_ms=round(wall_ms, 3), **stats)

    def build_cancelled(self, *, phase: str):
        self._emit("WARNING", "build_cancelled", phase=phase)

    def warning(self, reason: str, **kw):
        self._emit("WARNING", "build_warning", reason=reason, **kw)

    # queries

    def query_start(self, *, start, end, optimize_for):
        if self.debug:
            self._emit("DEBUG", "query_start", start=start, end=end, optimize_for=optimize_for)

    def query_end(self, *, status: str, wall_ms, **kw):
        level = "INFO" if status == "found" else "WARNING"
        self._emit(level, "query_end", status=status, wall_ms=round(wall_ms, 3), **kw)
