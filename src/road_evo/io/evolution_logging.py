# io/evolution_logging.py
import json
import logging
import sys

from road_evo.io.recorder import Recorder
from road_evo.sim.hooks import NoopHooks


def _default_json_logger(name="road_evo", level="INFO"):
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
                return json.dumps(payload)

        h.setFormatter(_JsonFormatter())
        logger.addHandler(h)
        logger.setLevel(level)
    return logger


def _point(p):
    return [p.x, p.y]


class EvolutionLogging(NoopHooks):
    """
    Structured JSON logs for the search loop.

    Accepted steps that lower the weighted cost are INFO. Every other step is
    DEBUG, only with debug on, and only every sample_every generations.
    """

    def __init__(
        self,
        run_id: str = "local",
        level: str = "INFO",
        debug: bool = False,
        sample_every: int = 1,
        logger: logging.Logger | None = None,
        recorder: Recorder | None = None,
    ):
        self.run_id, self.debug, self.sample_every = run_id, debug, max(1, sample_every)
        self.recorder = recorder
        self.log = logger or _default_json_logger(level=level)
        self._steps = 0

    def _emit(self, level: str, msg: str, **extra):
        self.log.log(getattr(logging, level), msg, extra={"extra": {"run_id": self.run_id, **extra}})

    # session lifecycle

    def session_start(self, *, generation, cities, training_pairs, cost):
        self._emit(
            "INFO",
            "session_start",
            generation=generation,
            cities=[_point(c) for c in cities],
            training_pairs=training_pairs,
            cost=list(cost),
        )

    def run_start(self, *, steps, generation):
        if self.debug:
            self._emit("DEBUG", "run_start", steps=steps, generation=generation)

    def run_end(self, *, processed, accepted, generation, wall_ms, **extra):
        self._emit(
            "INFO" if accepted else "DEBUG",
            "run_end",
            processed=processed,
            accepted=accepted,
            generation=generation,
            wall_ms=round(wall_ms, 3),
            **extra,
        )

    def step(self, *, generation, operator, accepted, before, after, cost, segments, ms):
        self._steps += 1
        fields = dict(
            generation=generation,
            operator=operator,
            accepted=accepted,
            before=before,
            after=after,
            cost=list(cost),
            segments=segments,
            ms=round(ms, 3),
        )
        if accepted and after < before:
            self._emit("INFO", "improved", **fields)
        elif self.debug and (self._steps % self.sample_every) == 0:
            self._emit("DEBUG", "step", **fields)

    def city_moved(self, *, index, location, generation, cost):
        self._emit(
            "INFO",
            "city_moved",
            index=index,
            location=_point(location),
            generation=generation,
            cost=list(cost),
        )

    def error(self, *, reason: str, **kw):
        self._emit("ERROR", "evolution_error", reason=reason, **kw)

    # ------------- Analytics records --------------------------

    def record(self, rec):
        if self.recorder:
            self.recorder.emit(rec)
