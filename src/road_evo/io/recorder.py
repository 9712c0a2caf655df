# road_evo/io/recorder.py
import json
import logging
import sys
from dataclasses import asdict
from typing import Protocol

log = logging.getLogger(__name__)


class Sink(Protocol):
    def write(self, rec) -> None: ...


class JsonlSink:
    def __init__(self, fp=sys.stdout):
        self.fp = fp

    def write(self, rec) -> None:
        self.fp.write(json.dumps(asdict(rec)) + "\n")


class MemorySink:
    def __init__(self):
        self.records: list = []

    def write(self, rec) -> None:
        self.records.append(rec)


class Recorder:
    def __init__(self, *sinks: Sink):
        self.sinks = sinks or (JsonlSink(),)

    def emit(self, rec):
        for s in self.sinks:
            try:
                s.write(rec)
            except Exception:
                # a broken sink must not stop the search
                log.exception("sink %s failed on %s", type(s).__name__, type(rec).__name__)
