from __future__ import annotations
import csv
import logging
import os
import queue
import threading
from typing import IO, Iterator, List, Optional, Tuple

from .. import canon
from ..config import ParserConfig
from ..exceptions import DecodeError, UnitConversionError
from ..types import UsageData
from . import records
from .reconstruct import IntervalReconstructor

logger = logging.getLogger(__name__)

# Sentinel published after the last row
_END = object()
_PUT_TIMEOUT_S = 0.05
_GET_TIMEOUT_S = 0.05


def _put(q: queue.Queue, item: object, stop: threading.Event) -> bool:
    """Blocking put that gives up once the consumer has stopped listening."""
    while not stop.is_set():
        try:
            q.put(item, timeout=_PUT_TIMEOUT_S)
            return True
        except queue.Full:
            continue
    return False


def _produce(stream: IO[str], q: queue.Queue, stop: threading.Event) -> None:
    try:
        reader = csv.reader(stream)
        for row in reader:
            if not _put(q, (reader.line_num, row), stop):
                return
    except Exception as exc:
        # Re-raised on the consumer side
        _put(q, exc, stop)
        return
    _put(q, _END, stop)


class RowPipeline:
    """
    Reads delimited rows on a background thread into a bounded queue.

    Iterating yields (line_number, row) in file order. Closing (or leaving the
    context) tells the reader thread to stop, so it is never left blocked on a
    full queue that nobody drains.
    """

    def __init__(self, stream: IO[str], maxsize: int = 64):
        self._queue: queue.Queue = queue.Queue(maxsize=maxsize)
        self._stop = threading.Event()
        self._thread = threading.Thread(
            target=_produce,
            args=(stream, self._queue, self._stop),
            name="nem12-reader",
            daemon=True,
        )

    def __enter__(self) -> "RowPipeline":
        self._thread.start()
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def __iter__(self) -> Iterator[Tuple[int, List[str]]]:
        while True:
            try:
                item = self._queue.get(timeout=_GET_TIMEOUT_S)
            except queue.Empty:
                if not self._thread.is_alive() and self._queue.empty():
                    raise DecodeError("NEM12 reader stopped before the end of input")
                continue
            if item is _END:
                return
            if isinstance(item, BaseException):
                raise DecodeError(f"could not read NEM12 input: {item}") from item
            yield item

    def close(self) -> None:
        self._stop.set()
        if self._thread.is_alive():
            self._thread.join()


class Nem12Parser:
    """Parse a NEM12 file into hourly readings per NMI and reading type."""

    def __init__(
        self,
        source: str | os.PathLike[str] | IO[str],
        *,
        config: Optional[ParserConfig] = None,
    ):
        self.source = source
        self.config = config or ParserConfig()
        self.errors: List[UnitConversionError] = []

    def parse(self) -> UsageData:
        if isinstance(self.source, (str, os.PathLike)):
            with open(self.source, newline="", encoding="utf-8") as fh:
                return self._parse_stream(fh)
        return self._parse_stream(self.source)

    def _parse_stream(self, stream: IO[str]) -> UsageData:
        machine = IntervalReconstructor(self.config)
        first = True
        with RowPipeline(stream, maxsize=self.config.queue_size) as rows:
            for line_num, row in rows:
                if first:
                    if _is_blank(row):
                        continue
                    first = False
                    if _is_header(row):
                        _check_header(row, line_num)
                        continue
                    logger.debug("No header record - assuming NEM12 format")
                machine.feed(row, line_num)
                if machine.done:
                    break
        if first:
            raise DecodeError("NEM12 input contains no records")

        data = machine.finish()
        self.errors = list(machine.errors)
        logger.info(
            "Parsed NEM12 input: %d NMI(s), %d hourly reading(s)",
            len(data),
            sum(len(r) for by_type in data.values() for r in by_type.values()),
        )
        return data


def _is_blank(row: List[str]) -> bool:
    return not any(f.strip() for f in row)


def _is_header(row: List[str]) -> bool:
    return bool(row) and row[0].strip() == str(canon.HEADER)


def _check_header(row: List[str], line_num: int) -> None:
    try:
        header = records.decode_header(row)
    except DecodeError as exc:
        raise DecodeError(f"row {line_num}: {exc}") from exc
    if header.version_header != canon.VERSION_HEADER:
        raise DecodeError(
            f"row {line_num}: header record indicates this is not a NEM12 file "
            f"({header.version_header!r})"
        )
    logger.debug("Parsed 100 record %s", header)


def read_nem12(
    source: str | os.PathLike[str] | IO[str],
    *,
    config: Optional[ParserConfig] = None,
) -> UsageData:
    """
    Parse a NEM12 file path or open text stream into a UsageData mapping:
      NMI -> ReadingType -> [HourlyReading, ...]
    """
    return Nem12Parser(source, config=config).parse()
