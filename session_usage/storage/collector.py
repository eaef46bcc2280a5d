"""
Session log collection.

Walks the sessions directory, picks the logs that fall inside the scan
floor, and streams each one into a LogFile. The whole pipeline is a single
cooperative task: it yields to the event loop between directories, files
and batches of lines so the UI stays responsive and cancellation is
observed promptly.
"""

import asyncio
import itertools
import json
import os
import re
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Callable, List, Optional, TextIO, Union

from ..core.timeutil import format_date_key, local_midnight, scan_floor_days, window_start
from ..log import get_logger
from .extractors import (
    as_record,
    extract_cost,
    extract_model_key,
    extract_role,
    extract_timestamp,
    extract_tokens,
    extract_usage,
    flat,
    parse_timestamp,
)
from .models import (
    FinalizeProgress,
    LogFile,
    ParseProgress,
    ProgressEvent,
    ScanCancelled,
    ScanProgress,
    UsageRecord,
)

logger = get_logger(__name__)

LOG_SUFFIX = ".jsonl"
UNKNOWN_MODEL = "unknown"
PROGRESS_EVERY = 10
LINES_PER_READ = 200

# 2026-02-02T21-52-28-774Z_<uuid>.jsonl
_FILENAME_START = re.compile(r"^(\d{4}-\d{2}-\d{2})T(\d{2})-(\d{2})-(\d{2})-(\d{3})Z_")

# model_change entries carry flat fields only; modelId is the newer name.
_MODEL_CHANGE_EXTRACTORS = [[flat("modelId")], [flat("model")]]

ProgressCallback = Callable[[ProgressEvent], None]


def parse_session_start(name: str) -> Optional[datetime]:
    """Session start encoded in a log file name, as local wall-clock time."""
    match = _FILENAME_START.match(name)
    if not match:
        return None
    date, hours, minutes, seconds, millis = match.groups()
    return parse_timestamp(f"{date}T{hours}:{minutes}:{seconds}.{millis}Z")


@dataclass(frozen=True)
class _DirEntry:
    path: str
    name: str
    is_dir: bool
    is_file: bool


def _list_dir(directory: str) -> List[_DirEntry]:
    entries = []
    with os.scandir(directory) as it:
        for entry in it:
            try:
                is_dir = entry.is_dir(follow_symlinks=False)
                is_file = entry.is_file()
            except OSError:
                continue
            entries.append(_DirEntry(entry.path, entry.name, is_dir, is_file))
    return entries


def _modified_at(path: str) -> datetime:
    return datetime.fromtimestamp(os.stat(path).st_mtime)


def _open_log(path: str) -> TextIO:
    return open(path, "r", encoding="utf-8", errors="replace")


def _read_lines(f: TextIO) -> List[str]:
    return list(itertools.islice(f, LINES_PER_READ))


def _check_cancelled(cancel: Optional[asyncio.Event]) -> None:
    if cancel is not None and cancel.is_set():
        raise ScanCancelled()


def _emit(on_progress: Optional[ProgressCallback], event: ProgressEvent) -> None:
    if on_progress is not None:
        on_progress(event)


async def walk_log_files(
    root: Union[str, Path],
    floor_start: datetime,
    cancel: Optional[asyncio.Event] = None,
    on_found: Optional[Callable[[int], None]] = None,
) -> List[str]:
    """Find session logs started on or after `floor_start`.

    The start comes from the file name when it carries a timestamp, else
    from the file's modification time. Unreadable directories and files
    are skipped.

    Args:
        root: Sessions directory
        floor_start: Local midnight of the earliest day to keep
        cancel: Set to stop the walk
        on_found: Called with the running count every few files and at the end

    Returns:
        Paths of candidate log files

    Raises:
        ScanCancelled: If `cancel` was set during the walk
    """
    found: List[str] = []
    stack = [str(root)]

    def keep(path: str) -> None:
        found.append(path)
        if on_found is not None and len(found) % PROGRESS_EVERY == 0:
            on_found(len(found))

    while stack:
        _check_cancelled(cancel)
        directory = stack.pop()

        try:
            entries = await asyncio.to_thread(_list_dir, directory)
        except OSError as e:
            logger.debug("Skipping unreadable directory %s: %s", directory, e)
            continue

        for entry in entries:
            _check_cancelled(cancel)
            if entry.is_dir:
                stack.append(entry.path)
                continue
            if not entry.is_file or not entry.name.endswith(LOG_SUFFIX):
                continue

            started_at = parse_session_start(entry.name)
            if started_at is None:
                try:
                    started_at = await asyncio.to_thread(_modified_at, entry.path)
                except OSError as e:
                    logger.debug("Skipping unreadable file %s: %s", entry.path, e)
                    continue

            if local_midnight(started_at) >= floor_start:
                keep(entry.path)

    if on_found is not None:
        on_found(len(found))
    return found


async def parse_log_file(
    path: Union[str, Path],
    floor_key: str,
    cancel: Optional[asyncio.Event] = None,
) -> Optional[LogFile]:
    """Stream one session log into a LogFile.

    The file is read in batches of lines on a worker thread. Lines are
    parsed independently; malformed lines are skipped. Only
    assistant messages become records, and records dated before
    `floor_key` are dropped.

    Args:
        path: Session log path
        floor_key: Earliest day key to keep
        cancel: Set to stop parsing

    Returns:
        LogFile, or None when the file holds no usable records

    Raises:
        ScanCancelled: If `cancel` was set while parsing
        OSError: If the file cannot be opened or read
    """
    path = str(path)
    started_at = parse_session_start(os.path.basename(path))
    current_model: Optional[str] = None
    records: List[UsageRecord] = []
    skipped = 0

    f = await asyncio.to_thread(_open_log, path)
    with f:
        while True:
            _check_cancelled(cancel)
            lines = await asyncio.to_thread(_read_lines, f)
            if not lines:
                break

            for line in lines:
                _check_cancelled(cancel)
                line = line.strip()
                if not line:
                    continue

                try:
                    entry = as_record(json.loads(line))
                except ValueError:
                    entry = None
                if entry is None:
                    skipped += 1
                    continue

                entry_type = entry.get("type")

                if entry_type == "session" and started_at is None:
                    started_at = parse_timestamp(entry.get("timestamp"))
                    continue

                if entry_type == "model_change":
                    model_key = extract_model_key(entry, _MODEL_CHANGE_EXTRACTORS)
                    if model_key:
                        current_model = model_key
                    continue

                if entry_type != "message" or extract_role(entry) != "assistant":
                    continue

                model_key = extract_model_key(entry) or current_model or UNKNOWN_MODEL

                timestamp = extract_timestamp(entry) or started_at
                if timestamp is None:
                    continue

                date = format_date_key(timestamp)
                if date < floor_key:
                    continue

                usage = extract_usage(entry)
                records.append(UsageRecord(
                    model_key=model_key,
                    cost=extract_cost(usage),
                    tokens=extract_tokens(usage),
                    date=date,
                ))

    if skipped:
        logger.debug("Skipped %d malformed lines in %s", skipped, path)
    if not records:
        return None
    return LogFile(path=path, records=tuple(records))


async def collect_log_files(
    root: Union[str, Path],
    cancel: Optional[asyncio.Event] = None,
    on_progress: Optional[ProgressCallback] = None,
    now: Optional[datetime] = None,
) -> List[LogFile]:
    """Scan and parse every session log within the scan floor.

    The floor is the widest display window, so switching windows later
    never needs a rescan. Files are parsed one at a time; a file is added
    to the result only once it is fully parsed.

    Args:
        root: Sessions directory
        cancel: Set to abandon the whole collection
        on_progress: Receives throttled scan/parse/finalize events
        now: Reference time (defaults to the current time)

    Returns:
        LogFiles that contain at least one in-floor record

    Raises:
        ScanCancelled: If `cancel` was set; no partial result is returned
    """
    floor_start = window_start(scan_floor_days(), now)
    floor_key = format_date_key(floor_start)

    _emit(on_progress, ScanProgress(found_files=0))
    candidates = await walk_log_files(
        root,
        floor_start,
        cancel,
        lambda found: _emit(on_progress, ScanProgress(found_files=found)),
    )

    total = len(candidates)
    _emit(on_progress, ParseProgress(
        parsed_files=0,
        total_files=total,
        current_file=os.path.basename(candidates[0]) if candidates else None,
    ))

    results: List[LogFile] = []
    for index, path in enumerate(candidates, start=1):
        _check_cancelled(cancel)
        if index == 1 or index == total or index % PROGRESS_EVERY == 0:
            _emit(on_progress, ParseProgress(
                parsed_files=index,
                total_files=total,
                current_file=os.path.basename(path),
            ))

        try:
            log_file = await parse_log_file(path, floor_key, cancel)
        except OSError as e:
            logger.debug("Skipping unreadable file %s: %s", path, e)
            continue
        if log_file is not None:
            results.append(log_file)
        await asyncio.sleep(0)

    _check_cancelled(cancel)
    _emit(on_progress, FinalizeProgress())
    logger.debug("Collected %d of %d session logs under %s", len(results), total, root)
    return results
