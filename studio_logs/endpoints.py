from fastapi import APIRouter, Query, HTTPException
from fastapi.responses import PlainTextResponse
from collections import Counter
from typing import Annotated
from datetime import datetime
from pathlib import Path
import json

from studio_logs import file as file_logs

router = APIRouter(prefix="/admin/logs", tags=["logs"])

LOG_TYPES = ("server", "cards", "analysis", "wizard")
LogType = Annotated[str, Query(pattern=f"^({'|'.join(LOG_TYPES)})$")]


def log_path(log_type: str) -> Path:
    # LOG_DIR is read per call
    return Path(file_logs.LOG_DIR) / f"{log_type}.log"


def read_lines(log_type: str):
    """All lines of a log, or None when the file does not exist yet."""
    path = log_path(log_type)
    if not path.exists():
        return None
    with open(path) as f:
        return f.read().splitlines()


def parse_record(line: str):
    try:
        record = json.loads(line)
    except json.JSONDecodeError:
        return {"raw": line}
    return record if isinstance(record, dict) else {"raw": line}


def missing(log_type: str):
    return {"records": [], "count": 0, "log_type": log_type, "error": f"No {log_type} log file"}


@router.get("/tail")
async def tail_logs(log_type: LogType = "server", lines: int = Query(50, ge=1, le=500)):
    all_lines = read_lines(log_type)
    if all_lines is None:
        return missing(log_type)
    records = [parse_record(l) for l in all_lines[-lines:]]
    return {"records": records, "count": len(records), "total": len(all_lines), "log_type": log_type}


@router.get("/head")
async def head_logs(log_type: LogType = "server", lines: int = Query(50, ge=1, le=500)):
    all_lines = read_lines(log_type)
    if all_lines is None:
        return missing(log_type)
    records = [parse_record(l) for l in all_lines[:lines]]
    return {"records": records, "count": len(records), "total": len(all_lines), "log_type": log_type}


@router.get("/search")
async def search_logs(
    log_type: LogType = "server",
    level: str = None,
    event: str = None,
    card_id: str = None,
    session_id: str = None,
    contains: str = None,
    limit: int = Query(100, ge=1, le=1000)
):
    """
    Filter structured records. ``level``/``event``/``card_id``/``session_id``
    compare against the record's fields; ``contains`` is a plain substring
    match over the whole line.
    """
    all_lines = read_lines(log_type)
    if all_lines is None:
        return missing(log_type)

    wanted = {
        "level": level.upper() if level else None,
        "event": event,
        "card_id": card_id,
        "session_id": session_id,
    }
    wanted = {k: v for k, v in wanted.items() if v}

    results = []
    for line in all_lines:
        if contains and contains.lower() not in line.lower():
            continue
        record = parse_record(line)
        if any(record.get(k) != v for k, v in wanted.items()):
            continue
        results.append(record)
        if len(results) >= limit:
            break

    return {"records": results, "count": len(results), "log_type": log_type}


@router.get("/events")
async def event_counts(log_type: LogType = "server"):
    """How often each event name occurs, most frequent first."""
    all_lines = read_lines(log_type)
    if all_lines is None:
        return {"events": {}, "log_type": log_type, "error": f"No {log_type} log file"}
    counts = Counter(parse_record(l).get("event", "unknown") for l in all_lines)
    return {"events": dict(counts.most_common()), "log_type": log_type}


@router.get("/available")
async def list_available_logs():
    log_dir = Path(file_logs.LOG_DIR)
    if not log_dir.exists():
        return {"logs": []}

    logs = []
    for f in sorted(log_dir.glob("*.log")):
        stat = f.stat()
        logs.append({
            "name": f.stem,
            "size_bytes": stat.st_size,
            "modified": datetime.fromtimestamp(stat.st_mtime).isoformat()
        })
    return {"logs": logs}


@router.get("/raw/{log_type}")
async def get_raw_log(log_type: str):
    if log_type not in LOG_TYPES:
        raise HTTPException(400, f"Invalid log type. Allowed: {', '.join(LOG_TYPES)}")

    path = log_path(log_type)
    if not path.exists():
        raise HTTPException(404, f"No {log_type} log file")

    return PlainTextResponse(path.read_text())
