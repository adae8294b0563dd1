from __future__ import annotations
import json, os, shutil, tempfile, time
from pathlib import Path
from typing import Any, Dict, List

import pandas as pd
from .config import ROOT, CACHE_DIR
from .models import ExtractedRecord

# default result store is a JSONL file next to the repo
OUTPUT_DEFAULT = ROOT / "results.jsonl"
LOGS_DIR = CACHE_DIR / "logs"


# ---------- unified event log ----------
def log_event(event_type: str, data: dict | None = None) -> None:
    """Diagnostic side channel. Never raises and never feeds the result store."""
    try:
        LOGS_DIR.mkdir(parents=True, exist_ok=True)
        record = {
            "ts": int(time.time()),
            "event": event_type,
            **(data or {}),
        }
        # Append to unified log file
        with open(LOGS_DIR / "unified_log.jsonl", "a", encoding="utf-8") as fh:
            fh.write(json.dumps(record, ensure_ascii=False, default=str) + "\n")
        # Also write a rolling latest.json for quick inspection
        with open(LOGS_DIR / "latest.json", "w", encoding="utf-8") as fh2:
            json.dump(record, fh2, ensure_ascii=False, default=str)
    except Exception:
        pass


# ---------- task input ----------
def read_task_input(path: Path) -> Dict[str, Any]:
    """Read the raw JSON task options. Validation happens in ScrapeTask.from_input."""
    with open(path, encoding="utf-8") as fh:
        data = json.load(fh)
    if not isinstance(data, dict):
        raise ValueError(f"{path}: task input must be a JSON object")
    return data


# ---------- result store ----------
class JsonlResultStore:
    """Append-only store: one JSON record per line, flushed and fsync'd per push."""

    def __init__(self, path: Path):
        self.path = Path(path)
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.pushed = 0

    def push(self, record: ExtractedRecord) -> None:
        with open(self.path, "a", encoding="utf-8") as fh:
            fh.write(record.model_dump_json() + "\n")
            fh.flush()
            os.fsync(fh.fileno())
        self.pushed += 1

    def read_all(self) -> List[Dict[str, Any]]:
        if not self.path.exists():
            return []
        with open(self.path, encoding="utf-8") as fh:
            return [json.loads(line) for line in fh if line.strip()]


# ---------- Excel export ----------
def records_frame(records: List[Dict[str, Any]]) -> pd.DataFrame:
    """Flatten records for a spreadsheet; list columns are kept as JSON text."""
    df = pd.DataFrame(records)
    for col in df.columns:
        if df[col].map(lambda v: isinstance(v, (list, dict))).any():
            df[col] = df[col].map(lambda v: json.dumps(v, ensure_ascii=False) if isinstance(v, (list, dict)) else v)
    return df


def atomic_write_excel(df: pd.DataFrame, path: Path) -> None:
    """
    Write DataFrame to XLSX atomically:
    1. write to temp file,
    2. move into place (POSIX-style atomic replace on same filesystem).
    """
    tmp_fd, tmp_path = tempfile.mkstemp(suffix=".xlsx", dir=str(path.parent))
    os.close(tmp_fd)
    with pd.ExcelWriter(tmp_path, engine="openpyxl") as xlw:
        df.to_excel(xlw, index=False)
    shutil.move(tmp_path, path)  # atomic on same filesystem


def export_excel(store: JsonlResultStore, path: Path) -> int:
    records = store.read_all()
    atomic_write_excel(records_frame(records), Path(path))
    return len(records)
