from __future__ import annotations
import json
from typing import Any, Dict
from pathlib import Path
from bbunify.core.entry import BasicBlockEntry, Trace
from bbunify.core.parser import read_raw_trace

def format_entry(entry: BasicBlockEntry, strip: bool = False) -> str:
    if strip:
        return f"{entry.program_counter:x} {entry.hit_counter}"
    return f"{entry.identifier:04x} {entry.program_counter:x} {entry.hit_counter}"

def save_trace(path: str | Path, trace: Trace, strip: bool = False) -> None:
    # Parent directories are the caller's job.
    p = Path(path)
    with p.open("w", encoding="utf-8") as f:
        for entry in trace:
            f.write(format_entry(entry, strip))
            f.write("\n")

def load_trace(path: str | Path) -> Trace:
    raw = read_raw_trace(path)
    return Trace(
        (
            BasicBlockEntry(i, pc, h)
            for i, pc, h in zip(raw.identifiers.tolist(), raw.program_counters.tolist(), raw.hit_counters.tolist())
        ),
        source=raw.source,
    )

def save_json(path: str | Path, obj: Dict[str, Any]) -> None:
    p = Path(path)
    p.parent.mkdir(parents=True, exist_ok=True)
    with p.open("w", encoding="utf-8") as f:
        json.dump(obj, f, ensure_ascii=False, indent=2)
