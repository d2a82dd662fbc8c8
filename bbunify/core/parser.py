from __future__ import annotations
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, Iterator, List, Optional, Tuple

import numpy as np

from bbunify.core.errors import ParseError
from bbunify.core.reference import HEX_DIGITS, MAX_ADDRESS

MAX_IDENTIFIER = 2**63 - 1
MAX_HIT_COUNT = 2**64 - 1

DEC_DIGITS = re.compile(r"[0-9]+")

# (name, base, digit pattern, upper bound) for the three fields of a trace line
_FIELDS = (
    ("identifier", 16, HEX_DIGITS, MAX_IDENTIFIER),
    ("program counter", 16, HEX_DIGITS, MAX_ADDRESS),
    ("hit counter", 10, DEC_DIGITS, MAX_HIT_COUNT),
)


@dataclass(frozen=True)
class RawTrace:
    """Unfiltered columns of one trace file, in line order."""
    source: Optional[str]
    identifiers: np.ndarray
    program_counters: np.ndarray
    hit_counters: np.ndarray

    def __len__(self) -> int:
        return int(self.identifiers.size)


def parse_line(line: str, source: str | Path = "<trace>", lineno: Optional[int] = None) -> Tuple[int, int, int]:
    """
    Parse "<id:hex> <pc:hex> <hits:dec>".

    The line is split at its first two spaces, so the hit counter is whatever
    follows the second space.
    """
    parts = line.rstrip("\r\n").split(" ", 2)
    if len(parts) != 3:
        raise ParseError(source, lineno, f"expected 3 space-separated fields, got {len(parts)}: {line.rstrip()!r}")
    values: List[int] = []
    for text, (name, base, digits, upper) in zip(parts, _FIELDS):
        # int() alone would also take "0x", "_", "+" and surrounding whitespace
        if not digits.fullmatch(text):
            raise ParseError(source, lineno, f"invalid {name} {text!r}")
        value = int(text, base)
        if value > upper:
            raise ParseError(source, lineno, f"{name} out of range: {text!r}")
        values.append(value)
    return values[0], values[1], values[2]


def parse_lines(lines: Iterable[str], source: str | Path = "<trace>") -> RawTrace:
    ids: List[int] = []
    pcs: List[int] = []
    hits: List[int] = []
    for lineno, line in enumerate(lines, start=1):
        ident, pc, hit = parse_line(line, source, lineno)
        ids.append(ident)
        pcs.append(pc)
        hits.append(hit)
    return RawTrace(
        source=str(source),
        identifiers=np.array(ids, dtype=np.int64),
        program_counters=np.array(pcs, dtype=np.uint64),
        hit_counters=np.array(hits, dtype=np.uint64),
    )


def _decode_lines(f: Iterable[bytes], source: str | Path) -> Iterator[str]:
    for lineno, data in enumerate(f, start=1):
        try:
            yield data.decode("utf-8")
        except UnicodeDecodeError as e:
            raise ParseError(source, lineno, f"not valid UTF-8 ({e.reason} at byte {e.start})") from None


def read_raw_trace(path: str | Path) -> RawTrace:
    p = Path(path)
    # Decoded per line so an undecodable line is reported like any other bad line.
    with p.open("rb") as f:
        return parse_lines(_decode_lines(f, p), source=p)
