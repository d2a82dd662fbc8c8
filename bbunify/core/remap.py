from __future__ import annotations
from dataclasses import dataclass
from pathlib import Path
from typing import Tuple

import numpy as np

from bbunify.core.entry import BasicBlockEntry, Trace
from bbunify.core.errors import ContiguityError, IntegrityViolation
from bbunify.core.parser import RawTrace, read_raw_trace
from bbunify.core.reference import ReferenceSet


@dataclass(frozen=True)
class UnifyStats:
    total: int
    kept: int
    dropped: int


def check_contiguous(raw: RawTrace) -> None:
    """Require source identifiers to be exactly 0, 1, ..., n-1."""
    expected = np.arange(len(raw), dtype=np.int64)
    bad = np.flatnonzero(raw.identifiers != expected)
    if bad.size:
        i = int(bad[0])
        raise ContiguityError(
            raw.source or "<trace>",
            i + 1,
            f"identifier {int(raw.identifiers[i]):#x} where {i:#x} was expected",
        )


def unify(raw: RawTrace, reference: ReferenceSet, *, check_ids: bool = False) -> Tuple[Trace, UnifyStats]:
    """
    Drop entries whose program counter is not in `reference` and compact identifiers.

    Each retained entry's identifier is reduced by the number of entries dropped
    before it, so a trace numbered 0..n-1 comes out numbered 0..kept-1. If the
    source numbering has gaps, the output numbering keeps them. An identifier
    that would drop below zero is a ContiguityError even without check_ids.
    """
    if check_ids:
        check_contiguous(raw)

    keep = reference.contains_all(raw.program_counters)
    dropped_before = np.cumsum(~keep, dtype=np.int64)
    new_ids = raw.identifiers[keep] - dropped_before[keep]
    negative = np.flatnonzero(new_ids < 0)
    if negative.size:
        row = int(np.flatnonzero(keep)[negative[0]])
        raise ContiguityError(
            raw.source or "<trace>",
            row + 1,
            f"identifier {int(raw.identifiers[row]):#x} is smaller than the "
            f"{int(dropped_before[row])} entries dropped before it",
        )

    entries = [
        BasicBlockEntry(ident, pc, hits)
        for ident, pc, hits in zip(
            new_ids.tolist(),
            raw.program_counters[keep].tolist(),
            raw.hit_counters[keep].tolist(),
        )
    ]

    kept = int(np.count_nonzero(keep))
    dropped = int(dropped_before[-1]) if dropped_before.size else 0
    if len(entries) != kept or kept + dropped != len(raw):
        raise IntegrityViolation(
            f"{raw.source}: {len(entries)} entries emitted, {kept} passed the membership test, "
            f"{dropped} dropped, {len(raw)} read"
        )

    return Trace(entries, source=raw.source), UnifyStats(total=len(raw), kept=kept, dropped=dropped)


def unify_file(path: str | Path, reference: ReferenceSet, *, check_ids: bool = False) -> Tuple[Trace, UnifyStats]:
    return unify(read_raw_trace(path), reference, check_ids=check_ids)
