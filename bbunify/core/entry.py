from __future__ import annotations
from dataclasses import dataclass
from typing import Iterable, Iterator, List, Optional, Tuple

@dataclass(frozen=True)
class BasicBlockEntry:
    identifier: int
    program_counter: int
    hit_counter: int

class Trace:
    def __init__(self, entries: Iterable[BasicBlockEntry] | None = None, source: Optional[str] = None) -> None:
        self.entries: Tuple[BasicBlockEntry, ...] = tuple(entries or ())
        self.source = source

    def __len__(self) -> int:
        return len(self.entries)

    def __iter__(self) -> Iterator[BasicBlockEntry]:
        return iter(self.entries)

    def __getitem__(self, idx: int) -> BasicBlockEntry:
        return self.entries[idx]

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Trace):
            return NotImplemented
        return self.entries == other.entries

    def __repr__(self) -> str:
        return f"Trace(source={self.source!r}, entries={len(self.entries)})"

    def identifiers(self) -> List[int]:
        return [e.identifier for e in self.entries]

    def addresses(self) -> List[int]:
        return [e.program_counter for e in self.entries]

    def pairs(self) -> List[Tuple[int, int]]:
        """(program_counter, hit_counter) per entry, i.e. what the stripped form keeps."""
        return [(e.program_counter, e.hit_counter) for e in self.entries]

