from __future__ import annotations
import logging
import re
from pathlib import Path
from typing import Iterable, Iterator, Optional

import numpy as np

logger = logging.getLogger(__name__)

MAX_ADDRESS = 2**64 - 1

HEX_DIGITS = re.compile(r"[0-9a-fA-F]+")


def parse_address(text: str) -> Optional[int]:
    """Parse one hex address, or None if the text is not a usable 64-bit address."""
    if not HEX_DIGITS.fullmatch(text):
        return None
    value = int(text, 16)
    if value > MAX_ADDRESS:
        return None
    return value


class ReferenceSet:
    """
    Immutable set of valid basic-block addresses.

    Stored as a sorted, de-duplicated uint64 array so that single lookups are a
    binary search and whole trace columns can be tested with one np.isin call.
    """

    def __init__(self, addresses: Iterable[int] = ()) -> None:
        arr = np.fromiter(addresses, dtype=np.uint64)
        self._addresses = np.unique(arr)
        self._addresses.setflags(write=False)

    @property
    def addresses(self) -> np.ndarray:
        return self._addresses

    def __len__(self) -> int:
        return int(self._addresses.size)

    def __iter__(self) -> Iterator[int]:
        return iter(self._addresses.tolist())

    def __contains__(self, pc: object) -> bool:
        if not isinstance(pc, (int, np.integer)) or isinstance(pc, bool):
            return False
        if pc < 0 or pc > MAX_ADDRESS:
            return False
        key = np.uint64(pc)
        idx = int(np.searchsorted(self._addresses, key))
        return bool(idx < self._addresses.size and self._addresses[idx] == key)

    def contains_all(self, pcs: np.ndarray) -> np.ndarray:
        """Boolean mask, True where pcs[i] is a valid block."""
        return np.isin(np.asarray(pcs, dtype=np.uint64), self._addresses)

    def __repr__(self) -> str:
        return f"ReferenceSet({len(self)} addresses)"


def load_reference_set(path: str | Path) -> ReferenceSet:
    p = Path(path)
    addresses = []
    skipped = 0
    with p.open("rb") as f:
        for data in f:
            try:
                line = data.decode("utf-8")
            except UnicodeDecodeError:
                skipped += 1
                continue
            value = parse_address(line.strip())
            if value is None:
                skipped += 1
                continue
            addresses.append(value)
    ref = ReferenceSet(addresses)
    logger.debug("loaded %d valid blocks from %s (%d lines ignored)", len(ref), p, skipped)
    return ref
