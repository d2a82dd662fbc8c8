from __future__ import annotations
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

UNIFIED_EXT = "unified"
STRIPPED_EXT = "stripped"

@dataclass(frozen=True)
class UnifyOptions:
    output_dir: Optional[Path] = None  # None: write each output next to its input
    strip: bool = False
    verbose: bool = False
    jobs: Optional[int] = None  # None: one worker per CPU
    check_ids: bool = False

    @property
    def extension(self) -> str:
        return STRIPPED_EXT if self.strip else UNIFIED_EXT
