"""Expand trace inputs and unify each file, in parallel, against one reference set."""

from __future__ import annotations

import logging
import math
import os
from concurrent.futures import ProcessPoolExecutor
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Iterable, Iterator, List, Optional, Sequence, Tuple

from bbunify.core.errors import TraceFormatError
from bbunify.core.options import STRIPPED_EXT, UNIFIED_EXT, UnifyOptions
from bbunify.core.reference import ReferenceSet, load_reference_set
from bbunify.core.remap import unify_file
from bbunify.io.trace_io import save_trace

logger = logging.getLogger(__name__)

_OUTPUT_SUFFIXES = (f".{UNIFIED_EXT}", f".{STRIPPED_EXT}")


@dataclass
class FileOutcome:
    """Result of one file's pipeline run."""
    source: Path
    output: Optional[Path] = None
    total: int = 0
    kept: int = 0
    dropped: int = 0
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass
class BatchResult:
    outcomes: List[FileOutcome] = field(default_factory=list)

    @property
    def succeeded(self) -> List[FileOutcome]:
        return [o for o in self.outcomes if o.ok]

    @property
    def failed(self) -> List[FileOutcome]:
        return [o for o in self.outcomes if not o.ok]

    @property
    def ok(self) -> bool:
        return not self.failed

    @property
    def exit_code(self) -> int:
        return 0 if self.ok else 1


def output_path_for(source: str | Path, output_dir: Optional[str | Path], strip: bool = False) -> Path:
    src = Path(source)
    ext = STRIPPED_EXT if strip else UNIFIED_EXT
    base = src.parent if output_dir is None else Path(output_dir)
    return base / f"{src.stem}.{ext}"


def expand_inputs(paths: Iterable[str | Path]) -> Tuple[List[Path], List[FileOutcome]]:
    """
    Replace each directory with the regular files directly inside it.
    Files already named .unified or .stripped are earlier outputs and are skipped.

    Returns (files, failures). A directory that cannot be listed becomes a
    failure rather than being retried as a plain file.
    """
    files: List[Path] = []
    failures: List[FileOutcome] = []
    for raw in paths:
        p = Path(raw)
        if not p.is_dir():
            files.append(p)
            continue
        try:
            with os.scandir(p) as it:
                entries = sorted(it, key=lambda e: e.name)
            for entry in entries:
                try:
                    if entry.is_dir():
                        logger.debug("skipping subdirectory %s", entry.path)
                        continue
                    if entry.name.endswith(_OUTPUT_SUFFIXES):
                        logger.debug("skipping earlier output %s", entry.path)
                        continue
                except OSError as e:
                    failures.append(FileOutcome(source=Path(entry.path), error=f"cannot stat entry: {e}"))
                    continue
                files.append(Path(entry.path))
        except OSError as e:
            failures.append(FileOutcome(source=p, error=f"cannot list directory: {e}"))
    return files, failures


def process_file(source: Path, reference: ReferenceSet, options: UnifyOptions) -> FileOutcome:
    """Unify one file. Bad input and I/O failures are captured; integrity violations are not."""
    out = output_path_for(source, options.output_dir, options.strip)
    try:
        trace, stats = unify_file(source, reference, check_ids=options.check_ids)
        save_trace(out, trace, strip=options.strip)
    except (OSError, TraceFormatError) as e:
        return FileOutcome(source=source, error=str(e))
    return FileOutcome(source=source, output=out, total=stats.total, kept=stats.kept, dropped=stats.dropped)


def _process_chunk(chunk: Sequence[Path], reference: ReferenceSet, options: UnifyOptions) -> List[FileOutcome]:
    return [process_file(p, reference, options) for p in chunk]


def chunk_list(data: Sequence[Path], n: int) -> Iterator[Sequence[Path]]:
    """Split the data list into n nearly equal-sized chunks."""
    chunk_size = max(1, math.ceil(len(data) / n))
    for i in range(0, len(data), chunk_size):
        yield data[i : i + chunk_size]


def _warn_on_collisions(files: Sequence[Path], options: UnifyOptions) -> None:
    seen: Dict[Path, Path] = {}
    for f in files:
        out = output_path_for(f, options.output_dir, options.strip)
        if out in seen:
            logger.warning("%s and %s both write %s", seen[out], f, out)
        else:
            seen[out] = f


def run_batch(reference: ReferenceSet, inputs: Iterable[str | Path], options: UnifyOptions | None = None) -> BatchResult:
    options = options or UnifyOptions()
    if options.output_dir is not None:
        Path(options.output_dir).mkdir(parents=True, exist_ok=True)

    files, failures = expand_inputs(inputs)
    _warn_on_collisions(files, options)

    nproc = options.jobs or os.cpu_count() or 1
    outcomes: List[FileOutcome] = []
    if nproc <= 1 or len(files) <= 1:
        outcomes.extend(_process_chunk(files, reference, options))
    else:
        # One chunk per worker: the reference set is pickled once per chunk, not per file.
        file_chunks = list(chunk_list(files, nproc))
        with ProcessPoolExecutor(max_workers=min(nproc, len(file_chunks))) as executor:
            futures = [executor.submit(_process_chunk, chunk, reference, options) for chunk in file_chunks]
            for future in futures:
                # IntegrityViolation propagates from here and aborts the run.
                outcomes.extend(future.result())

    result = BatchResult(outcomes=failures + outcomes)
    for o in result.outcomes:
        if not o.ok:
            logger.error("%s: %s", o.source, o.error)
        elif options.verbose:
            logger.info("%s: dropped %d of %d entries -> %s", o.source, o.dropped, o.total, o.output)
    return result


def unify_paths(reference_path: str | Path, inputs: Iterable[str | Path], options: UnifyOptions | None = None) -> Tuple[ReferenceSet, BatchResult]:
    """Load the reference set, then unify every input. A reference load failure raises."""
    reference = load_reference_set(reference_path)
    return reference, run_batch(reference, inputs, options)
