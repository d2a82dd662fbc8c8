from .entry import BasicBlockEntry, Trace
from .errors import UnifyError, TraceFormatError, ParseError, ContiguityError, IntegrityViolation
from .reference import ReferenceSet, load_reference_set, parse_address
from .parser import RawTrace, parse_line, parse_lines, read_raw_trace
from .remap import UnifyStats, check_contiguous, unify, unify_file
from .options import UnifyOptions, UNIFIED_EXT, STRIPPED_EXT

__all__ = [
    "BasicBlockEntry",
    "Trace",
    "UnifyError",
    "TraceFormatError",
    "ParseError",
    "ContiguityError",
    "IntegrityViolation",
    "ReferenceSet",
    "load_reference_set",
    "parse_address",
    "RawTrace",
    "parse_line",
    "parse_lines",
    "read_raw_trace",
    "UnifyStats",
    "check_contiguous",
    "unify",
    "unify_file",
    "UnifyOptions",
    "UNIFIED_EXT",
    "STRIPPED_EXT",
]
