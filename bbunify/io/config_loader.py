from __future__ import annotations
from typing import Any, Dict, Optional
import json
from pathlib import Path

from bbunify.core.options import UnifyOptions

def load_config(path: str | Path) -> Dict[str, Any]:
    p = Path(path)
    with p.open("r", encoding="utf-8") as f:
        text = f.read()
    suffix = p.suffix.lower()
    if suffix in (".yaml", ".yml"):
        try:
            import yaml  # type: ignore
        except Exception as e:
            raise ImportError("PyYAML is required to load YAML config files. Install with `pip install pyyaml`.") from e
        try:
            data = yaml.safe_load(text) or {}
        except yaml.YAMLError as e:
            raise ValueError(f"{p}: invalid YAML: {e}") from e
    else:
        # default to JSON
        data = json.loads(text or "{}")
    if not isinstance(data, dict):
        raise ValueError(f"{p}: configuration must be a mapping, got {type(data).__name__}")
    return data

def _as_bool(key: str, value: Any) -> bool:
    if isinstance(value, bool):
        return value
    raise ValueError(f"config key {key!r} must be true or false, got {value!r}")

def _make_jobs(value: Any) -> Optional[int]:
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, int) or value < 1:
        raise ValueError(f"config key 'jobs' must be a positive integer, got {value!r}")
    return value

def _make_output_dir(value: Any) -> Optional[Path]:
    if value is None or value == "":
        return None
    if not isinstance(value, (str, Path)):
        raise ValueError(f"config key 'output_dir' must be a path, got {value!r}")
    return Path(value)

def build_options(cfg: Dict[str, Any] | None = None, **overrides: Any) -> UnifyOptions:
    """
    Build UnifyOptions from a config mapping. Keyword overrides (typically CLI
    flags) win over the mapping; overrides that are None are ignored so that
    unset flags fall through to the config file. Unknown keys are ignored.
    """
    merged: Dict[str, Any] = dict(cfg or {})
    merged.update({k: v for k, v in overrides.items() if v is not None})
    return UnifyOptions(
        output_dir=_make_output_dir(merged.get("output_dir")),
        strip=_as_bool("strip", merged.get("strip", False)),
        verbose=_as_bool("verbose", merged.get("verbose", False)),
        jobs=_make_jobs(merged.get("jobs")),
        check_ids=_as_bool("check_ids", merged.get("check_ids", False)),
    )
