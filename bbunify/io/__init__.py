from .trace_io import format_entry, load_trace, save_trace, save_json
from .config_loader import load_config, build_options

__all__ = ["format_entry", "load_trace", "save_trace", "save_json", "load_config", "build_options"]
