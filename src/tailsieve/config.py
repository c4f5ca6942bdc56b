from __future__ import annotations
from dataclasses import dataclass, fields, replace
from typing import Any, Dict
import yaml

from .engine import DEFAULT_MAX_LINE_BYTES


@dataclass
class TailConfig:
    num_lines: int = 5
    follow: bool = False
    sieve: str = ""
    poll_interval: float = 0.2
    max_line_bytes: int = DEFAULT_MAX_LINE_BYTES
    color: bool = True

    @property
    def follow_enabled(self) -> bool:
        # a sieve only makes sense on new lines, so it turns follow on
        return self.follow or bool(self.sieve)

    def merged(self, **overrides: Any) -> "TailConfig":
        return replace(self, **{k: v for k, v in overrides.items() if v is not None})


_TYPES = {
    "num_lines": int,
    "follow": bool,
    "sieve": str,
    "poll_interval": (int, float),
    "max_line_bytes": int,
    "color": bool,
}


def _check(key: str, value: Any) -> Any:
    expected = _TYPES[key]
    # bool is an int subclass; don't let `num_lines: true` through
    if isinstance(value, bool) and expected is not bool:
        raise ValueError(f"Option '{key}' must be a number, got {value!r}")
    if not isinstance(value, expected):
        raise ValueError(f"Option '{key}' has the wrong type: {value!r}")

    if key == "num_lines" and value < 0:
        raise ValueError(f"Option 'num_lines' must be >= 0, got {value}")
    if key == "poll_interval":
        if value <= 0:
            raise ValueError(f"Option 'poll_interval' must be > 0, got {value}")
        value = float(value)
    if key == "max_line_bytes" and value <= 0:
        raise ValueError(f"Option 'max_line_bytes' must be > 0, got {value}")
    return value


def load_config(path: str) -> TailConfig:
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    except FileNotFoundError:
        raise FileNotFoundError(
            f"Configuration file not found: {path}\n"
            f"Please ensure the file exists or specify a different config with --config"
        )
    except yaml.YAMLError as e:
        raise ValueError(f"Invalid YAML in configuration file {path}: {e}")

    if not isinstance(data, dict):
        raise ValueError(f"Configuration file {path} must contain a mapping")

    known = {f.name for f in fields(TailConfig)}
    values: Dict[str, Any] = {}
    for key, value in data.items():
        if key not in known:
            raise ValueError(
                f"Unknown option '{key}' in {path}\n"
                f"Valid options: {', '.join(sorted(known))}"
            )
        if value is None:
            continue
        values[key] = _check(key, value)

    return TailConfig(**values)
