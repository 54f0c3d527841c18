"""Evaluation options loaded from a YAML file.

Example ``config.yaml``::

    output: results
    models: models
    timeout_ms: 60000
    memory_gb: 4
    system_iterations: 3
    algorithm_iterations: "1:5"
    algorithms:
      sat4j: ["java", "-jar", "sat4j.jar", "{system_path}", "--seed", "{seed}"]
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field, fields
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional

import yaml

from evalmatrix.exceptions import InvalidConfiguration

_PATH_KEYS = ("output", "models", "resources")


def parse_range(value: Any, name: str = "range") -> List[int]:
    """Expand a range option into its list of iteration numbers.

    Accepts an int ``n`` (``1..n``), a string ``"a:b"`` (inclusive), a
    string holding a single int, or an explicit list of ints.
    """
    if isinstance(value, bool):
        raise InvalidConfiguration(f"{name}: expected int, 'a:b' or list, got {value!r}")
    if isinstance(value, int):
        if value <= 0:
            raise InvalidConfiguration(f"{name}: must be positive, got {value}")
        return list(range(1, value + 1))
    if isinstance(value, str):
        text = value.strip()
        try:
            if ":" in text:
                lo, hi = (int(part) for part in text.split(":", 1))
            else:
                lo, hi = 1, int(text)
        except ValueError as e:
            raise InvalidConfiguration(f"{name}: cannot parse range {value!r}") from e
        if hi < lo:
            raise InvalidConfiguration(f"{name}: empty range {value!r}")
        return list(range(lo, hi + 1))
    if isinstance(value, (list, tuple)):
        try:
            items = [int(v) for v in value]
        except (TypeError, ValueError) as e:
            raise InvalidConfiguration(f"{name}: list must contain integers") from e
        if not items:
            raise InvalidConfiguration(f"{name}: list must not be empty")
        return items
    raise InvalidConfiguration(f"{name}: expected int, 'a:b' or list, got {value!r}")


@dataclass
class EvaluationConfig:
    """All options of an evaluation run.

    ``explicit_keys`` remembers which options came from the file so that the
    run log can mark the rest as defaults.
    """

    output: Path = Path("results")
    models: Path = Path("models")
    resources: Path = Path("resources")
    timeout_ms: Optional[int] = None
    memory_gb: int = -1
    seed: Optional[int] = None
    overwrite: bool = False
    systems: List[str] = field(default_factory=list)
    system_iterations: List[int] = field(default_factory=lambda: [1])
    algorithm_iterations: List[int] = field(default_factory=lambda: [1])
    algorithms: Dict[str, List[str]] = field(default_factory=dict)
    log_level: str = "INFO"
    explicit_keys: frozenset = field(default_factory=frozenset, compare=False, repr=False)

    @classmethod
    def option_names(cls) -> List[str]:
        return [f.name for f in fields(cls) if f.name != "explicit_keys"]

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any] | None) -> "EvaluationConfig":
        data = dict(data or {})
        unknown = sorted(set(data) - set(cls.option_names()))
        if unknown:
            raise InvalidConfiguration(f"Unknown option(s): {', '.join(unknown)}")

        kwargs: Dict[str, Any] = {}
        for key in _PATH_KEYS:
            if data.get(key) is not None:
                kwargs[key] = Path(data[key])
        if data.get("timeout_ms") is not None:
            kwargs["timeout_ms"] = int(data["timeout_ms"])
            if kwargs["timeout_ms"] <= 0:
                raise InvalidConfiguration("timeout_ms must be positive")
        if data.get("memory_gb") is not None:
            kwargs["memory_gb"] = int(data["memory_gb"])
        if data.get("seed") is not None:
            kwargs["seed"] = int(data["seed"])
        if "overwrite" in data:
            kwargs["overwrite"] = bool(data["overwrite"])
        if data.get("systems") is not None:
            systems = data["systems"]
            if isinstance(systems, str):
                systems = [s.strip() for s in systems.split(",") if s.strip()]
            kwargs["systems"] = [str(s) for s in systems]
        for key in ("system_iterations", "algorithm_iterations"):
            if data.get(key) is not None:
                kwargs[key] = parse_range(data[key], key)
        if data.get("algorithms") is not None:
            algorithms = data["algorithms"]
            if not isinstance(algorithms, Mapping):
                raise InvalidConfiguration("algorithms must map a name to a command list")
            parsed: Dict[str, List[str]] = {}
            for name, command in algorithms.items():
                if isinstance(command, str):
                    command = command.split()
                if not command:
                    raise InvalidConfiguration(f"algorithm {name!r}: command must not be empty")
                parsed[str(name)] = [str(part) for part in command]
            kwargs["algorithms"] = parsed
        if data.get("log_level") is not None:
            kwargs["log_level"] = str(data["log_level"]).upper()

        return cls(explicit_keys=frozenset(data), **kwargs)

    def is_default(self, name: str) -> bool:
        return name not in self.explicit_keys

    def to_mapping(self) -> Dict[str, Any]:
        """Plain-data view suitable for ``yaml.safe_dump``."""
        d = asdict(self)
        d.pop("explicit_keys")
        for key in _PATH_KEYS:
            d[key] = str(d[key])
        return d


def load_config(config_file: str | Path = "config.yaml") -> EvaluationConfig:
    """Load configuration from YAML file."""
    path = Path(config_file)
    if not path.is_file():
        raise FileNotFoundError(f"Config file not found: {path}")
    with open(path, "r", encoding="utf-8") as file:
        data = yaml.safe_load(file)
    if data is not None and not isinstance(data, Mapping):
        raise InvalidConfiguration(f"{path}: top level must be a mapping")
    return EvaluationConfig.from_mapping(data)
