"""Loading and persisting run parameters as TOML."""

from __future__ import annotations

import tomllib
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Optional, Union

import tomli_w

from .grid import GridSpec, RunParameters
from .verbosity import log

CONFIG_FILE_PATH = Path("config.toml")

_GRID_FIELDS = ("re_min", "re_max", "im_min", "im_max", "delta")


@dataclass(frozen=True)
class ConfigLoad:
    """Outcome of reading a configuration file.

    ``status`` is one of ``"loaded"``, ``"absent"``, ``"unreadable"`` or
    ``"malformed"``; ``params`` is only set when loaded.
    """

    status: str
    path: Path
    params: Optional[RunParameters] = None
    error: Optional[Exception] = None

    @property
    def loaded(self) -> bool:
        return self.status == "loaded"


def params_to_dict(params: RunParameters) -> dict[str, Any]:
    grid = params.grid
    return {
        "iterations": params.max_iterations,
        "bound": float(params.escape_radius),
        "threads": params.worker_count,
        "backend": params.backend,
        "executor": params.executor,
        "grid": {name: float(getattr(grid, name)) for name in _GRID_FIELDS},
    }


def _require(table: dict[str, Any], key: str, kinds: tuple[type, ...], where: str = "") -> Any:
    if key not in table:
        raise KeyError(f"missing field `{where}{key}`")
    value = table[key]
    if isinstance(value, bool) or not isinstance(value, kinds):
        raise TypeError(f"field `{where}{key}` has unexpected type {type(value).__name__}")
    return value


def params_from_dict(data: dict[str, Any]) -> RunParameters:
    """Build parameters from a parsed document.

    Missing or mistyped fields raise ``KeyError``/``TypeError``; values that are
    well formed but out of range raise :class:`~mandelgrid.errors.ConfigurationError`.
    """

    grid_table = data.get("grid")
    if not isinstance(grid_table, dict):
        raise KeyError("missing table `grid`")
    grid = GridSpec(**{name: float(_require(grid_table, name, (int, float), "grid.")) for name in _GRID_FIELDS})

    options: dict[str, Any] = {}
    for key in ("backend", "executor"):
        if key in data:
            options[key] = _require(data, key, (str,))

    return RunParameters(
        grid=grid,
        max_iterations=_require(data, "iterations", (int,)),
        escape_radius=float(_require(data, "bound", (int, float))),
        worker_count=_require(data, "threads", (int,)),
        **options,
    )


def load_config(path: Union[str, Path] = CONFIG_FILE_PATH) -> ConfigLoad:
    """Read ``path`` and report whether it was loaded, absent, unreadable or malformed."""

    path = Path(path)
    try:
        raw = path.read_bytes()
    except FileNotFoundError as exc:
        return ConfigLoad("absent", path, error=exc)
    except OSError as exc:
        return ConfigLoad("unreadable", path, error=exc)

    try:
        data = tomllib.loads(raw.decode("utf-8"))
        params = params_from_dict(data)
    except (tomllib.TOMLDecodeError, UnicodeDecodeError, KeyError, TypeError) as exc:
        return ConfigLoad("malformed", path, error=exc)
    return ConfigLoad("loaded", path, params=params)


def save_config(params: RunParameters, path: Union[str, Path] = CONFIG_FILE_PATH) -> None:
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(tomli_w.dumps(params_to_dict(params)), encoding="utf-8")


def load_or_create(path: Union[str, Path] = CONFIG_FILE_PATH) -> RunParameters:
    """Load ``path``, falling back to (and persisting) the defaults when it cannot be read.

    Out-of-range values are not masked: they raise
    :class:`~mandelgrid.errors.ConfigurationError`.
    """

    result = load_config(path)
    if result.loaded:
        log(f"Loaded configuration from {result.path}")
        return result.params

    if result.status == "absent":
        log(f"No configuration at {result.path}, writing defaults.")
    else:
        print(f"Configuration {result.path} is {result.status} ({result.error}), replacing it with defaults.")

    params = RunParameters()
    save_config(params, result.path)
    return params
