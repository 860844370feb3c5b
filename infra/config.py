"""Configuration handling for Asymfit 1.x."""
from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Dict

log = logging.getLogger(__name__)

DEFAULT_CONFIG: Dict[str, Any] = {
    "version": "1.0",
    "minimizer": {
        "method": "migrad",
        "strategy": 1,
        "tolerance": 1e-6,
        "max_iterations": 1000,
        "max_function_calls": 10000,
        "errordef": 1.0,
        "xtol": 1e-10,
        "fallbacks": ["simplex"],
    },
    "report": {
        "alpha": 0.05,
    },
    "batch": {
        "patterns": "*.csv;*.txt;*.dat",
        "model": "exponential_decay",
        "init": [0.2, 900.0],
        "steps": [0.01, 10.0],
        "output": "batch_summary.csv",
    },
}

# scipy.optimize option names (``options={"maxfev", "maxiter"}``, ``tol``)
# accepted in the ``minimizer`` section and rewritten to the native keys.
SCIPY_ALIASES = {
    "maxfev": "max_function_calls",
    "maxiter": "max_iterations",
    "tol": "tolerance",
}


def _merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    """Recursively merge ``override`` into ``base`` and return ``base``."""

    for key, val in override.items():
        if (
            isinstance(val, dict)
            and key in base
            and isinstance(base[key], dict)
        ):
            _merge(base[key], val)
        else:
            base[key] = val
    return base


def _migrate(data: Dict[str, Any]) -> None:
    """Rename scipy-style aliases in place; an explicit native key wins."""

    minimizer = data.get("minimizer")
    if not isinstance(minimizer, dict):
        return
    for old, new in SCIPY_ALIASES.items():
        if old in minimizer:
            val = minimizer.pop(old)
            minimizer.setdefault(new, val)


def defaults() -> Dict[str, Any]:
    return json.loads(json.dumps(DEFAULT_CONFIG))  # deep copy


def load(path: str | Path) -> Dict[str, Any]:
    """Load configuration from *path* or return defaults if missing.

    Values in the file are merged over :data:`DEFAULT_CONFIG`.  A file that is
    not valid JSON is ignored with a warning.
    """

    p = Path(path)
    cfg = defaults()
    if not p.exists():
        return cfg
    try:
        with p.open("r", encoding="utf-8") as fh:
            data = json.load(fh)
    except json.JSONDecodeError as exc:
        log.warning("ignoring corrupt config %s: %s", p, exc)
        return cfg
    if isinstance(data, dict):
        _migrate(data)
        _merge(cfg, data)
    return cfg


def section(cfg: Dict[str, Any], name: str) -> Dict[str, Any]:
    """Return the ``name`` section of ``cfg``; a missing section is a ``ValueError``."""

    try:
        sec = cfg[name]
    except KeyError:
        raise ValueError(f"configuration has no '{name}' section") from None
    if not isinstance(sec, dict):
        raise ValueError(f"configuration section '{name}' must be a mapping")
    return sec


def save(path: str | Path, cfg: Dict[str, Any]) -> None:
    """Persist ``cfg`` to ``path``."""

    p = Path(path)
    p.parent.mkdir(parents=True, exist_ok=True)
    with p.open("w", encoding="utf-8") as fh:
        json.dump(cfg, fh, indent=2, sort_keys=True)
