"""Data I/O helpers for Asymfit 1.x.

Observation tables are read into :class:`~core.observations.Observation`
records and fit results are exported as tidy CSV tables via pandas.
"""
from __future__ import annotations

import io
import re
from pathlib import Path
from typing import Dict, List, Tuple, Union

import pandas as pd

from fit.result import FitResult
from uncertainty.goodness import confidence_intervals

from .observations import Observation, observations_from_arrays

_COLUMNS = ("value", "covariate", "err_minus", "err_plus")

# Header aliases accepted for each canonical column.
_ALIASES: Dict[str, str] = {
    "value": "value",
    "y": "value",
    "exp": "value",
    "covariate": "covariate",
    "t": "covariate",
    "x": "covariate",
    "time": "covariate",
    "err_minus": "err_minus",
    "err_mnus": "err_minus",
    "err_lo": "err_minus",
    "err_low": "err_minus",
    "err_plus": "err_plus",
    "err_hi": "err_plus",
    "err_high": "err_plus",
    "err": "err",
    "error": "err",
    "sigma": "err",
}

_SEP = r"[,;\s]+"


def _clean_lines(path: Union[str, Path]) -> List[str]:
    lines = []
    with open(path, "r", encoding="utf-8", errors="ignore") as fh:
        for line in fh:
            # strip full-line and inline comments
            line = line.split("#", 1)[0].strip()
            if line:
                lines.append(line)
    return lines


def _is_number(token: str) -> bool:
    try:
        float(token)
    except ValueError:
        return False
    return True


def _canonical(label: str) -> str:
    key = re.sub(r"[\s\-]+", "_", str(label).strip().lower())
    return _ALIASES.get(key, key)


def load_observations(path: Union[str, Path]) -> Tuple[Observation, ...]:
    """Load an observation table from ``path``.

    The file holds ``value, covariate, err_minus, err_plus`` either under a
    header row (aliases such as ``y``/``t``/``err_lo``/``err_hi`` are
    understood, and a single ``err`` column means symmetric errors) or as
    three or four headerless numeric columns in that order.  Comma, semicolon
    and whitespace delimiters are accepted and ``#`` starts a comment.

    Raises ``ValueError`` when the table is empty, a required column is
    missing, a cell is not numeric or an error bar is not positive.
    """

    lines = _clean_lines(path)
    if not lines:
        raise ValueError(f"{path}: no data rows found")
    first = re.split(_SEP, lines[0])
    has_header = not all(_is_number(tok) for tok in first)
    df = pd.read_csv(
        io.StringIO("\n".join(lines)),
        sep=_SEP,
        engine="python",
        header=0 if has_header else None,
        dtype=str,
    )
    if has_header:
        df.columns = [_canonical(c) for c in df.columns]
        if "err" in df.columns:
            df = df.rename(columns={"err": "err_minus"})
            if "err_plus" not in df.columns:
                df["err_plus"] = df["err_minus"]
        missing = [c for c in _COLUMNS if c not in df.columns]
        if missing == ["err_plus"]:
            df["err_plus"] = df["err_minus"]
        elif missing:
            raise ValueError(f"{path}: missing column(s) {', '.join(missing)}")
    else:
        if df.shape[1] == 3:
            df[3] = df[2]
        if df.shape[1] < 4:
            raise ValueError(f"{path}: expected 3 or 4 columns, got {df.shape[1]}")
        df = df.iloc[:, :4]
        df.columns = list(_COLUMNS)
    if df.empty:
        raise ValueError(f"{path}: no data rows found")
    try:
        num = df[list(_COLUMNS)].apply(pd.to_numeric)
    except (TypeError, ValueError) as exc:
        raise ValueError(f"{path}: non-numeric value ({exc})") from None
    return observations_from_arrays(
        num["value"].to_numpy(),
        num["covariate"].to_numpy(),
        num["err_minus"].to_numpy(),
        num["err_plus"].to_numpy(),
    )


def param_table(result: FitResult, alpha: float = 0.05) -> pd.DataFrame:
    """Return one row per parameter with value, error and a normal interval."""

    lo, hi = confidence_intervals(result.parameters, result.standard_errors, alpha)
    return pd.DataFrame(
        {
            "name": list(result.names),
            "value": result.parameters,
            "error": result.standard_errors,
            "ci_lo": lo,
            "ci_hi": hi,
        }
    )


def write_dataframe(df: pd.DataFrame, path: Path) -> None:
    """Write ``df`` to ``path`` without introducing extra blank lines."""

    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("w", newline="", encoding="utf-8") as fh:
        df.to_csv(fh, index=False, lineterminator="\n")


def write_result_csv(path: Union[str, Path], result: FitResult, alpha: float = 0.05) -> Path:
    """Export the parameter table of ``result`` to ``path`` and return it."""

    out = Path(path)
    write_dataframe(param_table(result, alpha), out)
    return out
