"""Batch processing orchestrator for Asymfit 1.x.

This module implements a lightweight batch runner that loads observation
tables matching glob patterns, fits each one independently with the
configured model and minimizer, and writes a combined summary CSV.
"""

from __future__ import annotations

import glob
import logging
from pathlib import Path
from typing import Any, Dict, Iterable, List

import numpy as np
import pandas as pd

import core.data_io as data_io
from core import fit_api
from infra import config as config_mod

logger = logging.getLogger(__name__)


def _expand(patterns: Iterable[str]) -> List[str]:
    files: list[str] = []
    for pattern in patterns:
        for part in str(pattern).split(";"):
            part = part.strip()
            if part:
                files.extend(sorted(glob.glob(part)))
    # keep first occurrence when patterns overlap
    return list(dict.fromkeys(files))


def _summary_row(path: str, result, names) -> Dict[str, Any]:
    row: Dict[str, Any] = {
        "file": Path(path).name,
        "success": bool(result.success) if result is not None else False,
        "chi2": result.objective_at_minimum if result is not None else np.nan,
        "ndof": result.diagnostics.get("ndof", np.nan) if result is not None else np.nan,
    }
    for i, name in enumerate(names):
        if result is None:
            row[name] = np.nan
            row[f"{name}_err"] = np.nan
        else:
            row[name] = float(result.parameters[i])
            row[f"{name}_err"] = float(result.standard_errors[i])
    return row


def run_batch(
    patterns: Iterable[str],
    config: dict,
    *,
    progress=None,
    log=None,
) -> tuple[int, int]:
    """Fit every file matching ``patterns`` and write a summary table.

    Parameters
    ----------
    patterns:
        Iterable of glob patterns (``;`` separates several in one string). All
        matching files are processed in sorted order.
    config:
        Full configuration mapping as returned by :func:`infra.config.load`.
        The ``minimizer`` section sets the stopping policy and method; the
        ``batch`` section provides ``model``, ``init``, ``steps`` and the
        summary ``output`` path.
    progress:
        Optional callable ``progress(i, total)``.
    log:
        Optional callable receiving one status line per file.

    Returns
    -------
    (n_ok, n_processed)
        Each file gets its own objective and minimizer state; a file that fails
        to load counts as processed but not ok.
    """

    files = _expand(patterns)
    if not files:
        raise FileNotFoundError("no files matched patterns")
    total = len(files)

    opts = config_mod.section(config, "minimizer")
    batch_cfg = config_mod.section(config, "batch")
    model_name = batch_cfg.get("model", "exponential_decay")
    _, names = fit_api.resolve_model(model_name)
    step_cfg = fit_api.build_config(batch_cfg["init"], batch_cfg["steps"], opts, names=names)
    method = str(opts.get("method", "migrad"))
    fallbacks = tuple(opts.get("fallbacks", ()))
    output = Path(batch_cfg.get("output", "batch_summary.csv"))

    rows: list[dict] = []
    ok = 0
    processed = 0
    for i, path in enumerate(files, start=1):
        try:
            observations = data_io.load_observations(path)
        except (OSError, ValueError) as exc:
            msg = f"{Path(path).name}: load failed ({exc})"
            logger.warning(msg)
            if log:
                log(msg)
            rows.append(_summary_row(path, None, step_cfg.names))
            processed = i
            if progress:
                progress(i, total)
            continue

        result = fit_api.run_fit(model_name, observations, step_cfg, method, fallbacks)
        rows.append(_summary_row(path, result, step_cfg.names))
        msg = f"{Path(path).name}: {'ok' if result.success else 'fail'} chi2={result.objective_at_minimum:.4g}"
        logger.info(msg)
        if log:
            log(msg)
        if result.success:
            ok += 1
        processed = i
        if progress:
            progress(i, total)

    data_io.write_dataframe(pd.DataFrame(rows), output)
    logger.info("batch summary written to %s (%d/%d ok)", output, ok, processed)
    return ok, processed
