"""Plain-text rendering of fit results."""
from __future__ import annotations

from typing import List, Optional

from fit.result import FitResult
from uncertainty.goodness import chi2_per_dof, chi2_pvalue


def format_result(result: FitResult, n_points: Optional[int] = None, verbose: bool = False) -> List[str]:
    """Return report lines for ``result``.

    The first lines follow the classic layout::

        Fit success: yes
        lambda = 0.1 ± 0.003
        A0     = 1000 ± 20
        chi2   = 1.8 (Npoints = 9, Npar = 2)

    ``n_points`` defaults to ``result.diagnostics["n_points"]`` when present.
    With ``verbose`` the status, call counts, EDM and goodness of fit follow.
    """

    if n_points is None:
        n_points = result.diagnostics.get("n_points")
    n_par = int(result.parameters.size)
    width = max([len(n) for n in result.names] + [len("chi2")])

    lines = [f"Fit success: {'yes' if result.success else 'no'}"]
    for name, value, error in zip(result.names, result.parameters, result.standard_errors):
        lines.append(f"{name:<{width}} = {value:g} ± {error:g}")
    chi2_line = f"{'chi2':<{width}} = {result.objective_at_minimum:g}"
    if n_points is not None:
        chi2_line += f" (Npoints = {int(n_points)}, Npar = {n_par})"
    lines.append(chi2_line)

    if verbose:
        lines.append(f"status: {result.state.value} ({result.method})")
        if result.message:
            lines.append(f"message: {result.message}")
        lines.append(f"iterations: {result.iterations}, function calls: {result.function_calls}")
        lines.append(f"EDM: {result.edm:.3g}")
        if n_points is not None:
            ndof = int(n_points) - n_par
            lines.append(
                f"chi2/ndf: {chi2_per_dof(result.objective_at_minimum, int(n_points), n_par):.4g}"
                f" (ndf = {ndof}), p-value: {chi2_pvalue(result.objective_at_minimum, ndof):.4g}"
            )
    return lines
