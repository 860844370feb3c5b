"""Uncertainty estimation routines for Asymfit 1.x."""

from . import goodness, hessian

__all__ = ["goodness", "hessian"]
