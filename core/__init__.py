"""Core utilities for Asymfit 1.x.

This package exposes the main core modules so that callers can simply
``from core import data_io, models, objective, observations`` without
needing to know the submodule structure.
"""

from . import data_io, datasets, models, objective, observations, report

__all__ = ["data_io", "datasets", "models", "objective", "observations", "report"]
