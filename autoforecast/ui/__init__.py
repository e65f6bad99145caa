"""Presentation helpers for the planner console."""

from .charts import build_projection_figure
from .tables import format_ledger

__all__ = ["build_projection_figure", "format_ledger"]
