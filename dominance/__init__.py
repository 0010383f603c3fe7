"""Top-level dominance package.

Re-exports the subpackages in dependency order (api -> compute -> insights -> report).
"""

from . import api, compute, insights, report

__all__ = ["api", "compute", "insights", "report"]
