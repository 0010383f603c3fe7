from .collect import build_dominance_report
from .formatters import format_json, format_markdown
from .models import DominanceReport

__all__ = ["DominanceReport", "build_dominance_report", "format_json", "format_markdown"]
