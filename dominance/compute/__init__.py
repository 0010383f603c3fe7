from . import cells, core, grid, identity

Badge = cells.Badge
PairwiseCell = cells.PairwiseCell
classify_badge = cells.classify_badge
finalize_cell = cells.finalize_cell
WeekRange = core.WeekRange
resolve_week_range = core.resolve_week_range
infer_playoff_start_week = core.infer_playoff_start_week
group_rows = core.group_rows
pair_matchups = core.pair_matchups
PairwiseAccumulator = grid.PairwiseAccumulator
DominanceMatrix = grid.DominanceMatrix
Totals = grid.Totals
build_matrix = grid.build_matrix
Manager = identity.Manager
ManagerRegistry = identity.ManagerRegistry

__all__ = [
    "Badge",
    "PairwiseCell",
    "classify_badge",
    "finalize_cell",
    "WeekRange",
    "resolve_week_range",
    "infer_playoff_start_week",
    "group_rows",
    "pair_matchups",
    "PairwiseAccumulator",
    "DominanceMatrix",
    "Totals",
    "build_matrix",
    "Manager",
    "ManagerRegistry",
]
