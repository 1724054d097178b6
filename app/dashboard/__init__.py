"""Dashboard layer: API client, grid columns, state and CSV export."""

from app.dashboard.client import DashboardClient, SearchRequestError
from app.dashboard.columns import ColumnDef, columns_for_scope
from app.dashboard.export import rows_to_csv, write_csv
from app.dashboard.state import DashboardState, ResultFilter, ScopeState, resolve_row_id

__all__ = [
    "ColumnDef",
    "DashboardClient",
    "DashboardState",
    "ResultFilter",
    "ScopeState",
    "SearchRequestError",
    "columns_for_scope",
    "resolve_row_id",
    "rows_to_csv",
    "write_csv",
]
