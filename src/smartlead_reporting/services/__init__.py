"""Application services built on the Smartlead API client."""

from .dashboard import DashboardData, load_dashboard_data

__all__ = ["DashboardData", "load_dashboard_data"]
