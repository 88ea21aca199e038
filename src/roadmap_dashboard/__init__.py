"""Roadmap Dashboard service.

Backend for the operational-maturity roadmap dashboard: blocked-milestone
dependency analysis, ranked global search, dashboard widget layout and
preferences, KPI reporting, the AI chat tool dispatcher, and notification
email rendering.
"""

__version__ = "0.1.0"
