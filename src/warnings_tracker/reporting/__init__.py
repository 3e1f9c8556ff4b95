"""Reporting of recorded builds."""

from warnings_tracker.reporting.summary import SummaryFormatter, days, format_snapshot_as_json

__all__ = ["SummaryFormatter", "days", "format_snapshot_as_json"]
