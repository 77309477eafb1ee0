"""Output generation for CSV exports."""

from statement_planner.output.csv_exporter import CSVExporter

__all__ = ["CSVExporter"]
