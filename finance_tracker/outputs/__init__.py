# finance_tracker/outputs/__init__.py
from finance_tracker.outputs.csv_output import CSVOutput

__all__ = ["CSVOutput"]
