# finance_tracker/loaders/__init__.py
from finance_tracker.loaders.csv_loader import CSVLoader

__all__ = ["CSVLoader"]
