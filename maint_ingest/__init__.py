"""Spreadsheet ingestion and export for medical equipment maintenance records.

Turns hand-authored PPM/OCM/training spreadsheets into typed, deduplicated
records and writes templates and exports back out.
"""

__version__ = "0.1.0"
