"""
POS trax ETL pipeline.

Loads Slice, Square and Uber transaction exports into per-platform
isolated tables and a unified cross-platform table.
"""

__version__ = "0.3.0"
