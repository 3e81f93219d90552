"""
Batch processing: file discovery, the per-file pipeline and deprovisioning.
"""

from .files import deprovision, move_file, scan_folder
from .pipeline import BatchPipeline

__all__ = [
    "BatchPipeline",
    "scan_folder",
    "move_file",
    "deprovision",
]
