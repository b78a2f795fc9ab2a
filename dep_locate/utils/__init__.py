"""Utility functions and helpers for DepLocate."""

from .logging import setup_logging, get_logger
from .performance import PerformanceMonitor, benchmark
from .path_utils import find_manifest_files, ManifestFile

__all__ = [
    "setup_logging",
    "get_logger",
    "PerformanceMonitor",
    "benchmark",
    "find_manifest_files",
    "ManifestFile",
]
