"""
Services package - existence lookup and batch lifecycle orchestration.
"""

from .batch import BatchReport, DocumentInput, DocumentReport, run_batch
from .events import IndexingEvents
from .existence import ExistenceChecker
from .validator import DocumentValidator

__all__ = [
    "BatchReport",
    "DocumentInput",
    "DocumentReport",
    "DocumentValidator",
    "ExistenceChecker",
    "IndexingEvents",
    "run_batch",
]
