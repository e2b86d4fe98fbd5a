from typing import List

from .base import CamelModel


class SkippedRecord(CamelModel):
    row: int
    title: str = ""
    identifier: str = ""
    reason: str


class FailedRecord(CamelModel):
    row: int
    title: str = ""
    identifier: str = ""
    error: str


class ImportSummary(CamelModel):
    """Outcome of a CSV upload; each record list holds at most 100 entries"""
    total_rows: int = 0
    imported: int = 0
    skipped_duplicates: List[SkippedRecord] = []
    failed: List[FailedRecord] = []
    truncated_records: bool = False
