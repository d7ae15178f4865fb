"""
Output directory sink for per-session snapshots and the final results table.
"""

import csv
from pathlib import Path
from typing import Iterable, Optional, Sequence

RESULTS_FILENAME = "results.csv"
RESULTS_HEADER = ("User ID", "Success", "Load Time (ms)", "Error", "Profile", "Screenshot")


class FileSink:
    """
    Artifact names are derived from user id and hop index so concurrent
    sessions never write the same file.
    """

    def __init__(self, output_dir):
        self.output_dir = Path(output_dir)

    def ensure_dir(self) -> Path:
        self.output_dir.mkdir(parents=True, exist_ok=True)
        return self.output_dir

    def snapshot_path(self, user_id: int, hop: Optional[int] = None) -> Path:
        if hop is None:
            return self.output_dir / f"user_{user_id}.png"
        return self.output_dir / f"user_{user_id}_page{hop}.png"

    def write_snapshot(self, user_id: int, data: bytes, hop: Optional[int] = None) -> str:
        path = self.snapshot_path(user_id, hop)
        self.ensure_dir()
        path.write_bytes(data)
        return str(path)

    def write_results(self, rows: Iterable[Sequence], header: Sequence[str] = RESULTS_HEADER) -> str:
        """Overwrites results.csv. Fields with delimiters or quotes are quoted by the csv module."""
        self.ensure_dir()
        path = self.output_dir / RESULTS_FILENAME
        with open(path, "w", newline="", encoding="utf-8") as f:
            writer = csv.writer(f)
            writer.writerow(header)
            writer.writerows(rows)
        return str(path)
