"""CSV export of recorded metrics."""

import csv
from pathlib import Path
from typing import List, Optional

from ..model.state import FrameSnapshot


class CSVWriter:
    """
    Exports recorded frames to CSV incrementally.

    Output format:
        step,elapsed,grass_level,sheep_count
        0,0.0,100.0,9
        ...
    """

    def __init__(self, output_path: Path, metric_keys: List[str]):
        self.output_path = Path(output_path)
        self.metric_keys = list(metric_keys)
        self.file: Optional[object] = None
        self.writer: Optional[csv.DictWriter] = None
        self.rows_written = 0

    @property
    def is_open(self) -> bool:
        return self.file is not None

    def open(self) -> None:
        """Create the file and write the header."""
        self.output_path.parent.mkdir(parents=True, exist_ok=True)
        self.file = open(self.output_path, 'w', newline='')
        self.writer = csv.DictWriter(
            self.file,
            fieldnames=FrameSnapshot.csv_fields(self.metric_keys),
            extrasaction='ignore'
        )
        self.writer.writeheader()
        self.rows_written = 0

    def append(self, snapshot: FrameSnapshot) -> None:
        if not self.is_open:
            self.open()
        self.writer.writerow(snapshot.to_csv_row())
        self.rows_written += 1
        self.file.flush()

    def close(self) -> None:
        if self.file:
            self.file.close()
            self.file = None
            self.writer = None

    def __enter__(self):
        self.open()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False
