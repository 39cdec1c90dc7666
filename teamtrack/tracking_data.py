"""
Storage and CSV serialization of per-frame classification results.

One row per classified box: ``frame,x1,y1,x2,y2,team``. Frames in which no
team could be assigned simply contribute no rows.
"""

from __future__ import annotations

import csv
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, List, Tuple

from .data_structures import BoundingBox, TeamID

CSV_FIELDS = ["frame", "x1", "y1", "x2", "y2", "team"]


def _ensure_parent(path: Path) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)


@dataclass
class DetectionRow:
    """
    A single classified box of one frame.
    """

    frame: int
    x1: int
    y1: int
    x2: int
    y2: int
    team: TeamID

    @property
    def box(self) -> BoundingBox:
        return (self.x1, self.y1, self.x2, self.y2)


@dataclass
class DetectionStore:
    """
    Container for classified boxes across a whole video.

    Attributes:
        rows: Rows in insertion order (frame order when filled by the CLI).
    """

    rows: List[DetectionRow] = field(default_factory=list)  # type: ignore[misc]

    def add_frame(self, frame_index: int, classified: Iterable[Tuple[BoundingBox, TeamID]]) -> None:
        """
        Append the (box, team) pairs of one frame.
        """
        for (x1, y1, x2, y2), team in classified:
            self.rows.append(DetectionRow(frame_index, x1, y1, x2, y2, team))

    def frames(self) -> List[int]:
        return sorted({row.frame for row in self.rows})

    def to_csv(self, path: Path) -> None:
        """
        Serialize rows to CSV with columns: frame,x1,y1,x2,y2,team.
        """
        _ensure_parent(path)
        with path.open("w", newline="", encoding="utf-8") as f:
            writer = csv.DictWriter(f, fieldnames=CSV_FIELDS)
            writer.writeheader()
            for row in self.rows:
                writer.writerow(
                    {
                        "frame": row.frame,
                        "x1": row.x1,
                        "y1": row.y1,
                        "x2": row.x2,
                        "y2": row.y2,
                        "team": row.team,
                    }
                )

    @classmethod
    def from_csv(cls, path: Path) -> "DetectionStore":
        """
        Load rows from a CSV produced by :meth:`to_csv`.
        """
        store = cls()
        with path.open("r", newline="", encoding="utf-8") as f:
            reader = csv.DictReader(f)
            for row in reader:
                store.rows.append(
                    DetectionRow(
                        frame=int(row["frame"]),
                        x1=int(row["x1"]),
                        y1=int(row["y1"]),
                        x2=int(row["x2"]),
                        y2=int(row["y2"]),
                        team=int(row["team"]),
                    )
                )
        return store
