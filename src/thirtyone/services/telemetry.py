from __future__ import annotations

import itertools
import json
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Iterator, Mapping


@dataclass
class TelemetryService:
    """Append-only JSON-lines record of session events.

    Each record carries a per-service sequence number so a file shared by
    several rounds can be split back into rounds by ``seed``.
    """

    path: Path
    _seq: Iterator[int] = field(default_factory=itertools.count, init=False, repr=False)

    def log(self, event_type: str, payload: Mapping[str, object]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        rec = {
            "ts": datetime.now(tz=timezone.utc).isoformat(),
            "seq": next(self._seq),
            "type": event_type,
            "payload": dict(payload),
        }
        with self.path.open("a", encoding="utf-8") as f:
            f.write(json.dumps(rec, ensure_ascii=False) + "\n")

    def read_all(self, event_type: str | None = None) -> list[dict[str, object]]:
        if not self.path.exists():
            return []
        with self.path.open("r", encoding="utf-8") as f:
            records = [json.loads(line) for line in f if line.strip()]
        if event_type is not None:
            records = [r for r in records if r.get("type") == event_type]
        return records
