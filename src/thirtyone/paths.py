from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

# Overrides where telemetry and other per-user files go
USERDATA_ENV = "THIRTYONE_USERDATA"


@dataclass(frozen=True)
class Paths:
    data_dir: Path
    schema_dir: Path
    userdata_dir: Path

    @property
    def telemetry_path(self) -> Path:
        return self.userdata_dir / "telemetry.jsonl"


def get_paths() -> Paths:
    # Bundled content ships inside the package: src/thirtyone/data
    data_dir = Path(__file__).resolve().parent / "data"
    override = os.getenv(USERDATA_ENV)
    userdata_dir = Path(override) if override else Path.home() / ".thirtyone"
    return Paths(
        data_dir=data_dir,
        schema_dir=data_dir / "schemas",
        userdata_dir=userdata_dir,
    )
