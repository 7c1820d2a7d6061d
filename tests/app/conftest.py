from __future__ import annotations

from typing import TYPE_CHECKING

import pytest

from vehicledb.adapters.sqlalchemy.unit_of_work import shutdown

if TYPE_CHECKING:
    from collections.abc import Iterator
    from pathlib import Path


@pytest.fixture
def database_file(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> Iterator[Path]:
    """Point the application at a fresh SQLite file and reset the adapter around the test."""

    path = tmp_path / "vehicles.db"
    monkeypatch.setenv("DATABASE_URI", f"sqlite+pysqlite:///{path}")
    monkeypatch.delenv("VEHICLEDB_ISOLATION_LEVEL", raising=False)
    monkeypatch.delenv("VEHICLEDB_CHUNK_SIZE", raising=False)
    shutdown()
    try:
        yield path
    finally:
        shutdown()


@pytest.fixture
def vehicles_json(tmp_path: Path) -> Path:
    path = tmp_path / "import.json"
    path.write_text(
        """
        {"vehicles": [
            {"type": "car", "color": "red", "number": "A001AA", "date": 1000,
             "is_transports_passengers": "true", "has_trailer": "false"},
            {"type": "truck", "color": "blue", "number": "T002TT", "date": 2000,
             "is_transtorts_cargo": "true", "has_trailer": "true"},
            {"type": "motorcycle", "color": "black", "number": "M003MM", "date": 3000,
             "has_cradle": "false"}
        ]}
        """,
        encoding="utf-8",
    )
    return path
