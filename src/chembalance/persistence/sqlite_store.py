"""SQLite persistence helpers for balanced reactions."""

from __future__ import annotations

import json
import logging
import sqlite3
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Mapping

from chembalance.models import BalancedReaction, Compound

logger = logging.getLogger(__name__)

SCHEMA_SQL = """
CREATE TABLE IF NOT EXISTS project (
  id INTEGER PRIMARY KEY,
  name TEXT NOT NULL,
  created_utc TEXT,
  notes TEXT
);
CREATE TABLE IF NOT EXISTS species (
  id INTEGER PRIMARY KEY,
  project_id INTEGER REFERENCES project(id),
  formula TEXT,
  atoms JSON,
  UNIQUE(project_id, formula)
);
CREATE TABLE IF NOT EXISTS reaction (
  id INTEGER PRIMARY KEY,
  project_id INTEGER REFERENCES project(id),
  equation TEXT,
  stoich JSON,
  created_utc TEXT
);
"""


def connect(project_file: str | Path) -> sqlite3.Connection:
    """Open (and create) a .cbproj SQLite project."""
    path = Path(project_file)
    path.parent.mkdir(parents=True, exist_ok=True)
    connection = sqlite3.connect(path)
    connection.execute("PRAGMA foreign_keys = ON;")
    return connection


def ensure_schema(connection: sqlite3.Connection) -> None:
    connection.executescript(SCHEMA_SQL)
    connection.commit()


def create_project(
    connection: sqlite3.Connection,
    name: str,
    notes: str | None = None,
    created_utc: str | None = None,
) -> int:
    """Create a project entry and return its ID."""
    created_utc = created_utc or _utc_now()
    cursor = connection.execute(
        "INSERT INTO project (name, created_utc, notes) VALUES (?, ?, ?)",
        (name, created_utc, notes),
    )
    connection.commit()
    return int(cursor.lastrowid)


def save_species(connection: sqlite3.Connection, project_id: int, compound: Compound) -> None:
    """Record a compound's composition once per project."""
    connection.execute(
        "INSERT OR IGNORE INTO species (project_id, formula, atoms) VALUES (?, ?, ?)",
        (
            project_id,
            compound.formula,
            _json_dumps({str(element): count for element, count in compound.atoms.items()}),
        ),
    )
    connection.commit()


def save_reaction(
    connection: sqlite3.Connection,
    project_id: int,
    reaction: BalancedReaction,
    created_utc: str | None = None,
) -> int:
    """Persist a balanced reaction and its species; return the reaction ID."""
    for reactant in reaction.reagents + reaction.products:
        save_species(connection, project_id, reactant.compound)

    created_utc = created_utc or _utc_now()
    payload = reaction.to_dict()
    cursor = connection.execute(
        "INSERT INTO reaction (project_id, equation, stoich, created_utc) VALUES (?, ?, ?, ?)",
        (
            project_id,
            payload["equation"],
            _json_dumps({"reagents": payload["reagents"], "products": payload["products"]}),
            created_utc,
        ),
    )
    connection.commit()
    logger.debug("Saved reaction %s to project %d", payload["equation"], project_id)
    return int(cursor.lastrowid)


def load_reactions(connection: sqlite3.Connection, project_id: int) -> List[Dict[str, Any]]:
    """Return the stored reactions of a project, oldest first."""
    rows = connection.execute(
        "SELECT id, equation, stoich, created_utc FROM reaction WHERE project_id = ? ORDER BY id",
        (project_id,),
    ).fetchall()
    return [
        {
            "id": row[0],
            "equation": row[1],
            "created_utc": row[3],
            **json.loads(row[2]),
        }
        for row in rows
    ]


def _json_dumps(payload: Mapping[str, object]) -> str:
    return json.dumps(payload, ensure_ascii=False, sort_keys=True)


def _utc_now() -> str:
    return datetime.now(timezone.utc).isoformat()
