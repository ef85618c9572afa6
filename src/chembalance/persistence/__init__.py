"""Persistence helpers for chembalance."""

from chembalance.persistence.sqlite_store import (
    connect,
    create_project,
    ensure_schema,
    load_reactions,
    save_reaction,
    save_species,
)

__all__ = [
    "connect",
    "create_project",
    "ensure_schema",
    "load_reactions",
    "save_reaction",
    "save_species",
]
