"""Database client factories for the appointment store backends."""

from __future__ import annotations

import logging
import sqlite3
from pathlib import Path
from typing import Optional

logger = logging.getLogger(__name__)


def create_supabase_client(url: Optional[str], key: Optional[str]):
    """Return a Supabase client, or None if not configured or unavailable."""
    if not url or not key:
        logger.warning("SUPABASE_URL or SUPABASE_SERVICE_ROLE_KEY not set; using SQLite storage.")
        return None

    try:
        from supabase import create_client
        client = create_client(url, key)
        logger.info("Supabase client initialized.")
        return client
    except Exception:
        logger.exception("Failed to initialize Supabase client; falling back to SQLite.")
        return None


def connect_sqlite(path: str) -> sqlite3.Connection:
    """Open a SQLite connection shareable across worker threads.

    Callers are responsible for serializing access to the connection.
    """
    if path != ":memory:":
        Path(path).parent.mkdir(parents=True, exist_ok=True)
    conn = sqlite3.connect(path, check_same_thread=False)
    conn.row_factory = sqlite3.Row
    logger.info("Connected to SQLite database at %s", path)
    return conn
