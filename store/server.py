"""
Embedded PostgreSQL server for field storage.
Uses pgserver for pip-installable PostgreSQL binaries.
"""

import os

import pgserver
import psycopg2

from formfields.config import DEFAULT_DATA_DIR, DEFAULT_META_TABLE
from store.schema import bootstrap_schema


class MetaStoreServer:
    """Manages an embedded PostgreSQL instance holding field values."""

    def __init__(self, data_dir=None, meta_table=DEFAULT_META_TABLE):
        self.data_dir = os.path.abspath(data_dir or DEFAULT_DATA_DIR)
        self.meta_table = meta_table
        self._pg = None

    def start(self):
        """Start the embedded server and create the schema if needed."""
        os.makedirs(self.data_dir, exist_ok=True)
        self._pg = pgserver.get_server(self.data_dir)
        conn = self.connect()
        try:
            bootstrap_schema(conn, meta_table=self.meta_table)
        finally:
            conn.close()
        return self

    # ── Public API ───────────────────────────────────────────────────

    def connect(self):
        """Open a new connection over the local socket."""
        if self._pg is None:
            raise RuntimeError("MetaStoreServer is not started")
        return psycopg2.connect(self._pg.get_uri())

    def stop(self):
        """Stop the embedded PostgreSQL server."""
        if self._pg:
            self._pg.cleanup()
            self._pg = None

    def __enter__(self):
        self.start()
        return self

    def __exit__(self, *args):
        self.stop()
