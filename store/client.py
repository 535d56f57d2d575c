"""
MetaStoreClient — field values in PostgreSQL, one row per (entity, field).

Writes are UPSERTs; reads of a missing row return the caller's default.

    client = MetaStoreClient(conn, user="alice")
    client.write_value("42", "background_color", "#fff")
    client.read_value("42", "background_color")   # → "#fff"
"""

import logging

from psycopg2 import sql

from formfields.config import DEFAULT_META_TABLE
from formfields.host import MetaStore
from store.codec import decode_value, encode_value


logger = logging.getLogger(__name__)


class MetaStoreClient(MetaStore):
    """MetaStore over a psycopg2 connection (autocommit)."""

    def __init__(self, conn, table=DEFAULT_META_TABLE, user=None):
        self.conn = conn
        self.conn.autocommit = True
        self.user = user
        self._table = sql.Identifier(table)

    def read_value(self, entity_id, field_name, default=None):
        self._check_entity(entity_id)
        with self.conn.cursor() as cur:
            cur.execute(
                sql.SQL("""
                    SELECT meta_value::text FROM {table}
                    WHERE entity_id = %s AND meta_key = %s
                """).format(table=self._table),
                (str(entity_id), field_name),
            )
            row = cur.fetchone()
        if row is None or row[0] is None:
            return default
        value = decode_value(row[0])
        return default if value is None else value

    def write_value(self, entity_id, field_name, value):
        self._check_entity(entity_id)
        with self.conn.cursor() as cur:
            cur.execute(
                sql.SQL("""
                    INSERT INTO {table} (entity_id, meta_key, meta_value, updated_by)
                    VALUES (%s, %s, %s::jsonb, COALESCE(%s, current_user))
                    ON CONFLICT (entity_id, meta_key) DO UPDATE
                    SET meta_value = EXCLUDED.meta_value,
                        updated_by = EXCLUDED.updated_by,
                        updated_at = now()
                """).format(table=self._table),
                (str(entity_id), field_name, encode_value(value), self.user),
            )
        logger.debug("Wrote %s.%s", entity_id, field_name)

    def delete_value(self, entity_id, field_name):
        self._check_entity(entity_id)
        with self.conn.cursor() as cur:
            cur.execute(
                sql.SQL("""
                    DELETE FROM {table}
                    WHERE entity_id = %s AND meta_key = %s
                    RETURNING meta_key
                """).format(table=self._table),
                (str(entity_id), field_name),
            )
            return cur.fetchone() is not None

    def values_for(self, entity_id) -> dict:
        """Every stored value of one entity, keyed by field name."""
        self._check_entity(entity_id)
        with self.conn.cursor() as cur:
            cur.execute(
                sql.SQL("""
                    SELECT meta_key, meta_value::text FROM {table}
                    WHERE entity_id = %s ORDER BY meta_key
                """).format(table=self._table),
                (str(entity_id),),
            )
            return {key: decode_value(text) for key, text in cur.fetchall()}

    def close(self):
        self.conn.close()

    @staticmethod
    def _check_entity(entity_id):
        if entity_id is None or str(entity_id) == "":
            raise ValueError("entity_id is required")
