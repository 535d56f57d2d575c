"""
Database schema: the field-value table and per-field edit grants.
Idempotent; safe to run on every start.
"""

from psycopg2 import sql

from formfields.config import DEFAULT_META_TABLE

GRANTS_TABLE = "field_grants"


def bootstrap_schema(conn, meta_table=DEFAULT_META_TABLE):
    """Create the value and grant tables plus their indexes."""
    conn.autocommit = True
    table = sql.Identifier(meta_table)
    with conn.cursor() as cur:
        # ── Values: one row per (entity, field) ──────────────────────
        cur.execute(sql.SQL("""
            CREATE TABLE IF NOT EXISTS {table} (
                entity_id   TEXT NOT NULL,
                meta_key    TEXT NOT NULL,
                meta_value  JSONB,
                updated_by  TEXT NOT NULL DEFAULT current_user,
                updated_at  TIMESTAMPTZ NOT NULL DEFAULT now(),
                PRIMARY KEY (entity_id, meta_key)
            );
        """).format(table=table))
        cur.execute(sql.SQL("""
            CREATE INDEX IF NOT EXISTS {index}
                ON {table} (meta_key);
        """).format(index=sql.Identifier(f"idx_{meta_table}_key"), table=table))

        # ── Grants: who may edit which field of which entity ─────────
        # field_name '*' covers every field of the entity.
        cur.execute(f"""
            CREATE TABLE IF NOT EXISTS {GRANTS_TABLE} (
                entity_id   TEXT NOT NULL,
                username    TEXT NOT NULL,
                field_name  TEXT NOT NULL DEFAULT '*',
                granted_at  TIMESTAMPTZ NOT NULL DEFAULT now(),
                PRIMARY KEY (entity_id, username, field_name)
            );
        """)
        cur.execute(f"""
            CREATE INDEX IF NOT EXISTS idx_{GRANTS_TABLE}_user
                ON {GRANTS_TABLE} (username);
        """)
