"""
Permissions helpers — grant/revoke edit rights on entity fields.
A grant with field_name '*' covers every field of the entity.
"""

from formfields.host import HmacSecurityPolicy
from store.schema import GRANTS_TABLE

ALL_FIELDS = "*"


def grant_field_edit(conn, entity_id, to_user, field_name=ALL_FIELDS):
    """Allow *to_user* to edit *field_name* on *entity_id*.
    Returns False if the grant already existed."""
    with conn.cursor() as cur:
        cur.execute(
            f"""
            INSERT INTO {GRANTS_TABLE} (entity_id, username, field_name)
            VALUES (%s, %s, %s)
            ON CONFLICT DO NOTHING
            RETURNING entity_id
            """,
            (str(entity_id), to_user, field_name),
        )
        return cur.fetchone() is not None


def revoke_field_edit(conn, entity_id, from_user, field_name=ALL_FIELDS):
    """Remove a grant. Returns False if there was nothing to remove."""
    with conn.cursor() as cur:
        cur.execute(
            f"""
            DELETE FROM {GRANTS_TABLE}
            WHERE entity_id = %s AND username = %s AND field_name = %s
            RETURNING entity_id
            """,
            (str(entity_id), from_user, field_name),
        )
        return cur.fetchone() is not None


def can_edit_field(conn, entity_id, user, field_name):
    with conn.cursor() as cur:
        cur.execute(
            f"""
            SELECT 1 FROM {GRANTS_TABLE}
            WHERE entity_id = %s AND username = %s
              AND field_name IN (%s, %s)
            LIMIT 1
            """,
            (str(entity_id), user, field_name, ALL_FIELDS),
        )
        return cur.fetchone() is not None


def list_field_grants(conn, entity_id):
    """Return {username: [field_name, ...]} for an entity."""
    with conn.cursor() as cur:
        cur.execute(
            f"""
            SELECT username, field_name FROM {GRANTS_TABLE}
            WHERE entity_id = %s
            ORDER BY username, field_name
            """,
            (str(entity_id),),
        )
        grants = {}
        for username, field_name in cur.fetchall():
            grants.setdefault(username, []).append(field_name)
        return grants


class GrantSecurityPolicy(HmacSecurityPolicy):
    """SecurityPolicy backed by the field_grants table, for one user."""

    def __init__(self, conn, user, secret):
        super().__init__(user, secret)
        self.conn = conn

    def can_edit_field(self, entity_id, field_name):
        return can_edit_field(self.conn, entity_id, self.user, field_name)
