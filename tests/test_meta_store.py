"""
Tests for the PostgreSQL-backed collaborators: MetaStoreClient,
field grants / GrantSecurityPolicy, and a full Container round trip.

Run with: pytest tests/test_meta_store.py -v
"""

import io
import tempfile
import uuid
from datetime import date, datetime, timezone
from decimal import Decimal

import pytest

pgserver = pytest.importorskip("pgserver")

from formfields.container import Container
from formfields.host import Entity, Host
from formfields.memory import FormSubmission, RevisionTracker
from formfields.registry import FieldRegistry
from store.client import MetaStoreClient
from store.codec import decode_value, encode_value
from store.permissions import (
    GrantSecurityPolicy,
    can_edit_field,
    grant_field_edit,
    list_field_grants,
    revoke_field_edit,
)
from store.server import MetaStoreServer


# ── Fixtures ─────────────────────────────────────────────────────────────────

@pytest.fixture(scope="module")
def server():
    """Start an embedded PostgreSQL server for testing."""
    tmp_dir = tempfile.mkdtemp(prefix="test_meta_store_")
    srv = MetaStoreServer(data_dir=tmp_dir)
    srv.start()
    yield srv
    srv.stop()


@pytest.fixture
def conn(server):
    c = server.connect()
    c.autocommit = True
    yield c
    c.close()


@pytest.fixture
def client(conn):
    return MetaStoreClient(conn, user="editor")


@pytest.fixture
def entity_id():
    """Unique entity id per test so module-scoped data never collides."""
    return str(uuid.uuid4())


# ── Codec ────────────────────────────────────────────────────────────────────

class TestCodec:

    def test_special_types_round_trip(self):
        value = {
            "when": datetime(2024, 1, 2, 3, 4, 5, tzinfo=timezone.utc),
            "day": date(2024, 1, 2),
            "amount": Decimal("12.50"),
            "ref": uuid.UUID("12345678-1234-5678-1234-567812345678"),
        }
        assert decode_value(encode_value(value)) == value

    def test_tuples_become_lists(self):
        assert decode_value(encode_value(("a", "b"))) == ["a", "b"]

    def test_unsupported_type_raises(self):
        with pytest.raises(TypeError):
            encode_value(object())


# ── MetaStoreClient ──────────────────────────────────────────────────────────

class TestMetaStoreClient:

    def test_missing_returns_default(self, client, entity_id):
        assert client.read_value(entity_id, "x") is None
        assert client.read_value(entity_id, "x", "") == ""

    def test_write_then_read(self, client, entity_id):
        client.write_value(entity_id, "background_color", "#fff")
        assert client.read_value(entity_id, "background_color") == "#fff"

    def test_upsert_replaces(self, client, entity_id):
        client.write_value(entity_id, "x", "a")
        client.write_value(entity_id, "x", "b")
        assert client.read_value(entity_id, "x") == "b"
        assert client.values_for(entity_id) == {"x": "b"}

    def test_typed_values(self, client, entity_id):
        client.write_value(entity_id, "rating", 4.5)
        client.write_value(entity_id, "featured", False)
        client.write_value(entity_id, "tags", ["a", "b"])
        assert client.read_value(entity_id, "rating") == 4.5
        assert client.read_value(entity_id, "featured") is False
        assert client.read_value(entity_id, "tags") == ["a", "b"]

    def test_none_reads_as_default(self, client, entity_id):
        client.write_value(entity_id, "rating", None)
        assert client.read_value(entity_id, "rating", 0) == 0

    def test_updated_by(self, client, conn, entity_id):
        client.write_value(entity_id, "x", "a")
        with conn.cursor() as cur:
            cur.execute(
                "SELECT updated_by FROM entity_meta WHERE entity_id = %s AND meta_key = 'x'",
                (entity_id,),
            )
            assert cur.fetchone()[0] == "editor"

    def test_delete(self, client, entity_id):
        client.write_value(entity_id, "x", "a")
        assert client.delete_value(entity_id, "x")
        assert not client.delete_value(entity_id, "x")
        assert client.read_value(entity_id, "x") is None

    def test_values_for_is_per_entity(self, client, entity_id):
        other = str(uuid.uuid4())
        client.write_value(entity_id, "b", 2)
        client.write_value(entity_id, "a", 1)
        client.write_value(other, "a", 99)
        assert client.values_for(entity_id) == {"a": 1, "b": 2}

    def test_entity_id_required(self, client):
        with pytest.raises(ValueError, match="entity_id"):
            client.read_value("", "x")
        with pytest.raises(ValueError, match="entity_id"):
            client.write_value(None, "x", 1)


# ── Grants ───────────────────────────────────────────────────────────────────

class TestGrants:

    def test_no_grant_denies(self, conn, entity_id):
        assert not can_edit_field(conn, entity_id, "alice", "x")

    def test_entity_wide_grant(self, conn, entity_id):
        assert grant_field_edit(conn, entity_id, "alice")
        assert can_edit_field(conn, entity_id, "alice", "x")
        assert can_edit_field(conn, entity_id, "alice", "y")
        assert not can_edit_field(conn, entity_id, "bob", "x")

    def test_field_grant(self, conn, entity_id):
        grant_field_edit(conn, entity_id, "alice", "x")
        assert can_edit_field(conn, entity_id, "alice", "x")
        assert not can_edit_field(conn, entity_id, "alice", "y")

    def test_grant_twice_is_false(self, conn, entity_id):
        assert grant_field_edit(conn, entity_id, "alice")
        assert not grant_field_edit(conn, entity_id, "alice")

    def test_revoke(self, conn, entity_id):
        grant_field_edit(conn, entity_id, "alice", "x")
        assert revoke_field_edit(conn, entity_id, "alice", "x")
        assert not revoke_field_edit(conn, entity_id, "alice", "x")
        assert not can_edit_field(conn, entity_id, "alice", "x")

    def test_list_field_grants(self, conn, entity_id):
        grant_field_edit(conn, entity_id, "bob", "x")
        grant_field_edit(conn, entity_id, "alice")
        grant_field_edit(conn, entity_id, "bob", "y")
        assert list_field_grants(conn, entity_id) == {"alice": ["*"], "bob": ["x", "y"]}

    def test_policy(self, conn, entity_id):
        policy = GrantSecurityPolicy(conn, "alice", "secret")
        assert not policy.can_edit_field(entity_id, "x")
        grant_field_edit(conn, entity_id, "alice", "x")
        assert policy.can_edit_field(entity_id, "x")
        token = policy.issue_anti_forgery_token("post-details")
        assert policy.verify_anti_forgery_token("post-details", token)


# ── End to end ───────────────────────────────────────────────────────────────

class TestContainerOnPostgres:

    @pytest.fixture
    def setup(self, conn, client):
        registry = FieldRegistry()
        registry.register("post", "background_color", "text", label="Background Color")
        registry.register("post", "rating", "number", integer=True, max_value=5)
        registry.seal()
        host = Host(
            storage=client,
            security=GrantSecurityPolicy(conn, "editor", "secret"),
            submission=FormSubmission(),
            snapshots=RevisionTracker(),
        )
        box = Container("Post Details", registry, host)
        box.add_fields("background_color", "rating")
        return box, host

    def test_save_and_render(self, setup, conn, entity_id):
        box, host = setup
        grant_field_edit(conn, entity_id, "editor")
        post = Entity(id=entity_id)
        host.submission.update({"background_color": "#fff;<script>", "rating": "9"})

        result = box.save(entity_id, post)

        assert result.saved == ["background_color", "rating"]
        assert host.storage.values_for(entity_id) == {"background_color": "#fff;", "rating": 5}
        html = box.render_callback(post, io.StringIO())
        assert 'value="#fff;"' in html
        assert "<script>" not in html

    def test_denied_leaves_prior_value(self, setup, conn, entity_id):
        box, host = setup
        host.storage.write_value(entity_id, "background_color", "#000")
        host.submission.update({"background_color": "#fff"})
        result = box.save(entity_id, Entity(id=entity_id))
        assert result.skipped == ["background_color", "rating"]
        assert host.storage.read_value(entity_id, "background_color") == "#000"

    def test_revision_writes_nothing(self, setup, conn, entity_id):
        box, host = setup
        grant_field_edit(conn, entity_id, "editor")
        host.snapshots.mark_revision(entity_id)
        host.submission.update({"background_color": "#fff"})
        assert box.save(entity_id, Entity(id=entity_id)).snapshot
        assert host.storage.values_for(entity_id) == {}
