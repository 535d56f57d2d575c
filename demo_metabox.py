#!/usr/bin/env python3
"""
Demo: a "Post Details" meta box
===============================

This script plays the host application:
1. Starts an embedded PostgreSQL for field values and grants
2. Registers a background_color text field for posts and pages
3. Builds a "Post Details" container and binds the field to it
4. Fires the save event with a hostile submission, then the render event

Usage:  FORMFIELDS_SECRET=dev python3 demo_metabox.py [--in-memory]
"""

import argparse
import io
import os
import sys
import tempfile

sys.path.insert(0, os.path.dirname(__file__))

from formfields import RENDER_EVENT, SAVE_EVENT, Container, Entity, FieldRegistry, Host, LifecycleHooks
from formfields.config import Settings
from formfields.memory import CapabilityPolicy, FormSubmission, InMemoryMetaStore, RevisionTracker


def register_custom_fields(registry):
    """Start-up phase: declare fields, then freeze the catalog."""
    registry.register_many("background_color", ["post", "page"], "text",
        label="Background Color",
        max_length=32,
    )
    registry.register("post", "featured", "checkbox", label="Featured")
    registry.seal()


def build_host(args, settings):
    submission = FormSubmission()
    if args.in_memory:
        security = CapabilityPolicy("editor", secret=settings.secret)
        security.grant("42")
        return Host(InMemoryMetaStore(), security, submission, RevisionTracker()), None

    from store.client import MetaStoreClient
    from store.permissions import GrantSecurityPolicy, grant_field_edit
    from store.server import MetaStoreServer

    server = MetaStoreServer(data_dir=tempfile.mkdtemp(prefix="demo_metabox_"),
                             meta_table=settings.meta_table).start()
    conn = server.connect()
    grant_field_edit(conn, "42", "editor")
    host = Host(
        storage=MetaStoreClient(conn, table=settings.meta_table, user="editor"),
        security=GrantSecurityPolicy(conn, "editor", settings.secret),
        submission=submission,
        snapshots=RevisionTracker(),
    )
    return host, server


def main():
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[1])
    parser.add_argument("--in-memory", action="store_true",
                        help="skip PostgreSQL and keep values in memory")
    args = parser.parse_args()

    settings = Settings.from_env()
    settings.validate()
    settings.configure_logging()

    registry = FieldRegistry()
    register_custom_fields(registry)

    host, server = build_host(args, settings)
    hooks = LifecycleHooks()
    try:
        box = Container("Post Details", registry, host, hooks=hooks, check_token=True)
        box.add_fields("background_color", "featured")

        post = Entity(id="42", entity_type="post", title="Hello world")

        print("=" * 64)
        print("  Saving a submission with a script payload...")
        token = host.security.issue_anti_forgery_token(box.name)
        host.submission.update({
            box.name: token,
            "background_color": "#fff;<script>alert(1)</script>",
            "featured": "on",
        })
        [result] = hooks.do_action(SAVE_EVENT, post.id, post)
        print(f"  saved={result.saved} skipped={result.skipped} failed={list(result.failed)}")

        print("  Rendering the form...")
        out = io.StringIO()
        hooks.do_action(RENDER_EVENT, post, out)
        print(out.getvalue())
        print("=" * 64)
    finally:
        if server is not None:
            host.storage.close()
            server.stop()


if __name__ == "__main__":
    main()
