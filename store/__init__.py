"""
PostgreSQL-backed collaborators for formfields: value storage and
per-field edit grants.
"""

from store.client import MetaStoreClient
from store.permissions import GrantSecurityPolicy
from store.server import MetaStoreServer
