from datetime import datetime, timezone

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import sessionmaker

from apps.api.main import app
from auth.access_gate import AccessGate
from auth.dependencies import get_access_gate, get_grant_store, get_token_issuer
from auth.grant_store import GrantSessionStore
from auth.grant_tokens import GrantTokenIssuer
from keys.codec import KeyCodec
from keys.database import IN_MEMORY_URL, build_engine
from keys.key_routes import get_registry
from keys.models import Base
from keys.repository import KeyRepository
from keys.sessions import RepositoryRegistry
from keys.store import SqlKeyStore
from tests.fakes import make_row

KNOWN_SECRET = "nani_AAAAAAAA-BBBB-CCCC-DDDD-EEEEEEEEEEEE"
TOKEN_SECRET = "test-grant-secret-with-at-least-32-bytes!"


@pytest.fixture
def session_factory():
    engine = build_engine(IN_MEMORY_URL)
    Base.metadata.create_all(engine)
    yield sessionmaker(autocommit=False, autoflush=False, bind=engine, expire_on_commit=False)
    engine.dispose()


@pytest.fixture
def sql_store(session_factory):
    return SqlKeyStore(session_factory)


@pytest.fixture
def seeded_store(sql_store):
    sql_store.insert(make_row(
        "key-1", "Production", KNOWN_SECRET,
        datetime(2024, 1, 1, tzinfo=timezone.utc), usage=10, usage_limit=1000
    ))
    return sql_store


@pytest.fixture
def grant_store():
    return GrantSessionStore(ttl=600)


@pytest.fixture
def token_issuer():
    return GrantTokenIssuer(TOKEN_SECRET, ttl=600)


@pytest.fixture
def client(seeded_store, grant_store, token_issuer):
    registry = RepositoryRegistry(factory=lambda: KeyRepository(seeded_store, KeyCodec()))
    gate = AccessGate(seeded_store)

    app.dependency_overrides[get_registry] = lambda: registry
    app.dependency_overrides[get_access_gate] = lambda: gate
    app.dependency_overrides[get_grant_store] = lambda: grant_store
    app.dependency_overrides[get_token_issuer] = lambda: token_issuer
    yield TestClient(app)
    app.dependency_overrides.clear()
