import uuid

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from biketrails.core.config import settings
from biketrails.core.database import Base, enable_sqlite_foreign_keys, get_db
from biketrails.core.security import create_access_token
from biketrails.main import app
from biketrails.models.comment import Comment
from biketrails.models.route import Route, RouteType
from biketrails.models.user import User

# 97 character Argon2i encodings, the only format User accepts
# Salt is base64("saltsaltsaltsalt"), digest is base64(32 * "a")
VALID_HASH = "$argon2i$v=19$m=1024,t=384,p=2$c2FsdHNhbHRzYWx0c2FsdA$" + "YWFh" * 10 + "YWE"
ARGON2ID_HASH = "$argon2id$v=19$m=1024,t=38,p=2$c2FsdHNhbHRzYWx0c2FsdA$" + "YWFh" * 10 + "YWE"
ACTIVATION_TOKEN = "aabbccddeeff00112233445566778899"
XSRF_TOKEN = "test-xsrf-token"


@pytest.fixture
def engine():
    # One shared in-memory connection per test, with foreign keys enforced like production
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    enable_sqlite_foreign_keys(engine)
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def db(engine):
    session = sessionmaker(autocommit=False, autoflush=False, bind=engine)()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def make_user(db):
    """Insert and commit an activated user; names/emails are derived from the name"""
    def _make_user(name="rider", activation_token=None):
        user = User(uuid.uuid4(), name, f"{name}@trails.org", VALID_HASH, activation_token)
        user.insert(db)
        db.commit()
        return user
    return _make_user


@pytest.fixture
def make_route(db):
    def _make_route(name="Bosque Trail", route_type=RouteType.PAVED):
        route = Route(uuid.uuid4(), name, "Paved path along the river", "routes/bosque.json", 15, route_type)
        route.insert(db)
        db.commit()
        return route
    return _make_route


@pytest.fixture
def make_comment(db):
    def _make_comment(route, user, content="Great ride", comment_date=1700000000000):
        comment = Comment(uuid.uuid4(), route.route_id, user.user_id, content, comment_date)
        comment.insert(db)
        db.commit()
        return comment
    return _make_comment


@pytest.fixture
def client(engine):
    """TestClient whose requests get sessions on the test engine"""
    TestingSession = sessionmaker(autocommit=False, autoflush=False, bind=engine)

    def override_get_db():
        session = TestingSession()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    # Not used as a context manager: lifespan would create tables on the real engine
    test_client = TestClient(app)
    # As if an earlier GET had handed out the double-submit cookie
    test_client.cookies.set(settings.XSRF_COOKIE_NAME, XSRF_TOKEN)
    yield test_client
    app.dependency_overrides.clear()


def auth_headers(user, xsrf=True):
    """Bearer token for user, plus the XSRF header matching the cookie set by the client"""
    headers = {"Authorization": f"Bearer {create_access_token({'sub': str(user.user_id)})}"}
    if xsrf:
        headers[settings.XSRF_HEADER_NAME] = XSRF_TOKEN
    return headers
