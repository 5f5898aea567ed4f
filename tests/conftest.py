import fakeredis
import pytest

from schooladmin.api import create_app
from schooladmin.api.db.store import DocumentStore
from schooladmin.api.routes import create_user

PASSWORD = "correct-horse-battery"


@pytest.fixture
def store():
    client = fakeredis.FakeRedis(decode_responses=True)
    return DocumentStore(client=client, prefix="test")


@pytest.fixture
def app(store):
    app = create_app(store=store, debug=False)
    app.config["TESTING"] = True
    return app


@pytest.fixture
def client(app):
    return app.test_client()


def make_user(store, user_id, role_type, email=None, password=PASSWORD, created_by=None, **extra):
    data = {
        "id": user_id,
        "firstName": extra.pop("firstName", user_id.title()),
        "lastName": extra.pop("lastName", "Tester"),
        "email": email or f"{user_id.lower()}@school.test",
        "password": password,
        "role": {"type": role_type},
    }
    data.update(extra)
    return create_user(store, data, created_by)


def gql(client, query, variables=None):
    response = client.post("/graphql", json={"query": query, "variables": variables or {}})
    return response.get_json()


def error_codes(result):
    return [e.get("extensions", {}).get("code") for e in result.get("errors") or []]


LOGIN = """
mutation Login($email: String!, $password: String!) {
  login(email: $email, password: $password) { id email role }
}
"""


def login(client, email, password=PASSWORD):
    result = gql(client, LOGIN, {"email": email, "password": password})
    assert "errors" not in result, result
    return result["data"]["login"]


@pytest.fixture
def admin(store):
    return make_user(store, "A0", "admin", email="admin@school.test")


@pytest.fixture
def school_admin(store, admin):
    return make_user(store, "SA1", "schoolAdmin", email="sa@school.test", created_by=admin["_id"])


@pytest.fixture
def teacher(store, admin):
    return make_user(store, "T1", "teacher", email="teacher@school.test", created_by=admin["_id"])
