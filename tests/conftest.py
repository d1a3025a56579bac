"""Shared fixtures: a throwaway backend per test and fake named-action transport."""
import pytest

from genova.backend import Backend
from genova.models.identity import CallerIdentity, Role

FUNCTIONS_URL = "http://functions.test/v1"


class FakeResponse:
    def __init__(self, payload=None, status_code=200, text=None):
        self.payload = payload
        self.status_code = status_code
        self.text = text

    def json(self):
        if self.text is not None:
            raise ValueError("No JSON object could be decoded")
        return self.payload


class FakeSession:
    """Stands in for requests.Session; records every POST."""

    def __init__(self):
        self.calls = []
        self.responses = {}

    def reply(self, function, payload=None, status_code=200, text=None):
        self.responses[function] = FakeResponse(payload, status_code, text)

    def post(self, url, json=None, headers=None, timeout=None):
        self.calls.append({"url": url, "json": json, "headers": headers, "timeout": timeout})
        function = url.rsplit("/", 1)[-1]
        if isinstance(self.responses.get(function), Exception):
            raise self.responses[function]
        return self.responses.get(function, FakeResponse({}))

    @property
    def last_body(self):
        return self.calls[-1]["json"]


@pytest.fixture
def backend(tmp_path):
    return Backend.local(tmp_path, functions_url=FUNCTIONS_URL)


@pytest.fixture
def actions(backend):
    session = FakeSession()
    backend.actions.session = session
    return session


@pytest.fixture
def expert():
    return CallerIdentity("expert-1", Role.EXPERT)


@pytest.fixture
def other_expert():
    return CallerIdentity("expert-2", Role.EXPERT)


@pytest.fixture
def seeker():
    return CallerIdentity("seeker-1", Role.SEEKER)


@pytest.fixture
def moderator():
    return CallerIdentity("mod-1", Role.MODERATOR)


@pytest.fixture
def admin():
    return CallerIdentity("admin-1", Role.ADMIN)


@pytest.fixture
def project(backend, seeker, expert):
    from genova.workflows import ProjectWorkspace
    return ProjectWorkspace(backend).create_project(
        seeker, "Market entry study", seeker_id=seeker.user_id, expert_id=expert.user_id
    )


@pytest.fixture
def fake_session():
    return FakeSession()
