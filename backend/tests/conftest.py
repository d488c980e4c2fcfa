"""
Lab Notebook - Test Configuration and Fixtures
"""
import os
import tempfile
from typing import Generator, Optional

import pytest
from fastapi.testclient import TestClient

# Set testing environment before the application modules read it
os.environ['DATABASE_URL'] = 'sqlite://'
os.environ['SECRET_KEY'] = 'test-secret-key-for-testing-only'
os.environ['BCRYPT_ROUNDS'] = '4'
os.environ['DB_RETRY_BASE_DELAY'] = '0'
os.environ['REQUIRE_EMAIL_VERIFICATION'] = 'false'
os.environ['SMTP_HOST'] = ''
os.environ['LOG_DIR'] = tempfile.mkdtemp(prefix='labnotes-logs-')

from labnotes.core.config import Settings
from labnotes.main import create_app

PASSWORD = 'correct-horse-battery'


class FakeMailer:
    """Records outgoing mail instead of talking to SMTP."""

    def __init__(self, succeed: bool = True):
        self.succeed = succeed
        self.sent = []

    @property
    def is_configured(self) -> bool:
        return True

    async def send_password_reset_email(self, to_email, username, token):
        self.sent.append({'kind': 'reset', 'to': to_email, 'token': token})
        return self.succeed

    async def send_verification_email(self, to_email, username, token):
        self.sent.append({'kind': 'verification', 'to': to_email, 'token': token})
        return self.succeed

    async def send_report_email(self, to_email, sender_name, report_title, pdf_bytes, filename,
                                subject=None, message=None):
        self.sent.append({
            'kind': 'report',
            'to': to_email,
            'filename': filename,
            'size': len(pdf_bytes),
            'subject': subject,
        })
        return self.succeed

    def last(self, kind: str) -> Optional[dict]:
        matches = [m for m in self.sent if m['kind'] == kind]
        return matches[-1] if matches else None


class FakeObjectStorage:
    """In-memory stand-in for a user's bucket."""

    def __init__(self):
        self.objects = {}
        self._counter = 0

    def put(self, file_name, data, content_type):
        self._counter += 1
        key = f'files/{self._counter}-{file_name}'
        self.objects[key] = data
        return key

    def get(self, key):
        return self.objects[key]

    def delete(self, key):
        self.objects.pop(key, None)


def make_settings(**overrides) -> Settings:
    settings = Settings()
    for key, value in overrides.items():
        setattr(settings, key, value)
    return settings


@pytest.fixture
def mailer() -> FakeMailer:
    return FakeMailer()


@pytest.fixture
def object_store() -> FakeObjectStorage:
    return FakeObjectStorage()


@pytest.fixture
def settings() -> Settings:
    return make_settings()


@pytest.fixture
def app(settings, mailer, object_store):
    """Fresh application over its own in-memory database"""
    def factory(user):
        return object_store if user is not None and user.s3_enabled else None

    return create_app(settings=settings, mailer=mailer, object_storage_factory=factory)


@pytest.fixture
def client(app) -> Generator[TestClient, None, None]:
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def storage(app):
    """Storage over the app's database, for assertions on persisted rows"""
    from labnotes.db.storage import Storage

    db = app.state.db.session()
    try:
        yield Storage(db, max_attempts=1, base_delay=0)
    finally:
        db.close()


def register(client: TestClient, username: str, password: str = PASSWORD, **extra) -> dict:
    payload = {'username': username, 'email': f'{username}@lab.org', 'password': password}
    payload.update(extra)
    response = client.post('/api/auth/register', json=payload)
    assert response.status_code == 201, response.text
    return response.json()


def login(client: TestClient, username: str, password: str = PASSWORD) -> str:
    response = client.post('/api/auth/login', json={'username': username, 'password': password})
    assert response.status_code == 200, response.text
    return response.json()['token']


def auth_header(token: str) -> dict:
    return {'Authorization': f'Bearer {token}'}


@pytest.fixture
def admin(client) -> dict:
    """First registrant, therefore the administrator"""
    data = register(client, 'alice')
    return {'user': data['user'], 'token': data['token'], 'headers': auth_header(data['token'])}


@pytest.fixture
def researcher(client, admin) -> dict:
    data = register(client, 'bob')
    return {'user': data['user'], 'token': data['token'], 'headers': auth_header(data['token'])}


@pytest.fixture
def outsider(client, admin) -> dict:
    data = register(client, 'mallory')
    return {'user': data['user'], 'token': data['token'], 'headers': auth_header(data['token'])}


@pytest.fixture
def project(client, researcher) -> dict:
    """A project owned by the researcher"""
    response = client.post(
        '/api/projects',
        json={'name': 'Protein folding', 'description': 'Kinetics study'},
        headers=researcher['headers'],
    )
    assert response.status_code == 201, response.text
    return response.json()


def add_collaborator(client: TestClient, project_id: int, user_id: int, role: str, headers: dict) -> dict:
    response = client.post(
        f'/api/projects/{project_id}/collaborators',
        json={'user_id': user_id, 'role': role},
        headers=headers,
    )
    assert response.status_code == 201, response.text
    return response.json()
