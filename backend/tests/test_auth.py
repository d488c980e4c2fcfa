"""
Tests for registration, login and the session-backed token flow
"""
from datetime import timedelta

import pytest

from labnotes.core.security import create_access_token, hash_token
from labnotes.models import utcnow

from conftest import PASSWORD, auth_header, login, make_settings, register


class TestRegistration:
    """Test user registration endpoint"""

    def test_first_user_becomes_admin(self, client):
        data = register(client, 'alice', display_name='Alice Liddell')

        assert data['token']
        assert data['user']['is_admin'] is True
        assert data['user']['role'] == 'Administrator'
        assert data['user']['display_name'] == 'Alice Liddell'
        assert 'hashed_password' not in data['user']

    def test_second_user_is_not_admin(self, client, admin):
        data = register(client, 'bob')

        assert data['user']['is_admin'] is False
        assert data['user']['role'] == 'Researcher'

    def test_duplicate_email_rejected(self, client, admin):
        response = client.post(
            '/api/auth/register',
            json={'username': 'other', 'email': 'ALICE@lab.org', 'password': PASSWORD},
        )

        assert response.status_code == 400
        assert 'already registered' in response.json()['detail'].lower()

    def test_duplicate_username_rejected(self, client, admin):
        response = client.post(
            '/api/auth/register',
            json={'username': 'alice', 'email': 'alice2@lab.org', 'password': PASSWORD},
        )

        assert response.status_code == 400

    def test_short_password_is_a_validation_error(self, client):
        response = client.post(
            '/api/auth/register',
            json={'username': 'carol', 'email': 'carol@lab.org', 'password': 'short'},
        )

        assert response.status_code == 400
        body = response.json()
        assert body['detail'] == 'Validation error'
        assert any(e['field'] == 'password' for e in body['errors'])

    def test_unknown_fields_rejected(self, client):
        response = client.post(
            '/api/auth/register',
            json={'username': 'carol', 'email': 'carol@lab.org', 'password': PASSWORD, 'is_admin': True},
        )

        assert response.status_code == 400


class TestLogin:
    """Test login endpoint"""

    def test_login_with_username(self, client, admin):
        response = client.post('/api/auth/login', json={'username': 'alice', 'password': PASSWORD})

        assert response.status_code == 200
        data = response.json()
        assert data['token']
        assert data['user']['username'] == 'alice'
        assert data['user']['last_login'] is not None

    def test_login_with_email(self, client, admin):
        response = client.post('/api/auth/login', json={'email': 'alice@lab.org', 'password': PASSWORD})

        assert response.status_code == 200

    def test_wrong_password_creates_no_session(self, client, admin, storage):
        user_id = admin['user']['id']
        before = storage.count_user_sessions(user_id)

        response = client.post('/api/auth/login', json={'username': 'alice', 'password': 'wrong-password'})

        assert response.status_code == 401
        assert response.json()['detail'] == 'Invalid username or password'
        assert storage.count_user_sessions(user_id) == before

    def test_unknown_user(self, client):
        response = client.post('/api/auth/login', json={'username': 'nobody', 'password': PASSWORD})

        assert response.status_code == 401

    def test_identifier_required(self, client):
        response = client.post('/api/auth/login', json={'password': PASSWORD})

        assert response.status_code == 400

    def test_each_login_gets_its_own_session(self, client, admin, storage):
        first = login(client, 'alice')
        second = login(client, 'alice')

        assert first != second
        assert storage.get_session_by_token_hash(hash_token(first)) is not None
        assert storage.get_session_by_token_hash(hash_token(second)) is not None


class TestSessions:
    """Tokens are only valid while their session row exists"""

    def test_me(self, client, admin):
        response = client.get('/api/auth/me', headers=admin['headers'])

        assert response.status_code == 200
        assert response.json()['email'] == 'alice@lab.org'

    def test_missing_token(self, client):
        response = client.get('/api/auth/me')

        assert response.status_code == 401
        assert response.headers['www-authenticate'] == 'Bearer'

    def test_garbage_token(self, client):
        response = client.get('/api/auth/me', headers=auth_header('not-a-jwt'))

        assert response.status_code == 401

    def test_signed_token_without_session(self, client, admin, settings):
        token, _ = create_access_token(admin['user']['id'], True, settings=settings)

        response = client.get('/api/auth/me', headers=auth_header(token))

        assert response.status_code == 401

    def test_logout_revokes_token(self, client, admin):
        response = client.post('/api/auth/logout', headers=admin['headers'])
        assert response.status_code == 200

        response = client.get('/api/auth/me', headers=admin['headers'])
        assert response.status_code == 401

    def test_expired_session_is_removed(self, client, admin, storage):
        token_hash = hash_token(admin['token'])
        session = storage.get_session_by_token_hash(token_hash)
        storage.db.query(type(session)).filter_by(id=session.id).update(
            {'expires_at': utcnow() - timedelta(minutes=1)}
        )
        storage.db.commit()

        response = client.get('/api/auth/me', headers=admin['headers'])

        assert response.status_code == 401
        storage.db.expire_all()
        assert storage.get_session_by_token_hash(token_hash) is None


class TestPasswordReset:
    """Test forgot/reset password flow"""

    def test_forgot_password_unknown_email_is_neutral(self, client, mailer):
        response = client.post('/api/auth/forgot-password', json={'email': 'ghost@lab.org'})

        assert response.status_code == 200
        assert 'if an account' in response.json()['message'].lower()
        assert mailer.sent == []

    def test_reset_token_is_single_use(self, client, admin, mailer):
        client.post('/api/auth/forgot-password', json={'email': 'alice@lab.org'})
        token = mailer.last('reset')['token']

        response = client.post('/api/auth/reset-password', json={'token': token, 'password': 'a-new-password'})
        assert response.status_code == 200

        response = client.post('/api/auth/reset-password', json={'token': token, 'password': 'another-password'})
        assert response.status_code == 400

        # New password works, old sessions are gone
        assert client.get('/api/auth/me', headers=admin['headers']).status_code == 401
        login(client, 'alice', 'a-new-password')

    def test_expired_reset_token(self, client, admin, mailer, storage):
        client.post('/api/auth/forgot-password', json={'email': 'alice@lab.org'})
        token = mailer.last('reset')['token']
        user = storage.get_user_by_reset_token(token)
        storage.update_user(user, reset_password_expires=utcnow() - timedelta(seconds=1))

        response = client.post('/api/auth/reset-password', json={'token': token, 'password': 'a-new-password'})

        assert response.status_code == 400
        storage.db.expire_all()
        assert storage.get_user_by_reset_token(token) is None

    def test_unknown_reset_token(self, client):
        response = client.post('/api/auth/reset-password', json={'token': 'nope', 'password': 'a-new-password'})

        assert response.status_code == 400


class TestChangePassword:
    def test_wrong_current_password(self, client, admin):
        response = client.post(
            '/api/auth/change-password',
            json={'current_password': 'wrong-password', 'new_password': 'a-new-password'},
            headers=admin['headers'],
        )

        assert response.status_code == 400

    def test_change_password_revokes_other_sessions(self, client, admin):
        other_token = login(client, 'alice')

        response = client.post(
            '/api/auth/change-password',
            json={'current_password': PASSWORD, 'new_password': 'a-new-password'},
            headers=admin['headers'],
        )

        assert response.status_code == 200
        assert client.get('/api/auth/me', headers=admin['headers']).status_code == 200
        assert client.get('/api/auth/me', headers=auth_header(other_token)).status_code == 401


class TestEmailVerification:
    @pytest.fixture
    def settings(self):
        return make_settings(REQUIRE_EMAIL_VERIFICATION=True)

    def test_first_user_skips_verification(self, client):
        data = register(client, 'alice')

        assert data['token']
        assert data['user']['is_verified'] is True

    def test_later_users_must_verify(self, client, admin, mailer):
        data = register(client, 'bob')

        assert data['token'] is None
        assert data['user']['is_verified'] is False

        response = client.post('/api/auth/login', json={'username': 'bob', 'password': PASSWORD})
        assert response.status_code == 401

        token = mailer.last('verification')['token']
        response = client.post('/api/auth/verify-email', json={'token': token})
        assert response.status_code == 200

        login(client, 'bob')

    def test_resend_verification(self, client, admin, mailer):
        register(client, 'bob')
        first = mailer.last('verification')['token']

        response = client.post('/api/auth/resend-verification', json={'email': 'bob@lab.org'})

        assert response.status_code == 200
        second = mailer.last('verification')['token']
        assert second != first
        assert client.post('/api/auth/verify-email', json={'token': first}).status_code == 400
        assert client.post('/api/auth/verify-email', json={'token': second}).status_code == 200


class TestPasswordCost:
    """Hashes follow the bcrypt cost of the app's own settings, not the process environment."""

    @pytest.fixture
    def settings(self):
        return make_settings(BCRYPT_ROUNDS=5)

    def test_register_and_change_password_use_injected_rounds(self, client, storage):
        data = register(client, 'alice')
        assert storage.get_user_by_username('alice').hashed_password.startswith('$2b$05$')

        response = client.post(
            '/api/auth/change-password',
            json={'current_password': PASSWORD, 'new_password': 'another-secret-1'},
            headers=auth_header(data['token']),
        )

        assert response.status_code == 200
        assert login(client, 'alice', 'another-secret-1')
