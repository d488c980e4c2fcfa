"""
Tests for admin user management and user profiles
"""
from conftest import PASSWORD, login


class TestAdmin:
    def test_non_admin_forbidden(self, client, researcher):
        assert client.get('/api/admin/users', headers=researcher['headers']).status_code == 403
        assert client.get('/api/admin/stats', headers=researcher['headers']).status_code == 403

    def test_stats(self, client, admin, researcher, project):
        client.post('/api/notes', json={'title': 'T', 'project_id': project['id']}, headers=researcher['headers'])

        response = client.get('/api/admin/stats', headers=admin['headers'])

        assert response.status_code == 200
        assert response.json() == {'users': 2, 'projects': 1, 'experiments': 0, 'notes': 1, 'reports': 0}

    def test_create_user(self, client, admin):
        response = client.post(
            '/api/admin/users',
            json={'username': 'carol', 'email': 'carol@lab.org', 'password': PASSWORD, 'is_admin': True},
            headers=admin['headers'],
        )

        assert response.status_code == 201
        assert response.json()['is_admin'] is True
        assert response.json()['role'] == 'Administrator'
        login(client, 'carol')

    def test_create_duplicate_user(self, client, admin):
        response = client.post(
            '/api/admin/users',
            json={'username': 'alice', 'email': 'new@lab.org', 'password': PASSWORD},
            headers=admin['headers'],
        )

        assert response.status_code == 400

    def test_update_user_password_revokes_sessions(self, client, admin, researcher):
        response = client.put(
            f"/api/admin/users/{researcher['user']['id']}",
            json={'password': 'reset-by-admin', 'display_name': 'Robert'},
            headers=admin['headers'],
        )

        assert response.status_code == 200
        assert response.json()['display_name'] == 'Robert'
        assert client.get('/api/auth/me', headers=researcher['headers']).status_code == 401
        login(client, 'bob', 'reset-by-admin')

    def test_admin_cannot_demote_self(self, client, admin):
        response = client.put(
            f"/api/admin/users/{admin['user']['id']}", json={'is_admin': False}, headers=admin['headers']
        )

        assert response.status_code == 400

    def test_admin_cannot_delete_self(self, client, admin):
        response = client.delete(f"/api/admin/users/{admin['user']['id']}", headers=admin['headers'])

        assert response.status_code == 400

    def test_delete_user_removes_owned_projects(self, client, admin, researcher, project):
        response = client.delete(f"/api/admin/users/{researcher['user']['id']}", headers=admin['headers'])

        assert response.status_code == 200
        assert client.get(f"/api/projects/{project['id']}", headers=admin['headers']).status_code == 404
        assert client.get('/api/auth/me', headers=researcher['headers']).status_code == 401

    def test_delete_unknown_user(self, client, admin):
        assert client.delete('/api/admin/users/999', headers=admin['headers']).status_code == 404


class TestUsers:
    def test_list_hides_private_fields_from_non_admins(self, client, admin, researcher):
        listed = client.get('/api/users', headers=researcher['headers']).json()
        alice = next(u for u in listed if u['username'] == 'alice')
        assert 'email' not in alice

        listed = client.get('/api/users', headers=admin['headers']).json()
        bob = next(u for u in listed if u['username'] == 'bob')
        assert bob['email'] == 'bob@lab.org'

    def test_read_self_includes_private_fields(self, client, researcher):
        response = client.get(f"/api/users/{researcher['user']['id']}", headers=researcher['headers'])

        assert response.json()['email'] == 'bob@lab.org'

    def test_update_own_profile(self, client, researcher):
        response = client.patch(
            f"/api/users/{researcher['user']['id']}",
            json={'display_name': 'Bob B.', 'bio': 'Structural biology'},
            headers=researcher['headers'],
        )

        assert response.status_code == 200
        assert response.json()['display_name'] == 'Bob B.'
        assert response.json()['bio'] == 'Structural biology'

    def test_profile_form_fields(self, client, researcher):
        url = f"/api/users/{researcher['user']['id']}"
        client.patch(url, json={'bio': 'Structural biology'}, headers=researcher['headers'])

        response = client.patch(
            url,
            json={'email': 'bob.b@lab.org', 'avatar_url': 'https://lab.org/bob.png', 'bio': None},
            headers=researcher['headers'],
        )

        assert response.status_code == 200
        user = response.json()
        assert user['email'] == 'bob.b@lab.org'
        assert user['avatar_url'] == 'https://lab.org/bob.png'
        assert user['bio'] is None
        assert user['display_name'] == researcher['user']['display_name']

    def test_cannot_update_someone_else(self, client, admin, researcher):
        response = client.patch(
            f"/api/users/{admin['user']['id']}", json={'bio': 'hacked'}, headers=researcher['headers']
        )

        assert response.status_code == 403

    def test_email_must_stay_unique(self, client, admin, researcher):
        response = client.patch(
            f"/api/users/{researcher['user']['id']}", json={'email': 'alice@lab.org'}, headers=researcher['headers']
        )

        assert response.status_code == 400


class TestApp:
    def test_root_and_health(self, client):
        assert client.get('/').json()['status'] == 'running'
        assert client.get('/health').json() == {'status': 'healthy'}

    def test_non_bearer_scheme(self, client):
        response = client.get('/api/projects', headers={'Authorization': 'Basic YWxpY2U6c2VjcmV0'})

        assert response.status_code == 401
