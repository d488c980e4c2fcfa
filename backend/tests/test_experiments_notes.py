"""
Tests for experiment and note endpoints
"""
from conftest import add_collaborator


def create_experiment(client, project_id, headers, name='Run 1'):
    response = client.post('/api/experiments', json={'name': name, 'project_id': project_id}, headers=headers)
    assert response.status_code == 201, response.text
    return response.json()


def create_note(client, headers, **payload):
    response = client.post('/api/notes', json=payload, headers=headers)
    assert response.status_code == 201, response.text
    return response.json()


class TestExperiments:
    def test_crud(self, client, researcher, project):
        headers = researcher['headers']
        experiment = create_experiment(client, project['id'], headers)

        response = client.get(f"/api/experiments/project/{project['id']}", headers=headers)
        assert [e['id'] for e in response.json()] == [experiment['id']]

        response = client.put(
            f"/api/experiments/{experiment['id']}", json={'description': 'pH 7.4'}, headers=headers
        )
        assert response.status_code == 200
        assert response.json()['description'] == 'pH 7.4'
        assert response.json()['name'] == 'Run 1'

        assert client.delete(f"/api/experiments/{experiment['id']}", headers=headers).status_code == 204
        assert client.get(f"/api/experiments/{experiment['id']}", headers=headers).status_code == 404

    def test_project_is_immutable(self, client, researcher, project):
        headers = researcher['headers']
        experiment = create_experiment(client, project['id'], headers)

        response = client.put(
            f"/api/experiments/{experiment['id']}", json={'project_id': 99}, headers=headers
        )

        assert response.status_code == 400

    def test_unknown_project(self, client, researcher):
        response = client.post(
            '/api/experiments', json={'name': 'E', 'project_id': 999}, headers=researcher['headers']
        )

        assert response.status_code == 404

    def test_list_is_limited_to_accessible_projects(self, client, researcher, outsider, project):
        create_experiment(client, project['id'], researcher['headers'])

        assert client.get('/api/experiments', headers=outsider['headers']).json() == []
        assert len(client.get('/api/experiments', headers=researcher['headers']).json()) == 1

    def test_editor_creates_but_cannot_delete(self, client, researcher, outsider, project):
        add_collaborator(client, project['id'], outsider['user']['id'], 'Editor', researcher['headers'])

        experiment = create_experiment(client, project['id'], outsider['headers'])
        response = client.delete(f"/api/experiments/{experiment['id']}", headers=outsider['headers'])

        assert response.status_code == 403


class TestNotes:
    def test_round_trip(self, client, researcher, project):
        headers = researcher['headers']
        note = create_note(client, headers, title='T', content='<p>hi</p>', project_id=project['id'])

        response = client.get(f"/api/notes/{note['id']}", headers=headers)

        assert response.status_code == 200
        data = response.json()
        assert data['title'] == 'T'
        assert data['content'] == '<p>hi</p>'
        assert data['project_id'] == project['id']
        assert data['author_id'] == researcher['user']['id']
        assert data['experiment_id'] is None

    def test_experiment_must_belong_to_project(self, client, researcher, project):
        headers = researcher['headers']
        other = client.post('/api/projects', json={'name': 'Other'}, headers=headers).json()
        foreign = create_experiment(client, other['id'], headers)

        response = client.post(
            '/api/notes',
            json={'title': 'T', 'project_id': project['id'], 'experiment_id': foreign['id']},
            headers=headers,
        )
        assert response.status_code == 400

        note = create_note(client, headers, title='T', project_id=project['id'])
        response = client.put(f"/api/notes/{note['id']}", json={'experiment_id': foreign['id']}, headers=headers)
        assert response.status_code == 400

    def test_move_note_between_experiments(self, client, researcher, project):
        headers = researcher['headers']
        first = create_experiment(client, project['id'], headers, 'First')
        second = create_experiment(client, project['id'], headers, 'Second')
        note = create_note(client, headers, title='T', project_id=project['id'], experiment_id=first['id'])

        response = client.put(f"/api/notes/{note['id']}", json={'experiment_id': second['id']}, headers=headers)
        assert response.status_code == 200
        assert response.json()['experiment_id'] == second['id']

        listed = client.get(f"/api/notes/experiment/{second['id']}", headers=headers).json()
        assert [n['id'] for n in listed] == [note['id']]

        response = client.put(f"/api/notes/{note['id']}", json={'experiment_id': None}, headers=headers)
        assert response.json()['experiment_id'] is None

    def test_update_keeps_title_when_omitted(self, client, researcher, project):
        headers = researcher['headers']
        note = create_note(client, headers, title='Keep me', content='<p>a</p>', project_id=project['id'])

        response = client.put(f"/api/notes/{note['id']}", json={'content': '<p>b</p>'}, headers=headers)

        assert response.json()['title'] == 'Keep me'
        assert response.json()['content'] == '<p>b</p>'

    def test_viewer_reads_but_cannot_write(self, client, researcher, outsider, project):
        add_collaborator(client, project['id'], outsider['user']['id'], 'Viewer', researcher['headers'])
        note = create_note(client, researcher['headers'], title='T', project_id=project['id'])

        assert client.get(f"/api/notes/{note['id']}", headers=outsider['headers']).status_code == 200
        assert client.get(f"/api/notes/project/{project['id']}", headers=outsider['headers']).status_code == 200
        assert client.put(
            f"/api/notes/{note['id']}", json={'title': 'X'}, headers=outsider['headers']
        ).status_code == 403
        assert client.post(
            '/api/notes', json={'title': 'N', 'project_id': project['id']}, headers=outsider['headers']
        ).status_code == 403

    def test_editor_deletes_own_note_only(self, client, researcher, outsider, project):
        add_collaborator(client, project['id'], outsider['user']['id'], 'Editor', researcher['headers'])
        owners_note = create_note(client, researcher['headers'], title='Owner', project_id=project['id'])
        own_note = create_note(client, outsider['headers'], title='Mine', project_id=project['id'])

        assert client.delete(f"/api/notes/{owners_note['id']}", headers=outsider['headers']).status_code == 403
        assert client.delete(f"/api/notes/{own_note['id']}", headers=outsider['headers']).status_code == 204

    def test_list_notes(self, client, admin, researcher, outsider, project):
        create_note(client, researcher['headers'], title='T', project_id=project['id'])

        assert len(client.get('/api/notes', headers=researcher['headers']).json()) == 1
        assert client.get('/api/notes', headers=outsider['headers']).json() == []
        assert len(client.get('/api/notes', headers=admin['headers']).json()) == 1
