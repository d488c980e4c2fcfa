"""
Tests for attachment upload, download and object storage placement
"""
import pytest

from labnotes import models

from conftest import add_collaborator, make_settings


@pytest.fixture
def note(client, researcher, project):
    response = client.post(
        '/api/notes', json={'title': 'Gel images', 'project_id': project['id']}, headers=researcher['headers']
    )
    assert response.status_code == 201
    return response.json()


def upload(client, note_id, headers, name='gel.png', data=b'\x89PNG fake', content_type='image/png'):
    return client.post(
        '/api/attachments',
        data={'note_id': str(note_id)},
        files={'file': (name, data, content_type)},
        headers=headers,
    )


class TestUpload:
    def test_upload_inline_and_download(self, client, researcher, note, storage):
        response = upload(client, note['id'], researcher['headers'])

        assert response.status_code == 201
        meta = response.json()
        assert meta['file_name'] == 'gel.png'
        assert meta['file_size'] == len(b'\x89PNG fake')
        assert meta['stored_externally'] is False
        assert 'file_data' not in meta

        row = storage.get_attachment(meta['id'])
        assert row.file_data is not None and row.file_path is None

        response = client.get(f"/api/attachments/{meta['id']}/download", headers=researcher['headers'])
        assert response.status_code == 200
        assert response.content == b'\x89PNG fake'
        assert response.headers['content-type'] == 'image/png'
        assert response.headers['content-disposition'].startswith('inline;')

    def test_upload_via_note_route(self, client, researcher, note):
        response = client.post(
            f"/api/notes/{note['id']}/attachments",
            files={'file': ('results.csv', b'x,y\n', 'text/csv')},
            headers=researcher['headers'],
        )

        assert response.status_code == 201
        listed = client.get(f"/api/attachments/note/{note['id']}", headers=researcher['headers']).json()
        assert [a['file_name'] for a in listed] == ['results.csv']

        response = client.get(f"/api/attachments/{listed[0]['id']}/download", headers=researcher['headers'])
        assert response.headers['content-disposition'].startswith('attachment;')

    def test_empty_file_rejected(self, client, researcher, note):
        response = upload(client, note['id'], researcher['headers'], data=b'')

        assert response.status_code == 400

    def test_unknown_note(self, client, researcher):
        assert upload(client, 999, researcher['headers']).status_code == 404

    def test_outsider_cannot_upload_or_download(self, client, researcher, outsider, note):
        meta = upload(client, note['id'], researcher['headers']).json()

        assert upload(client, note['id'], outsider['headers']).status_code == 403
        assert client.get(
            f"/api/attachments/{meta['id']}/download", headers=outsider['headers']
        ).status_code == 403


class TestUploadLimit:
    @pytest.fixture
    def settings(self):
        return make_settings(MAX_UPLOAD_SIZE=16)

    def test_size_ceiling(self, client, researcher, note):
        assert upload(client, note['id'], researcher['headers'], data=b'x' * 16).status_code == 201

        response = upload(client, note['id'], researcher['headers'], data=b'x' * 17)

        assert response.status_code == 413


class TestObjectStorage:
    def enable_s3(self, client, user, headers):
        response = client.patch(
            f"/api/users/{user['id']}",
            json={
                's3_enabled': True,
                's3_bucket': 'lab-bucket',
                's3_access_key': 'AKIA-test',
                's3_secret_key': 'secret',
            },
            headers=headers,
        )
        assert response.status_code == 200
        assert 's3_secret_key' not in response.json()

    def test_upload_goes_to_bucket_and_delete_removes_it(self, client, researcher, note, object_store, storage):
        self.enable_s3(client, researcher['user'], researcher['headers'])

        meta = upload(client, note['id'], researcher['headers']).json()

        assert meta['stored_externally'] is True
        row = storage.get_attachment(meta['id'])
        assert row.file_data is None
        assert row.file_path in object_store.objects

        response = client.get(f"/api/attachments/{meta['id']}/download", headers=researcher['headers'])
        assert response.content == b'\x89PNG fake'

        assert client.delete(f"/api/attachments/{meta['id']}", headers=researcher['headers']).status_code == 204
        assert object_store.objects == {}


class TestManage:
    def test_rename(self, client, researcher, note):
        meta = upload(client, note['id'], researcher['headers']).json()

        response = client.patch(
            f"/api/attachments/{meta['id']}", json={'file_name': 'gel-final.png'}, headers=researcher['headers']
        )

        assert response.status_code == 200
        assert response.json()['file_name'] == 'gel-final.png'

    def test_delete(self, client, researcher, note, storage):
        meta = upload(client, note['id'], researcher['headers']).json()

        assert client.delete(f"/api/attachments/{meta['id']}", headers=researcher['headers']).status_code == 204
        assert client.get(f"/api/attachments/{meta['id']}", headers=researcher['headers']).status_code == 404

    def test_editor_deletes_only_own_uploads(self, client, researcher, outsider, project, note):
        add_collaborator(client, project['id'], outsider['user']['id'], 'Editor', researcher['headers'])
        owners = upload(client, note['id'], researcher['headers']).json()
        own = upload(client, note['id'], outsider['headers']).json()

        assert client.delete(f"/api/attachments/{owners['id']}", headers=outsider['headers']).status_code == 403
        assert client.delete(f"/api/attachments/{own['id']}", headers=outsider['headers']).status_code == 204

    def test_deleting_note_removes_attachments(self, client, researcher, note, storage):
        upload(client, note['id'], researcher['headers'])

        assert client.delete(f"/api/notes/{note['id']}", headers=researcher['headers']).status_code == 204

        storage.db.expire_all()
        assert storage.db.query(models.Attachment).count() == 0
