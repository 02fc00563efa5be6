"""Tests for the JSON endpoints."""

import base64
import json

import pytest
from django.urls import reverse

from server.apps.files.models import DerivativeJob, File


def _post(client, payload, token=None):
    headers = {'X-Token': token} if token else {}
    return client.post(
        reverse('files:collection'),
        data=json.dumps(payload),
        content_type='application/json',
        headers=headers,
    )


def _auth(token):
    return {'X-Token': token}


@pytest.fixture
def api(client, default_memory_storage):
    """Django test client with in-memory content storage."""
    return client


@pytest.fixture
def folder_id(api, token):
    """Id of a folder created through the API."""
    response = _post(api, {'name': 'Photos', 'type': 'folder'}, token)
    return response.json()['id']


@pytest.mark.django_db
class TestUploadEndpoint:
    """Tests for POST /files."""

    def test_create_folder(self, api, token, user):
        """Test a folder is created and described."""
        response = _post(api, {'name': 'Photos', 'type': 'folder'}, token)

        assert response.status_code == 201
        body = response.json()
        assert body == {
            'id': body['id'],
            'userId': user.id,
            'name': 'Photos',
            'type': 'folder',
            'isPublic': False,
            'parentId': 0,
        }

    def test_create_image_in_folder(self, api, token, folder_id, png_payload):
        """Test an image upload answers before thumbnails exist."""
        response = _post(
            api,
            {
                'name': 'a.png',
                'type': 'image',
                'data': png_payload,
                'parentId': folder_id,
                'isPublic': True,
            },
            token,
        )

        assert response.status_code == 201
        body = response.json()
        assert body['parentId'] == folder_id
        assert body['isPublic'] is True
        assert 'storage_ref' not in body
        assert DerivativeJob.objects.filter(file_id=body['id']).count() == 1

    def test_without_token(self, api):
        """Test anonymous uploads are rejected."""
        response = _post(api, {'name': 'Photos', 'type': 'folder'})

        assert response.status_code == 401
        assert response.json() == {'error': 'Unauthorized'}

    @pytest.mark.parametrize(('payload', 'error'), [
        ({}, 'Missing name'),
        ({'name': 'a.txt'}, 'Missing type'),
        ({'name': 'a.txt', 'type': 'file'}, 'Missing data'),
        ({'name': 'a', 'type': 'folder', 'parentId': 99999}, 'Parent not found'),
    ])
    def test_validation_errors(self, api, token, payload, error):
        """Test malformed uploads get 400 with the first problem."""
        response = _post(api, payload, token)

        assert response.status_code == 400
        assert response.json() == {'error': error}
        assert File.objects.count() == 0

    def test_malformed_json(self, api, token):
        """Test a body that is not JSON is treated as empty."""
        response = api.post(
            reverse('files:collection'),
            data='not json',
            content_type='application/json',
            headers=_auth(token),
        )

        assert response.status_code == 400
        assert response.json() == {'error': 'Missing name'}


@pytest.mark.django_db
class TestListEndpoint:
    """Tests for GET /files."""

    def test_list_children(self, api, token, folder_id):
        """Test listing a folder by `parentId`."""
        _post(api, {'name': '2024', 'type': 'folder', 'parentId': folder_id}, token)

        response = api.get(
            reverse('files:collection'),
            {'parentId': folder_id},
            headers=_auth(token),
        )

        assert response.status_code == 200
        assert [item['name'] for item in response.json()] == ['2024']

    def test_pages(self, api, token, settings):
        """Test `page` selects fixed-size pages."""
        settings.FILES_PAGE_SIZE = 2
        for index in range(3):
            _post(api, {'name': str(index), 'type': 'folder'}, token)

        first = api.get(reverse('files:collection'), headers=_auth(token))
        second = api.get(
            reverse('files:collection'),
            {'page': 1},
            headers=_auth(token),
        )

        assert [item['name'] for item in first.json()] == ['0', '1']
        assert [item['name'] for item in second.json()] == ['2']

    def test_without_token(self, api):
        """Test anonymous listing is rejected."""
        response = api.get(reverse('files:collection'))

        assert response.status_code == 401

    def test_method_not_allowed(self, api, token):
        """Test unsupported methods are refused."""
        response = api.delete(reverse('files:collection'), headers=_auth(token))

        assert response.status_code == 405


@pytest.mark.django_db
class TestDetailEndpoints:
    """Tests for showing and publishing one file."""

    def test_show(self, api, token, folder_id):
        """Test the owner can show a file."""
        response = api.get(
            reverse('files:detail', args=[folder_id]),
            headers=_auth(token),
        )

        assert response.status_code == 200
        assert response.json()['id'] == folder_id

    def test_show_other_users_private(self, api, other_token, folder_id):
        """Test other users get 404 for private files."""
        response = api.get(
            reverse('files:detail', args=[folder_id]),
            headers=_auth(other_token),
        )

        assert response.status_code == 404
        assert response.json() == {'error': 'Not found'}

    def test_publish_and_unpublish(self, api, token, folder_id):
        """Test visibility changes through PUT."""
        published = api.put(
            reverse('files:publish', args=[folder_id]),
            headers=_auth(token),
        )
        unpublished = api.put(
            reverse('files:unpublish', args=[folder_id]),
            headers=_auth(token),
        )

        assert published.status_code == 200
        assert published.json()['isPublic'] is True
        assert unpublished.json()['isPublic'] is False

    def test_publish_requires_owner(self, api, other_token, folder_id):
        """Test other users cannot publish."""
        response = api.put(
            reverse('files:publish', args=[folder_id]),
            headers=_auth(other_token),
        )

        assert response.status_code == 404

    def test_publish_requires_put(self, api, token, folder_id):
        """Test publishing through GET is refused."""
        response = api.get(
            reverse('files:publish', args=[folder_id]),
            headers=_auth(token),
        )

        assert response.status_code == 405


@pytest.mark.django_db
class TestDataEndpoint:
    """Tests for GET /files/<id>/data."""

    @pytest.fixture
    def text_file_id(self, api, token, text_payload):
        response = _post(
            api,
            {'name': 'hello.txt', 'type': 'file', 'data': text_payload},
            token,
        )
        return response.json()['id']

    def test_owner_gets_content(self, api, token, text_file_id):
        """Test content is served with its MIME type."""
        response = api.get(
            reverse('files:data', args=[text_file_id]),
            headers=_auth(token),
        )

        assert response.status_code == 200
        assert response.content == b'Hello Webstack!'
        assert response['Content-Type'].startswith('text/plain')

    def test_anonymous_private(self, api, text_file_id):
        """Test private content is hidden from anonymous requests."""
        response = api.get(reverse('files:data', args=[text_file_id]))

        assert response.status_code == 404

    def test_anonymous_public(self, api, token, text_file_id):
        """Test public content is served without a token."""
        api.put(
            reverse('files:publish', args=[text_file_id]),
            headers=_auth(token),
        )

        response = api.get(reverse('files:data', args=[text_file_id]))

        assert response.status_code == 200
        assert response.content == b'Hello Webstack!'

    def test_folder(self, api, token, folder_id):
        """Test folders have no content."""
        response = api.get(
            reverse('files:data', args=[folder_id]),
            headers=_auth(token),
        )

        assert response.status_code == 400
        assert response.json() == {'error': "A folder doesn't have content"}

    def test_thumbnail_before_processing(self, api, token, png_payload):
        """Test thumbnails are 404 until generated, the original is not."""
        image_id = _post(
            api,
            {'name': 'a.png', 'type': 'image', 'data': png_payload},
            token,
        ).json()['id']
        url = reverse('files:data', args=[image_id])

        thumbnail = api.get(url, {'size': 100}, headers=_auth(token))
        original = api.get(url, {'size': ''}, headers=_auth(token))

        assert thumbnail.status_code == 404
        assert original.status_code == 200
        assert original.content == base64.b64decode(png_payload)
        assert original['Content-Type'] == 'image/png'


@pytest.mark.django_db
class TestServiceEndpoints:
    """Tests for status and stats."""

    def test_status(self, api):
        """Test status reports both backends."""
        response = api.get(reverse('files:status'))

        assert response.status_code == 200
        assert response.json() == {'db': True, 'storage': True}

    def test_stats(self, api, token, folder_id, other_user):
        """Test stats counts users and files."""
        response = api.get(reverse('files:stats'))

        assert response.status_code == 200
        assert response.json() == {'users': 2, 'files': 1}


@pytest.mark.django_db
class TestNonAsciiDigits:
    """Tests for digit-like characters in numeric parameters."""

    def test_list_page(self, api, token, folder_id):
        """Test such a page lists the first page."""
        response = api.get(
            reverse('files:collection'),
            {'page': '²'},
            headers=_auth(token),
        )

        assert response.status_code == 200
        assert [item['id'] for item in response.json()] == [folder_id]

    def test_list_parent(self, api, token, folder_id):
        """Test such a parent lists nothing."""
        response = api.get(
            reverse('files:collection'),
            {'parentId': '²'},
            headers=_auth(token),
        )

        assert response.status_code == 200
        assert response.json() == []

    def test_upload_parent(self, api, token):
        """Test such a parent is not found."""
        response = _post(
            api,
            {'name': 'a', 'type': 'folder', 'parentId': '²'},
            token,
        )

        assert response.status_code == 400
        assert response.json() == {'error': 'Parent not found'}

    def test_data_size(self, api, token, png_payload):
        """Test such a thumbnail size is not found."""
        image_id = _post(
            api,
            {'name': 'a.png', 'type': 'image', 'data': png_payload},
            token,
        ).json()['id']

        response = api.get(
            reverse('files:data', args=[image_id]),
            {'size': '²'},
            headers=_auth(token),
        )

        assert response.status_code == 404


@pytest.mark.django_db
def test_upload_name_too_long(api, token):
    """Test an over-long name is a bad request naming the field."""
    response = _post(api, {'name': 'a' * 256, 'type': 'folder'}, token)

    assert response.status_code == 400
    assert response.json() == {'error': 'Invalid name'}
