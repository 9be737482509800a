from urllib.parse import quote

import pytest
from fastapi.testclient import TestClient

from mailserver_lib.main import Config, create_app
from mailserver_lib.services import ServiceContainer
from tests.helpers import FIXTURE, MAILTEST, RAILTEST, hash_for, register_service_on_client


@pytest.fixture
def app(accounts_file, codec):
    return create_app(Config(config_dir=str(accounts_file.parent), watch=False), codec=codec)


@pytest.fixture
def client(app):
    # No context manager: the lifespan (and with it the sync controller) is not started.
    return TestClient(app)


@pytest.fixture
def account_store(app):
    return app.state.container.get('account_store')


def change_password(client, username, body):
    return client.post(f'/user/{quote(username)}', json=body)


def test_change_password_success(client, account_store):
    resp = change_password(client, MAILTEST, {'oldPassword': 'abc', 'newPassword': 'ab'})
    assert resp.status_code == 200
    assert resp.json() == {'success': True, 'username': MAILTEST}
    assert account_store.accounts == {MAILTEST: hash_for('ab'), RAILTEST: FIXTURE[RAILTEST]}


def test_change_password_wrong_old_password(client, account_store):
    resp = change_password(client, MAILTEST, {'oldPassword': 'badPassword', 'newPassword': 'ab'})
    assert resp.status_code == 403
    assert resp.json() == {'success': False, 'code': 403, 'message': 'Bad username or password'}
    assert account_store.accounts == FIXTURE


def test_change_password_unknown_user_looks_like_wrong_password(client):
    resp = change_password(client, 'missing@test.knappi.org', {'oldPassword': 'abc', 'newPassword': 'ab'})
    assert resp.status_code == 403
    assert resp.json()['message'] == 'Bad username or password'


@pytest.mark.parametrize('body', [
    {},
    {'oldPassword': 'abc'},
    {'newPassword': 'ab'},
    {'oldPassword': None, 'newPassword': 'ab'},
])
def test_change_password_incomplete_request(client, account_store, body):
    resp = change_password(client, MAILTEST, body)
    assert resp.status_code == 400
    assert resp.json() == {
        'success': False,
        'code': 400,
        'message': 'Request must contain username, oldPassword and newPassword',
    }
    assert account_store.accounts == FIXTURE


def test_change_password_without_body(client):
    resp = client.post(f'/user/{quote(MAILTEST)}')
    assert resp.status_code == 400
    assert resp.json()['code'] == 400


def test_change_password_invalid_json(client):
    resp = client.post(
        f'/user/{quote(MAILTEST)}',
        content=b'{"oldPassword": ',
        headers={'Content-Type': 'application/json'},
    )
    assert resp.status_code == 400


def test_change_password_wrong_types(client, account_store):
    resp = change_password(client, MAILTEST, {'oldPassword': ['abc'], 'newPassword': 'ab'})
    assert resp.status_code == 400
    assert account_store.accounts == FIXTURE


def test_change_password_corrupt_hash_is_internal_error(tmp_path, codec):
    path = tmp_path / 'postfix-accounts.cf'
    path.write_text(f'{MAILTEST}|not-a-hash\n', encoding='utf-8')
    app = create_app(Config(config_dir=str(tmp_path), watch=False), codec=codec)
    resp = change_password(TestClient(app), MAILTEST, {'oldPassword': 'abc', 'newPassword': 'ab'})
    assert resp.status_code == 500
    assert resp.json() == {'success': False, 'code': 500, 'message': 'Internal server error'}


def test_change_password_store_failure_is_internal_error(client):
    class FailingStore:
        def verify_and_update_user_password(self, username, old_password, new_password):
            raise OSError('read-only file system')

    register_service_on_client(client, 'account_store', FailingStore())
    resp = change_password(client, MAILTEST, {'oldPassword': 'abc', 'newPassword': 'ab'})
    assert resp.status_code == 500
    assert resp.json()['message'] == 'Internal server error'


def test_missing_container_is_internal_error(client):
    client.app.state.container = ServiceContainer()
    resp = change_password(client, MAILTEST, {'oldPassword': 'abc', 'newPassword': 'ab'})
    assert resp.status_code == 500


def test_unknown_route_is_404(client):
    resp = client.get('/user/someone')
    assert resp.status_code in (404, 405)
