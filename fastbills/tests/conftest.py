import pytest

from fastbills.app_container import AppContainer
from fastbills.config import Settings
from fastbills.main import create_app
from fastbills.repositories import MemoryStorage


@pytest.fixture
def settings(tmp_path):
    return Settings(
        data_dir=str(tmp_path / 'data'),
        backup_dir=str(tmp_path / 'backups'),
        async_writes=False,
        max_backups=3,
    )


@pytest.fixture
def storage():
    return MemoryStorage()


@pytest.fixture
def container(settings, storage):
    c = AppContainer(settings, storage=storage)
    c.load()
    return c


@pytest.fixture
def as_manager(container):
    user = container.session_service.login('manager', 'manager123')
    assert user is not None
    return user


@pytest.fixture
def as_cashier(container):
    user = container.session_service.login('cashier', 'cashier123')
    assert user is not None
    return user


@pytest.fixture
def app(settings):
    flask_app = create_app(settings, storage=MemoryStorage())
    flask_app.config['TESTING'] = True
    return flask_app


@pytest.fixture
def client(app):
    with app.test_client() as c:
        yield c


def login(client, name, password):
    r = client.post('/api/login', json={'name': name, 'password': password})
    assert r.status_code == 200, r.get_json()
    return r.get_json()['user']
