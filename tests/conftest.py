import pytest

from user import UserRecord
from users_api import RemoteCallError


class FakeUsersAPI:
    """Stands in for the remote users collection."""

    def __init__(self, users=None, next_id=11):
        self.users = list(users or [])
        self.next_id = next_id
        self.calls = []
        self.fail = set()

    def _call(self, name, *args):
        self.calls.append((name,) + args)
        if name in self.fail:
            raise RemoteCallError(f"{name} failed")

    def list_users(self):
        self._call('list_users')
        return list(self.users)

    def create_user(self, form):
        self._call('create_user', form)
        record = UserRecord(id=self.next_id, **form.model_dump())
        self.users.append(record)
        return record

    def update_user(self, user_id, form):
        self._call('update_user', user_id, form)
        return UserRecord(id=user_id, **form.model_dump())

    def delete_user(self, user_id):
        self._call('delete_user', user_id)
        self.users = [user for user in self.users if user.id != user_id]


@pytest.fixture
def sample_users():
    return [
        UserRecord(id=1, name='Leanne Graham', username='Bret', email='Sincere@april.biz'),
        UserRecord(id=2, name='Ervin Howell', username='Antonette', email='Shanna@melissa.tv'),
        UserRecord(id=3, name='Clementine Bauch', username='Samantha', email='Nathan@yesenia.net'),
    ]


@pytest.fixture
def fake_api(sample_users):
    return FakeUsersAPI(sample_users)


@pytest.fixture
def client(fake_api, monkeypatch):
    """Create a Flask test client talking to the fake collection."""
    import app as app_module
    monkeypatch.setattr(app_module, 'UsersAPI', lambda *args, **kwargs: fake_api)
    monkeypatch.setitem(app_module.app.config, 'SECRET_KEY', 'test-secret')
    app_module.sessions.clear()
    app_module.app.config['TESTING'] = True
    with app_module.app.test_client() as c:
        yield c
