"""Immutable UI state snapshots and the pure transitions between them.

Every transition takes an ``AppState`` and returns a new one. A transition
that is not permitted from the current state returns the state it was given,
unchanged, so callers can tell a refused command apart with ``is``.
"""

import threading
from collections import OrderedDict
from dataclasses import asdict, dataclass, field, replace
from typing import Tuple, Union

from user import FIELD_NAMES, UserRecord


@dataclass(frozen=True)
class Create:
    """The form submits a new user."""


@dataclass(frozen=True)
class Editing:
    """The form submits changes to the user with this id."""
    id: int


CREATE = Create()


@dataclass(frozen=True)
class FormFields:
    name: str = ''
    username: str = ''
    email: str = ''

    @classmethod
    def from_mapping(cls, values):
        return cls(**{name: str(values.get(name) or '') for name in FIELD_NAMES})

    def as_dict(self):
        return asdict(self)


@dataclass(frozen=True)
class FormState:
    fields: FormFields = FormFields()
    mode: Union[Create, Editing] = CREATE
    submitting: bool = False
    # (field, message) pairs
    errors: Tuple[Tuple[str, str], ...] = ()

    @property
    def error_map(self):
        return dict(self.errors)


@dataclass(frozen=True)
class AppState:
    form: FormState = FormState()
    users: Tuple[UserRecord, ...] = ()
    deleting: frozenset = field(default_factory=frozenset)
    mounted: bool = False

    @property
    def busy_ids(self):
        """Ids with a delete or update currently in flight."""
        mode = self.form.mode
        if self.form.submitting and isinstance(mode, Editing):
            return self.deleting | {mode.id}
        return self.deleting

    def find(self, user_id):
        for user in self.users:
            if user.id == user_id:
                return user
        return None


def _errors(errors):
    return tuple((name, errors[name]) for name in FIELD_NAMES if name in errors)


# List store

def append_user(users, record):
    return tuple(users) + (record,)


def replace_user(users, user_id, record):
    users = list(users)
    for index, user in enumerate(users):
        if user.id == user_id:
            users[index] = record
            break
    return tuple(users)


def remove_user(users, user_id):
    users = list(users)
    for index, user in enumerate(users):
        if user.id == user_id:
            del users[index]
            break
    return tuple(users)


def loaded(state, users):
    return replace(state, users=tuple(users), mounted=True)


def load_failed(state):
    return replace(state, mounted=True)


# Form controller

def fields_changed(state, fields, errors):
    if state.form.submitting:
        return state
    return replace(state, form=replace(state.form, fields=fields, errors=_errors(errors)))


def submit_rejected(state, fields, errors):
    return fields_changed(state, fields, errors)


def submit_started(state, fields):
    form = state.form
    if form.submitting:
        return state
    if isinstance(form.mode, Editing) and form.mode.id in state.deleting:
        return state
    return replace(state, form=replace(form, fields=fields, errors=(), submitting=True))


def submit_failed(state):
    return replace(state, form=replace(state.form, submitting=False))


def create_succeeded(state, record):
    return replace(state, users=append_user(state.users, record), form=FormState())


def update_succeeded(state, user_id, record):
    return replace(state, users=replace_user(state.users, user_id, record), form=FormState())


def edit(state, user_id):
    if state.form.submitting:
        return state
    user = state.find(user_id)
    if user is None:
        return state
    fields = FormFields(name=user.name, username=user.username, email=user.email)
    return replace(state, form=FormState(fields=fields, mode=Editing(user_id)))


def cancel(state):
    # The in-flight update still owns its id until it completes.
    if state.form.submitting:
        return state
    return replace(state, form=FormState())


# Delete action

def delete_started(state, user_id):
    if user_id in state.busy_ids:
        return state
    return replace(state, deleting=state.deleting | {user_id})


def delete_succeeded(state, user_id):
    return replace(state, users=remove_user(state.users, user_id), deleting=state.deleting - {user_id})


def delete_failed(state, user_id):
    return replace(state, deleting=state.deleting - {user_id})


class StateStore:
    """Holds the current ``AppState`` of one browser session."""

    def __init__(self, state=None):
        self._state = state or AppState()
        self._lock = threading.Lock()

    @property
    def state(self):
        return self._state

    def dispatch(self, transition, *args):
        """Apply a transition atomically and return ``(before, after)``."""
        with self._lock:
            before = self._state
            self._state = transition(before, *args)
            return before, self._state


class SessionRegistry:
    """Keeps one ``StateStore`` per session id, evicting the least recently used."""

    def __init__(self, max_sessions=1000):
        self.max_sessions = max_sessions
        self._stores = OrderedDict()
        self._lock = threading.Lock()

    def get(self, session_id):
        with self._lock:
            store = self._stores.get(session_id)
            if store is None:
                store = self._stores[session_id] = StateStore()
            self._stores.move_to_end(session_id)
            while len(self._stores) > self.max_sessions:
                self._stores.popitem(last=False)
            return store

    def clear(self):
        with self._lock:
            self._stores.clear()

    def __len__(self):
        return len(self._stores)
