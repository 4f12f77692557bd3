"""Commands driving one session's form and user list.

``UserManager`` turns the Submit, Cancel, Edit and ConfirmDelete commands
into state transitions and remote calls. It knows nothing about Flask:
notifications go to whatever ``notify`` callable it is given.
"""

import logging
from collections import namedtuple

import state as transitions
from state import Editing, FormFields
from user import validate_user
from users_api import RemoteCallError

logger = logging.getLogger(__name__)

Notification = namedtuple('Notification', ['category', 'title', 'description'])

ERROR_TITLE = 'Error!'
ERROR_DESCRIPTION = 'There was a problem with your request, please try again.'


class UserManager:

    def __init__(self, store, api, notify=None):
        self.store = store
        self.api = api
        self._notify = notify

    @property
    def state(self):
        return self.store.state

    def notify(self, category, title, description):
        if self._notify is not None:
            self._notify(Notification(category, title, description))

    def _remote_failed(self, action, error):
        logger.warning(f"{action} failed: {error}")
        self.notify('error', ERROR_TITLE, ERROR_DESCRIPTION)

    def load(self):
        """Replace the user list with the remote collection."""
        try:
            users = self.api.list_users()
        except RemoteCallError as e:
            self.store.dispatch(transitions.load_failed)
            self._remote_failed('Loading users', e)
            return False

        self.store.dispatch(transitions.loaded, users)
        logger.info(f"Loaded {len(users)} users")
        self.notify('success', 'Users Loaded', f"{len(users)} users loaded.")
        return True

    def change_fields(self, raw):
        """Record draft form values and return their validation errors."""
        fields = FormFields.from_mapping(raw)
        _, errors = validate_user(fields.as_dict())
        self.store.dispatch(transitions.fields_changed, fields, errors)
        return errors

    def submit(self, raw):
        """Create or update a user, depending on the form's mode."""
        fields = FormFields.from_mapping(raw)
        form, errors = validate_user(fields.as_dict())
        if errors:
            self.store.dispatch(transitions.submit_rejected, fields, errors)
            return False

        before, after = self.store.dispatch(transitions.submit_started, fields)
        if after is before:
            if before.form.submitting:
                logger.info("Submit ignored, another submission is in flight")
            else:
                logger.info(f"Submit ignored, user {before.form.mode.id} is being deleted")
                self.notify('error', ERROR_TITLE, 'This user is being deleted, please wait.')
            return False

        mode = after.form.mode
        try:
            if isinstance(mode, Editing):
                record = self.api.update_user(mode.id, form)
            else:
                record = self.api.create_user(form)
        except RemoteCallError as e:
            self.store.dispatch(transitions.submit_failed)
            self._remote_failed('Saving user', e)
            return False

        if isinstance(mode, Editing):
            self.store.dispatch(transitions.update_succeeded, mode.id, record)
            self.notify('success', 'User Updated', f"{record.name} is successfully updated!")
        else:
            self.store.dispatch(transitions.create_succeeded, record)
            self.notify('success', 'User Added', f"{record.name} is successfully added!")
        return True

    def edit(self, user_id):
        """Copy a listed user into the form and switch to editing it."""
        before, after = self.store.dispatch(transitions.edit, user_id)
        if after is before:
            if before.find(user_id) is None:
                logger.info(f"Edit ignored, user {user_id} is not listed")
                self.notify('error', ERROR_TITLE, 'That user is no longer in the list.')
            return False
        return True

    def cancel(self):
        before, after = self.store.dispatch(transitions.cancel)
        return after is not before

    def delete(self, user_id):
        """Delete a user once the deletion has been confirmed."""
        before, after = self.store.dispatch(transitions.delete_started, user_id)
        if after is before:
            logger.info(f"Delete ignored, user {user_id} already has a request in flight")
            self.notify('error', ERROR_TITLE, 'This user already has a request in progress, please wait.')
            return False

        try:
            self.api.delete_user(user_id)
        except RemoteCallError as e:
            self.store.dispatch(transitions.delete_failed, user_id)
            self._remote_failed(f"Deleting user {user_id}", e)
            return False

        self.store.dispatch(transitions.delete_succeeded, user_id)
        self.notify('success', 'User Deleted', 'User is successfully deleted!')
        return True
