import logging
import os

import requests
from pydantic import TypeAdapter, ValidationError

from user import UserRecord

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = 'https://jsonplaceholder.typicode.com'

_user_list = TypeAdapter(list[UserRecord])


class RemoteCallError(Exception):
    """Any failure talking to the users collection.

    Connection errors, non-2xx statuses, malformed JSON and payloads that do
    not match ``UserRecord`` are all reported the same way.
    """


class UsersAPI:
    """Wrapper class for interacting with a remote users collection."""

    def __init__(self, base_url=None, timeout=30):
        self.base_url = (base_url or os.environ.get('USERS_API_BASE_URL') or DEFAULT_BASE_URL).rstrip('/')
        self.timeout = timeout
        self.headers = {
            'Accept': 'application/json'
        }

    def _make_request(self, method, endpoint, payload=None):
        """Internal method to send a request and check its status."""
        headers = dict(self.headers)
        if payload is not None:
            headers['Content-Type'] = 'application/json; charset=UTF-8'

        url = f"{self.base_url}/{endpoint}"
        try:
            response = requests.request(
                method,
                url,
                headers=headers,
                json=payload,
                timeout=self.timeout
            )
            response.raise_for_status()
        except requests.exceptions.RequestException as e:
            logger.warning(f"{method} {url} failed: {e}")
            raise RemoteCallError(f"{method} {url} failed: {e}") from e
        return response

    def _parse(self, response, parser):
        try:
            return parser(response.json())
        except (ValueError, ValidationError) as e:
            logger.warning(f"Unexpected response from {response.url}: {e}")
            raise RemoteCallError(f"Unexpected response from {response.url}") from e

    def list_users(self):
        """Fetch the whole collection, in the order the server returns it."""
        response = self._make_request('GET', 'users')
        return self._parse(response, _user_list.validate_python)

    def create_user(self, form):
        """Create a user and return the record with its server assigned id."""
        response = self._make_request('POST', 'users', form.model_dump())
        return self._parse(response, UserRecord.model_validate)

    def update_user(self, user_id, form):
        """Replace the fields of an existing user."""
        payload = {'id': user_id, **form.model_dump()}
        response = self._make_request('PUT', f'users/{user_id}', payload)
        return self._parse(response, UserRecord.model_validate)

    def delete_user(self, user_id):
        """Delete a user. Success is carried by the status code alone."""
        self._make_request('DELETE', f'users/{user_id}')
