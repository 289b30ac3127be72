"""
HTTP client for the payment reminder API.

Used by scripts and front-end helpers that need the same visibility answers
as the web client. The client keeps its own dismissal set for its lifetime;
a new client starts with nothing dismissed.

Every failed call raises NetworkFailure and leaves local state as it was.
Nothing is retried here; retry policy belongs to the caller.
"""
import logging

import requests

from .dismissals import DismissalStore
from .exceptions import NetworkFailure
from .visibility import visible_reminders

logger = logging.getLogger(__name__)


class ReminderAPIClient:
    """Thin wrapper over /api/v1/payment-reminders/"""

    def __init__(self, base_url, token=None, timeout=10, session=None, dismissals=None):
        self.base_url = base_url.rstrip('/')
        self.timeout = timeout
        self.session = session or requests.Session()
        self.session.headers.update({'Content-Type': 'application/json'})
        self.dismissals = dismissals if dismissals is not None else DismissalStore()
        if token:
            self.set_token(token)

    def set_token(self, token):
        self.session.headers.update({'Authorization': f'Bearer {token}'})

    def _request(self, method, path, **kwargs):
        url = f"{self.base_url}{path}"
        try:
            response = self.session.request(method, url, timeout=self.timeout, **kwargs)
        except requests.RequestException as e:
            logger.error(f"{method} {url} failed: {str(e)}")
            raise NetworkFailure(f"{method} {path} did not complete: {str(e)}") from e

        if not response.ok:
            logger.error(f"{method} {url} returned {response.status_code}")
            raise NetworkFailure(
                f"{method} {path} returned {response.status_code}: {response.text[:200]}",
                status_code=response.status_code,
            )
        if response.status_code == 204 or not response.content:
            return None
        try:
            return response.json()
        except ValueError as e:
            raise NetworkFailure(f"{method} {path} returned a non-JSON body", status_code=response.status_code) from e

    def authenticate(self, username, password):
        """Log in and keep the access token for later calls"""
        data = self._request('POST', '/auth/login/', json={'username': username, 'password': password})
        self.set_token(data['access'])
        return data

    def list_reminders(self, **params):
        return self._request('GET', '/payment-reminders/', params=params or None)

    def get_reminder(self, reminder_id):
        return self._request('GET', f'/payment-reminders/{reminder_id}/')

    def visible_reminders(self, now=None):
        """Fetch every reminder and apply the active-notice rules with this client's dismissals"""
        reminders = self.list_reminders()
        return visible_reminders(reminders, self.dismissals.ids(), now)

    def acknowledge(self, reminder_id):
        return self._request('POST', f'/payment-reminders/{reminder_id}/acknowledge/')

    def dismiss(self, reminder_id):
        data = self._request('POST', f'/payment-reminders/{reminder_id}/dismiss/')
        # Only remember the dismissal once the server has confirmed it
        self.dismissals.add_dismissed(reminder_id)
        return data

    def mark_read(self, reminder_id):
        return self._request('POST', f'/payment-reminders/{reminder_id}/read/')
