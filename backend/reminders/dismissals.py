"""
Session-scoped record of dismissed reminders.

Dismissal hides a reminder until the session ends; it is never written to the
reminder table. Both stores only grow: there is no way to un-dismiss other
than starting a new session.
"""
import logging

logger = logging.getLogger(__name__)

SESSION_KEY = 'dismissed_reminders'


class DismissalStore:
    """In-process dismissal set, discarded with the process"""

    def __init__(self, ids=()):
        self._ids = {str(i) for i in ids}

    def add_dismissed(self, reminder_id):
        self._ids.add(str(reminder_id))

    def is_dismissed(self, reminder_id):
        return str(reminder_id) in self._ids

    def ids(self):
        return frozenset(self._ids)

    def __contains__(self, reminder_id):
        return self.is_dismissed(reminder_id)

    def __len__(self):
        return len(self._ids)

    def __iter__(self):
        return iter(sorted(self._ids))


class SessionDismissalStore(DismissalStore):
    """Dismissal set kept in a Django session; survives requests, not the session"""

    def __init__(self, session):
        self.session = session
        super().__init__(session.get(SESSION_KEY, []))

    def add_dismissed(self, reminder_id):
        if self.is_dismissed(reminder_id):
            return
        super().add_dismissed(reminder_id)
        self.session[SESSION_KEY] = sorted(self._ids)
        logger.debug(f"Session dismissal recorded for reminder {reminder_id}")
