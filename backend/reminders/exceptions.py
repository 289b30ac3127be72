class ReminderError(Exception):
    """Base class for payment reminder errors"""


class InvalidReminder(ReminderError, ValueError):
    """A reminder record is missing a field the visibility rules need"""


class ReminderStateError(ReminderError):
    """A transition the reminder lifecycle does not allow"""


class NetworkFailure(ReminderError):
    """A call to the reminder API did not complete successfully"""

    def __init__(self, message, status_code=None):
        super().__init__(message)
        self.status_code = status_code
