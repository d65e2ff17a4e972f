from __future__ import annotations


class WorkforceError(Exception):
    """Base class for business failures raised by the engines.

    ``status_code`` is the HTTP status the API layer answers with.
    """

    status_code = 400
    default_message = "Request could not be processed"

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class InvalidTenant(WorkforceError):
    status_code = 401
    default_message = "Subdomain is missing, check"


class MissingCredential(WorkforceError):
    status_code = 401
    default_message = "RFID is required"


class WorkerNotFound(WorkforceError):
    status_code = 404
    default_message = "Worker not found"


class EmptyTaskData(WorkforceError):
    default_message = "Please provide task data"


class TopicNotFound(WorkforceError):
    status_code = 404
    default_message = "Topic not found"


class TaskNotFound(WorkforceError):
    status_code = 404
    default_message = "Task not found"


class NotACustomTask(WorkforceError):
    default_message = "This is not a custom task"


class InvalidDecision(WorkforceError):
    default_message = "Please provide a valid status (approved or rejected)"


class InvalidPoints(WorkforceError):
    default_message = "Please provide valid points for approved task"


class AlreadyReviewed(WorkforceError):
    status_code = 409
    default_message = "This custom task has already been reviewed"


class InvalidDateRange(WorkforceError):
    default_message = "Please provide start and end dates"


class FoodRequestsDisabled(WorkforceError):
    default_message = "Food requests are currently disabled"


class DuplicateFoodRequest(WorkforceError):
    default_message = "You have already submitted a food request today"


class Forbidden(WorkforceError):
    status_code = 403
    default_message = "Access denied"


class StorageUnavailable(WorkforceError):
    status_code = 503
    default_message = "Storage is unavailable, try again later"
