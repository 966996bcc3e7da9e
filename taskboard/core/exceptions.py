"""Domain exceptions shared by the store adapters, services and API layer."""


class TaskboardError(Exception):
    """Base class for all taskboard errors"""

    def __init__(self, message: str = "Taskboard error"):
        super().__init__(message)
        self.message = message


class InvalidInputError(TaskboardError):
    """Input rejected before any request reaches the store"""


class NotFoundError(TaskboardError):
    """Entity absent, or not visible to the caller"""


class PermissionDeniedError(TaskboardError):
    """Caller lacks the capability for the requested operation"""


class AuthenticationError(TaskboardError):
    """Sign-in, token or verification failure"""


class InvitationError(TaskboardError):
    """Invalid membership lifecycle operation"""


class AlreadyMemberError(InvitationError):
    """Invitee already has a member record on the board"""


class InvitationStateError(InvitationError):
    """Transition not defined for the current invitation status"""


class MalformedRecordError(TaskboardError):
    """Stored record failed shape validation"""

    def __init__(self, collection: str, document_id: str, reason: str):
        super().__init__(f"Malformed {collection} record {document_id}: {reason}")
        self.collection = collection
        self.document_id = document_id
        self.reason = reason


# Store level failures

class StoreError(TaskboardError):
    """Transport or storage failure reported by the document store"""


class DocumentNotFoundError(StoreError):
    """Update addressed a document that does not exist"""


class MissingIndexError(StoreError):
    """Ordered query needs a composite index the store does not have"""

    def __init__(self, collection: str, fields: tuple):
        super().__init__(
            f"Query on '{collection}' requires an index on ({', '.join(fields)})"
        )
        self.collection = collection
        self.fields = fields


class BatchLimitError(StoreError):
    """Write batch exceeds the store's per-batch operation limit"""


class InvalidQueryError(StoreError):
    """Query the store cannot execute (unsupported operator, oversized 'in')"""
