# core/errors.py

# -----------------------------------------------------
# Domain errors
#
# "No access" is never an exception: permission checks
# return False and the API layer turns that into a 403.
# -----------------------------------------------------
class COIAccessError(Exception):
    """Base class for errors raised by the decision core."""


class NotFoundError(COIAccessError):
    """A referenced entity does not exist."""

    def __init__(self, entity: str, entity_id: str):
        self.entity = entity
        self.entity_id = entity_id
        super().__init__(f"{entity} {entity_id} not found")


class InvalidTransitionError(COIAccessError):
    """A mutation was rejected before touching the store."""


class TransportError(COIAccessError):
    """A notification could not be delivered."""

    def __init__(self, channel: str, recipient: str, detail: str):
        self.channel = channel
        self.recipient = recipient
        super().__init__(f"{channel} to {recipient} failed: {detail}")


class PersistenceError(COIAccessError):
    """The store is unavailable or rejected the operation. Never retried here."""


def extract_db_error(error: Exception) -> str:
    """
    Safely extract readable details from SQLAlchemy / driver errors.
    Handles:
      • DBAPIError (wraps the driver's exception in .orig)
      • Generic Python exceptions
    """

    # Case 1: SQLAlchemy DBAPIError wrappers
    orig = getattr(error, "orig", None)
    if orig is not None:
        return str(orig)

    # Case 2: errors with args (common)
    if getattr(error, "args", None):
        return str(error.args[0])

    # Case 3: Plain string fallback
    return str(error) or error.__class__.__name__
