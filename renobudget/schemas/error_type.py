from enum import Enum


class ErrorType(str, Enum):
    '''
    Structured classification of the failures a request can end in.

    VALIDATION_ERROR: payload violates a field rule (empty description, negative price, unknown status,
                      malformed allocation). 400, short-circuits before any write.
    UNAUTHENTICATED: no caller identity, or the identity is unknown. 401.
    PERMISSION_DENIED: caller lacks the administrator role for a write, or the account is deactivated. 403.
    NOT_FOUND: room slug / user id does not exist. 404.
    CONFLICT: reserved slug rewrite by a non-administrator, slug change on save, duplicate slug. 409.
    PERSISTENCE_ERROR: store unreachable or rejected the write. 500.
    SYSTEM_ERROR: anything unclassified. 500 with an opaque message.
    '''
    VALIDATION_ERROR = "VALIDATION_ERROR"

    UNAUTHENTICATED = "UNAUTHENTICATED"
    PERMISSION_DENIED = "PERMISSION_DENIED"

    NOT_FOUND = "NOT_FOUND"
    CONFLICT = "CONFLICT"

    PERSISTENCE_ERROR = "PERSISTENCE_ERROR"
    SYSTEM_ERROR = "SYSTEM_ERROR"
