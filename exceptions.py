"""
Error types raised by the identity resolution core
All of them surface as a generic internal error at the HTTP boundary.
"""


class IdentityResolutionError(Exception):
    """Base class for failures inside identity resolution"""


class ContactNotFoundError(IdentityResolutionError):
    """A store lookup that must return a contact found none"""


class NoPrimaryFoundError(IdentityResolutionError):
    """
    Merge candidates contained no primary contact

    This means the stored links are corrupt (a root id that is not a
    primary), not a transient fault.
    """

    def __init__(self, root_ids):
        self.root_ids = sorted(root_ids)
        super().__init__(f"No primary contact among root ids {self.root_ids}")


class PersistenceError(IdentityResolutionError):
    """A read or write against the contact store failed"""


class ResolutionConflictError(IdentityResolutionError):
    """Concurrent merges kept moving the matched roots; the request gave up"""
