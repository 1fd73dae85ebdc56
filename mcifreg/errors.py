"""Errors raised by the mcifreg interface registry and its OS collaborators."""


class McifregError(Exception):
    """Base class for mcifreg errors"""


class EnumerationError(McifregError):
    """
    The OS refused to enumerate interfaces (getifaddrs failed).

    The registry treats this as fatal: the daemon cannot run without an
    interface table.
    """

    def __init__(self, errno: int, strerror: str):
        super().__init__(f"[Errno {errno}] {strerror}")
        self.errno = errno
        self.strerror = strerror


class ResourceError(McifregError):
    """Growing the interface store failed"""
