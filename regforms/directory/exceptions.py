class DirectoryServiceError(Exception):
    """Raised inside the directory client on connection, timeout, status or body errors.

    Never escapes the public client API; callers only ever see ``None``.
    """
