class RemoteUnavailableError(RuntimeError):
    """The troubleshooting service could not be reached or refused the request."""


class RemoteMalformedError(ValueError):
    """The troubleshooting service answered with something that is not a usable reply."""
