"""Authentication errors shared by the credential builders."""


class AuthenticationError(Exception):
    """Raised when credentials cannot be built from the configured material."""

    pass
