from typing import Optional


class SetupError(Exception):
    """
    Fatal problem found before any auditing starts.

    Carries an optional remedy that the CLI prints under the message.
    """

    def __init__(self, message: str, remedy: Optional[str] = None):
        super().__init__(message)
        self.remedy = remedy


class InvalidInputError(SetupError):
    pass


class OutputDirectoryError(SetupError):
    pass


class NoBrowserFoundError(SetupError):
    pass


class BrowserLaunchError(SetupError):
    pass


class BrowserConnectionError(SetupError, ConnectionError):
    pass
