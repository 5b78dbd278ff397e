class SnapdiffException(Exception):
    def __init__(self, message: str | None = None):
        self.message = message
        super().__init__(message)


class TransportError(SnapdiffException):
    """
    A failure reported by the WebDriver transport.

    ``status`` carries the legacy wire protocol status code of a command failure, ``code`` the
    connection-level error code (e.g. ``ECONNREFUSED``). ``selector`` is filled in by the element
    lookup operations when the element could not be found.
    """

    def __init__(self, message: str | None = None, status: int | None = None, code: str | None = None) -> None:
        self.status = status
        self.code = code
        self.selector: str | None = None
        super().__init__(message)


class GridConnectionRefused(SnapdiffException):
    def __init__(self, grid_url: str) -> None:
        self.grid_url = grid_url
        self.advice = "Make sure that URL in config file is correct and the WebDriver server is running."
        super().__init__(f"Unable to connect to {grid_url}. {self.advice}")


class FailedToLaunchBrowser(SnapdiffException):
    def __init__(self, session_id: str, error_message: str) -> None:
        self.session_id = session_id
        self.error_message = error_message
        super().__init__(f"Cannot launch browser {session_id}:\n{error_message}")


class StateError(SnapdiffException):
    pass


class ElementNotFoundForAction(StateError):
    def __init__(self, action: str, selector: str) -> None:
        self.action = action
        self.selector = selector
        super().__init__(f"Could not find element with css selector in {action} command: {selector}")


class WaitTimeoutExceeded(StateError):
    def __init__(self, condition: str, timeout: int) -> None:
        self.condition = condition
        self.timeout = timeout
        super().__init__(f"Condition was not met in {timeout}ms: {condition}")
