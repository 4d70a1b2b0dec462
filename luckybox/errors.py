class GameError(Exception):
    """Base for every error reported back to the caller of an action."""

    status_code = 400

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(GameError):
    status_code = 400


class InsufficientFunds(GameError):
    status_code = 400

    def __init__(self, message: str = "insufficient funds"):
        super().__init__(message)


class StateError(GameError):
    status_code = 400


class RateLimited(GameError):
    status_code = 429

    def __init__(self, message: str = "too many actions, slow down"):
        super().__init__(message)


class LedgerUnavailable(GameError):
    status_code = 502
