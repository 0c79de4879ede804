from typing import Optional


class HistoryError(Exception):
    pass


class InvalidEntryError(HistoryError, ValueError):
    pass


class HistoryFetchError(HistoryError):
    def __init__(self, source: str, message: str, cause: Optional[BaseException] = None) -> None:
        super().__init__(f"{source}: {message}")
        self.source = source
        self.cause = cause


class PlayerLookupError(HistoryError):
    pass
