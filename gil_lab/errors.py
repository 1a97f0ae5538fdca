from __future__ import annotations


class LabError(Exception):
    """Base for every error the lab raises on purpose."""


class InvalidInputError(LabError, ValueError):
    pass


class ConfigError(LabError, ValueError):
    pass


class DownloadError(LabError):
    def __init__(self, url: str, message: str) -> None:
        super().__init__(f"{url}: {message}")
        self.url = url
        self.message = message

    # raised inside process workers, so it has to survive pickling
    def __reduce__(self):
        return (self.__class__, (self.url, self.message))


class WorkerFailedError(LabError):
    def __init__(self, exit_codes: list[int]) -> None:
        failed = [c for c in exit_codes if c != 0]
        super().__init__(f"{len(failed)} of {len(exit_codes)} workers failed (exit codes: {exit_codes})")
        self.exit_codes = exit_codes

    def __reduce__(self):
        return (self.__class__, (self.exit_codes,))
