"""Exceptions raised while extracting package content."""


class ExtractError(Exception):
    """Base exception for extraction failures.

    Attributes:
        package: Name of the package being extracted, when known.
    """

    def __init__(self, message: str, *, package: str | None = None) -> None:
        super().__init__(message)
        self.package = package

    def add_package(self, package: str) -> None:
        """Prefix the message with the package being extracted."""
        self.package = package
        self.args = (f'cannot extract from package "{package}": {self}', *self.args[1:])


class ExtractSpecError(ExtractError):
    """Raised when a target specification is invalid."""


class ArchiveFormatError(ExtractError):
    """Raised when a package container or payload is malformed or unsupported."""


class MissingContentError(ExtractError):
    """Raised when mandatory paths were not found in the package payload.

    Attributes:
        missing: Sorted list of the paths that were never produced.
    """

    def __init__(self, missing: list[str], *, package: str | None = None) -> None:
        self.missing = sorted(missing)
        if len(self.missing) == 1:
            message = f"no content at {self.missing[0]}"
        else:
            message = "no content at:\n- " + "\n- ".join(self.missing)
        super().__init__(message, package=package)
