from typing import List


class AppException(Exception):
    """Base application exception."""

    pass


class AgentDefinitionParseError(AppException):
    """Agent definition could not be loaded."""

    def __init__(self, path: str, errors: List[str]):
        self.path = path
        self.errors = errors
        super().__init__(f"Failed to parse agent definition {path}: {'; '.join(errors)}")


class IssueTrackerError(AppException):
    """Issue tracker request failed."""

    pass


class UnrecognizedBundleNameError(AppException):
    """Directory name does not follow the agent bundle naming convention."""

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"Unrecognized bundle name: {name}")
