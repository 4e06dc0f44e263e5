from typing import Any, Dict, Union


class GraphAppError(Exception):
    """Base exception for the example applications."""

    def __init__(self, exception: Union[str, Dict]) -> None:
        if isinstance(exception, dict):
            self.message = exception["message"] if "message" in exception else "unknown"
            self.details = exception["details"] if "details" in exception else "unknown"
        else:
            self.message = exception
            self.details = "unknown"
        super().__init__(self.message)

    def get_message(self) -> str:
        return self.message

    def get_details(self) -> Any:
        return self.details


class GraphQueryError(GraphAppError):
    """A Cypher statement failed inside AgensGraph."""


class SchemaViolation(GraphAppError):
    """Element properties or labels do not match the declared schema."""


class MultiplicityViolation(SchemaViolation):
    """Creating an edge would break its label's multiplicity."""
