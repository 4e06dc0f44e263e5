import re
from typing import Any, Dict, Pattern, Tuple

from psycopg.types.json import Jsonb  # type: ignore

IDENTIFIER_PATTERN: Pattern = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")


def validate_identifier(name: str) -> str:
    """Return the name if it can be used as a label, key or graph name."""
    if not isinstance(name, str) or not IDENTIFIER_PATTERN.match(name):
        raise ValueError(f"Invalid identifier: {name!r}")
    return name


def quote_identifier(name: str) -> str:
    """
    Quote an identifier if it contains uppercase letters.

    AgensGraph (like PostgreSQL) folds unquoted identifiers to lowercase,
    so names like ``followedBy`` must be double-quoted to keep their case.

    Examples:
        person -> person
        followedBy -> "followedBy"
    """
    validate_identifier(name)
    if any(c.isupper() for c in name):
        return f'"{name}"'
    return name


def format_properties(
    properties: Dict[str, Any], prefix: str = "p"
) -> Tuple[str, Dict[str, Jsonb]]:
    """
    Convert a dictionary of properties to a Cypher map literal with
    query parameters in place of the values.

    Args:
        properties: vertex or edge properties
        prefix: prefix for the parameter names, keeps vertex and edge
            parameters apart when both appear in one statement

    Returns:
        The map literal, e.g. ``{name: %(p_name)s}``, and the parameters
        to pass alongside the query.
    """
    props = []
    params = {}
    for key, value in properties.items():
        param = f"{prefix}_{validate_identifier(key)}"
        props.append(f"{quote_identifier(key)}: %({param})s")
        params[param] = Jsonb(value)
    return "{" + ", ".join(props) + "}", params
