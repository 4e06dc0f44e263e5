from collections import namedtuple
from unittest.mock import MagicMock

import pytest

from agensgraph_examples.config import GraphConfig

TotalRow = namedtuple("TotalRow", ["total"])
LabelRow = namedtuple("LabelRow", ["label"])
NameRow = namedtuple("NameRow", ["name"])


@pytest.fixture
def config():
    return GraphConfig(graphname="test_graph")


@pytest.fixture
def mock_connection():
    """A psycopg connection whose cursor context manager yields ``connection.cursor_mock``."""
    connection = MagicMock()
    cursor = MagicMock()
    connection.cursor.return_value.__enter__.return_value = cursor
    connection.cursor_mock = cursor
    return connection


@pytest.fixture
def fake_cypher():
    """
    Stand-in for GraphApp.execute_cypher that answers the helper queries:
    no existing edges, every edge creation matches both vertices.
    """

    def _execute(query, params=None):
        if "count(e)" in query or "count(v)" in query:
            return [TotalRow(0)]
        if "CREATE (a)" in query:
            return [LabelRow("edge")]
        if "SET v." in query:
            return [NameRow("updated")]
        return []

    return MagicMock(side_effect=_execute)
