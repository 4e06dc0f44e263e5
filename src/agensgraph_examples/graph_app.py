"""Shared skeleton of the example applications.

Every example opens the graph, creates its schema and sample data (both
only once), then reads, updates, reads, deletes, reads and closes. The
examples differ only in their schema and in the ``populate``, ``read``,
``update`` and ``delete`` hooks.
"""

import logging
from pathlib import Path
from typing import Any, Dict, List, Literal, NamedTuple, Optional, Union

import psycopg  # type: ignore
from psycopg.rows import namedtuple_row  # type: ignore
from psycopg.types.json import Jsonb  # type: ignore
from pydantic import BaseModel, Field

from .config import GraphConfig, load_properties, process_config
from .exceptions import GraphAppError, GraphQueryError, MultiplicityViolation, SchemaViolation
from .schema import GraphSchema
from .utils import format_properties, quote_identifier, validate_identifier

logger = logging.getLogger("agensgraph_examples")

Direction = Literal["OUT", "IN"]

USER_LABEL_COUNT_QUERY = """
    SELECT count(*) AS total
    FROM pg_catalog.ag_label l
    JOIN pg_catalog.ag_graph g ON l.graphid = g.oid
    WHERE g.graphname = %(graphname)s::name
    AND l.labname NOT IN ('ag_vertex', 'ag_edge')
"""


class Vertex(BaseModel):
    "A vertex read back from the graph."

    label: str
    properties: Dict[str, Any] = Field(default_factory=dict)

    @property
    def name(self) -> Optional[str]:
        return self.properties.get("name")


class Edge(BaseModel):
    "An edge read back from the graph, identified by the names of its ends."

    label: str
    out_name: str
    in_name: str
    properties: Dict[str, Any] = Field(default_factory=dict)


def _banner(title: str) -> None:
    logger.info(f"{'=' * 28} {title} {'=' * 28}")


def _label_pattern(label: Optional[str]) -> str:
    return f":{quote_identifier(label)}" if label else ""


class GraphApp:
    """
    Base class of the example applications.

    Args:
        config: connection settings for the graph

    Subclasses set ``schema`` and ``default_graphname`` and implement
    ``populate``, ``read``, ``update`` and ``delete``. The hooks run inside
    a transaction that the step methods commit or roll back.
    """

    schema: GraphSchema = GraphSchema()
    default_graphname: str = "graph"

    def __init__(self, config: GraphConfig) -> None:
        self.config = config
        self.conn: Optional[psycopg.Connection] = None

    @classmethod
    def from_properties(cls, path: Union[str, Path], **kwargs: Any) -> "GraphApp":
        """Create the application from a properties file."""
        properties = load_properties(path)
        return cls(process_config(properties, cls.default_graphname), **kwargs)

    @property
    def graphname(self) -> str:
        return self.config.graphname

    # ----- connection lifecycle -----

    def open_graph(self) -> psycopg.Connection:
        """
        Opens the graph. If the graph does not exist in the database it is
        created.
        """
        _banner("Opening graph")
        self.conn = psycopg.connect(
            self.config.connection_url, connect_timeout=self.config.connect_timeout
        )
        try:
            with self.conn.cursor() as cursor:
                cursor.execute(f"CREATE GRAPH IF NOT EXISTS {self.graphname}")
            self.conn.commit()
        except psycopg.Error as e:
            self.conn.rollback()
            logger.error(f"Database error creating graph: {e}")
            self.close_graph()
            raise GraphQueryError(
                {"message": f"Could not open graph {self.graphname}", "details": str(e)}
            ) from e
        logger.info(f"Graph '{self.graphname}' ensured to exist")
        return self.conn

    def close_graph(self) -> None:
        """Closes the connection."""
        _banner("Closing graph")
        try:
            if self.conn is not None:
                self.conn.close()
        finally:
            self.conn = None

    def drop_graph(self) -> None:
        """Drops the graph together with all of its labels and elements."""
        if self.conn is None:
            return
        _banner("Dropping graph")
        with self.conn.cursor() as cursor:
            cursor.execute(f"DROP GRAPH IF EXISTS {self.graphname} CASCADE")
        self.conn.commit()
        logger.info(f"Graph '{self.graphname}' dropped")

    # ----- query helpers -----

    def _require_connection(self) -> psycopg.Connection:
        if self.conn is None:
            raise GraphAppError("Graph is not open")
        return self.conn

    def execute_cypher(
        self, query: str, params: Optional[Dict[str, Any]] = None
    ) -> List[NamedTuple]:
        """
        Execute a statement in the current transaction and return its rows.

        The transaction is left open; committing or rolling back is up to
        the caller.

        Raises:
            GraphQueryError: on database errors
        """
        conn = self._require_connection()
        with conn.cursor(row_factory=namedtuple_row) as cursor:
            try:
                # graph_path is reset when a transaction rolls back
                cursor.execute(f"SET graph_path = {self.graphname}")
                if params:
                    cursor.execute(query, params)
                else:
                    cursor.execute(query)
            except psycopg.Error as e:
                logger.debug(f"Database error executing query: {e}\n{query}\n{params}")
                raise GraphQueryError(
                    {"message": "Error executing graph query", "details": str(e)}
                ) from e

            try:
                return cursor.fetchall()
            except psycopg.ProgrammingError:
                # statement doesn't return rows (CREATE, SET, DELETE)
                return []

    def schema_exists(self) -> bool:
        """Naive check whether the schema was created before: any label besides
        the built-in ones counts."""
        rows = self.execute_cypher(USER_LABEL_COUNT_QUERY, {"graphname": self.graphname})
        return bool(rows) and rows[0].total > 0

    def count_vertices(self, label: Optional[str] = None) -> int:
        rows = self.execute_cypher(
            f"MATCH (v{_label_pattern(label)}) RETURN count(v) AS total"
        )
        return rows[0].total if rows else 0

    def has_vertices(self) -> bool:
        return bool(self.execute_cypher("MATCH (v) RETURN id(v) AS id LIMIT 1"))

    def add_vertex(self, label: str, properties: Dict[str, Any]) -> Vertex:
        """Create a vertex after checking it against the schema."""
        if not self.schema.has_vertex_label(label):
            raise SchemaViolation(f"Undeclared vertex label: {label}")
        self.schema.check_properties(properties)

        props, params = format_properties(properties)
        self.execute_cypher(f"CREATE (v:{quote_identifier(label)} {props})", params)
        logger.debug(f"Created {label} vertex {properties.get('name')}")
        return Vertex(label=label, properties=properties)

    def add_edge(
        self,
        label: str,
        out_name: str,
        in_name: str,
        properties: Optional[Dict[str, Any]] = None,
    ) -> Edge:
        """
        Create an edge between the vertices named ``out_name`` and ``in_name``.

        Raises:
            SchemaViolation: undeclared label or property
            MultiplicityViolation: the edge would break the label's multiplicity
            GraphAppError: one of the vertices does not exist
        """
        properties = properties or {}
        edge_label = self.schema.edge_label(label)
        self.schema.check_properties(properties)
        self._check_multiplicity(edge_label.name, edge_label.multiplicity, out_name, in_name)

        props, params = format_properties(properties, prefix="e")
        params.update({"out_name": Jsonb(out_name), "in_name": Jsonb(in_name)})
        rows = self.execute_cypher(
            f"""
            MATCH (a), (b)
            WHERE a.name = %(out_name)s AND b.name = %(in_name)s
            CREATE (a)-[e:{quote_identifier(label)} {props}]->(b)
            RETURN label(e) AS label
            """,
            params,
        )
        if not rows:
            raise GraphAppError(
                f"Cannot create {label} edge, vertex {out_name} or {in_name} not found"
            )
        return Edge(label=label, out_name=out_name, in_name=in_name, properties=properties)

    def _count_edges(
        self,
        label: str,
        out_name: Optional[str] = None,
        in_name: Optional[str] = None,
    ) -> int:
        conditions = []
        params = {}
        if out_name is not None:
            conditions.append("a.name = %(out_name)s")
            params["out_name"] = Jsonb(out_name)
        if in_name is not None:
            conditions.append("b.name = %(in_name)s")
            params["in_name"] = Jsonb(in_name)
        where = f"WHERE {' AND '.join(conditions)}" if conditions else ""
        rows = self.execute_cypher(
            f"MATCH (a)-[e{_label_pattern(label)}]->(b) {where} RETURN count(e) AS total",
            params,
        )
        return rows[0].total if rows else 0

    def _check_multiplicity(
        self, label: str, multiplicity: str, out_name: str, in_name: str
    ) -> None:
        if multiplicity == "MULTI":
            return
        if multiplicity == "SIMPLE":
            if self._count_edges(label, out_name=out_name, in_name=in_name):
                raise MultiplicityViolation(
                    f"{out_name} already has a {label} edge to {in_name}"
                )
            return
        if multiplicity in ("MANY2ONE", "ONE2ONE"):
            if self._count_edges(label, out_name=out_name):
                raise MultiplicityViolation(
                    f"{out_name} already has an outgoing {label} edge"
                )
        if multiplicity in ("ONE2MANY", "ONE2ONE"):
            if self._count_edges(label, in_name=in_name):
                raise MultiplicityViolation(
                    f"{in_name} already has an incoming {label} edge"
                )

    def find_vertices(self, name: str) -> List[Vertex]:
        """Look up vertices by their ``name`` property."""
        rows = self.execute_cypher(
            """
            MATCH (v) WHERE v.name = %(name)s
            RETURN label(v) AS label, properties(v) AS properties
            """,
            {"name": Jsonb(name)},
        )
        return [Vertex(label=row.label, properties=row.properties or {}) for row in rows]

    def find_vertex(self, name: str) -> Optional[Vertex]:
        vertices = self.find_vertices(name)
        if len(vertices) > 1:
            logger.warning(f"Found {len(vertices)} vertices named '{name}'")
        return vertices[0] if vertices else None

    def vertex_names(self, label: Optional[str] = None) -> List[str]:
        rows = self.execute_cypher(
            f"MATCH (v{_label_pattern(label)}) RETURN v.name AS name ORDER BY name"
        )
        return [row.name for row in rows]

    def edges(
        self, name: str, direction: Direction = "OUT", label: Optional[str] = None
    ) -> List[Edge]:
        """Edges incident to the vertex named ``name`` in the given direction."""
        if direction == "OUT":
            pattern = f"(v)-[e{_label_pattern(label)}]->(o)"
            ends = "v.name AS out_name, o.name AS in_name"
        elif direction == "IN":
            pattern = f"(o)-[e{_label_pattern(label)}]->(v)"
            ends = "o.name AS out_name, v.name AS in_name"
        else:
            raise ValueError(f"Invalid direction: {direction}")

        rows = self.execute_cypher(
            f"""
            MATCH {pattern} WHERE v.name = %(name)s
            RETURN label(e) AS label, {ends}, properties(e) AS properties
            ORDER BY out_name, in_name
            """,
            {"name": Jsonb(name)},
        )
        return [
            Edge(
                label=row.label,
                out_name=row.out_name,
                in_name=row.in_name,
                properties=row.properties or {},
            )
            for row in rows
        ]

    def set_property(self, name: str, key: str, value: Any) -> int:
        """Set a property on the vertices named ``name``; returns how many were updated."""
        self.schema.check_properties({key: value})
        rows = self.execute_cypher(
            f"""
            MATCH (v) WHERE v.name = %(name)s
            SET v.{quote_identifier(validate_identifier(key))} = %(value)s
            RETURN v.name AS name
            """,
            {"name": Jsonb(name), "value": Jsonb(value)},
        )
        return len(rows)

    def drop_vertex(self, name: str) -> None:
        """Delete the vertices named ``name`` together with their incident edges."""
        self.execute_cypher(
            "MATCH (v) WHERE v.name = %(name)s DETACH DELETE v",
            {"name": Jsonb(name)},
        )

    def drop_edges(self, label: str, out_name: str, in_name: str) -> None:
        self.execute_cypher(
            f"""
            MATCH (a)-[e{_label_pattern(label)}]->(b)
            WHERE a.name = %(out_name)s AND b.name = %(in_name)s
            DELETE e
            """,
            {"out_name": Jsonb(out_name), "in_name": Jsonb(in_name)},
        )

    # ----- steps -----

    def create_schema(self) -> bool:
        """
        Creates the labels and indexes of the schema unless the graph already
        has labels of its own. Returns True if the schema was created.
        """
        conn = self._require_connection()
        try:
            if self.schema_exists():
                conn.rollback()
                return False

            _banner("Creating schema")
            for statement in self.schema.statements():
                logger.debug(statement)
                self.execute_cypher(statement)
            conn.commit()
            return True
        except Exception as e:
            logger.error(f"Error creating schema: {e}")
            conn.rollback()
            return False

    def create_elements(self) -> bool:
        """
        Adds the sample vertices and edges unless the graph already has
        vertices. Returns True if the elements were created.
        """
        conn = self._require_connection()
        try:
            if self.has_vertices():
                conn.rollback()
                return False

            _banner("Creating elements")
            self.populate()
            conn.commit()
            return True
        except Exception as e:
            logger.exception(f"Error creating elements: {e}")
            conn.rollback()
            return False

    def read_elements(self) -> None:
        """Runs the example's read-only queries."""
        if self.conn is None:
            return
        try:
            _banner("Reading elements")
            self.read()
        finally:
            # every graph access starts a transaction, finish it even for
            # read-only queries
            self.conn.rollback()

    def update_elements(self) -> None:
        """Makes an update to existing elements. Does not add vertices or edges."""
        if self.conn is None:
            return
        try:
            _banner("Updating elements")
            self.update()
            self.conn.commit()
        except Exception as e:
            logger.exception(f"Error updating elements: {e}")
            self.conn.rollback()

    def delete_elements(self) -> None:
        """Deletes elements. Deleting a vertex also deletes its incident edges."""
        if self.conn is None:
            return
        try:
            _banner("Deleting elements")
            self.delete()
            self.conn.commit()
        except Exception as e:
            logger.exception(f"Error deleting elements: {e}")
            self.conn.rollback()

    def run(self) -> None:
        """Runs the whole example: schema, data, read, update, delete."""
        self.open_graph()
        try:
            self.create_schema()
            self.create_elements()
            self.read_elements()
            self.update_elements()
            self.read_elements()
            self.delete_elements()
            self.read_elements()
        finally:
            self.close_graph()

    def drop(self) -> None:
        """Opens the graph and drops it."""
        self.open_graph()
        try:
            self.drop_graph()
        finally:
            self.close_graph()

    # ----- hooks -----

    def populate(self) -> None:
        raise NotImplementedError

    def read(self) -> None:
        raise NotImplementedError

    def update(self) -> None:
        raise NotImplementedError

    def delete(self) -> None:
        raise NotImplementedError
