"""The Graph of the Gods: a small mythology-themed graph.

Titans, gods, demigods, humans and monsters, where they live and who
battled whom.
"""

import logging
import time

from psycopg.types.json import Jsonb  # type: ignore

from .graph_app import GraphApp
from .schema import EdgeLabel, GraphSchema, PropertyIndex, PropertyKey, VertexLabel

logger = logging.getLogger("agensgraph_examples")

VERTEX_LABELS = ["titan", "location", "god", "demigod", "human", "monster"]

GODS_SCHEMA = GraphSchema(
    property_keys=[
        PropertyKey(name="name", data_type="string"),
        PropertyKey(name="age", data_type="integer"),
        PropertyKey(name="time", data_type="integer"),
        PropertyKey(name="reason", data_type="string"),
        PropertyKey(name="place", data_type="map"),
        PropertyKey(name="ts", data_type="integer"),
    ],
    vertex_labels=[VertexLabel(name=label) for label in VERTEX_LABELS],
    edge_labels=[
        EdgeLabel(name="father", multiplicity="MANY2ONE"),
        EdgeLabel(name="mother", multiplicity="MANY2ONE"),
        EdgeLabel(name="lives", signature=["reason"]),
        EdgeLabel(name="pet"),
        EdgeLabel(name="brother"),
        EdgeLabel(name="battled", signature=["time", "place"]),
    ],
    indexes=[
        PropertyIndex(name=f"{label}_name_idx", label=label, keys=["name"], unique=True)
        for label in VERTEX_LABELS
    ]
    + [
        PropertyIndex(name="god_age_idx", label="god", keys=["age"]),
        PropertyIndex(name="lives_reason_idx", label="lives", keys=["reason"]),
    ],
)

# (label, properties)
VERTICES = [
    ("titan", {"name": "saturn", "age": 10000}),
    ("location", {"name": "sky"}),
    ("location", {"name": "sea"}),
    ("god", {"name": "jupiter", "age": 5000}),
    ("god", {"name": "neptune", "age": 4500}),
    ("demigod", {"name": "hercules", "age": 30}),
    ("human", {"name": "alcmene", "age": 45}),
    ("god", {"name": "pluto", "age": 4000}),
    ("monster", {"name": "nemean"}),
    ("monster", {"name": "hydra"}),
    ("monster", {"name": "cerberus"}),
    ("location", {"name": "tartarus"}),
]


def _place(latitude: float, longitude: float) -> dict:
    return {"latitude": latitude, "longitude": longitude}


# (label, out vertex, in vertex, properties)
EDGES = [
    ("father", "jupiter", "saturn", {}),
    ("lives", "jupiter", "sky", {"reason": "loves fresh breezes"}),
    ("brother", "jupiter", "neptune", {}),
    ("brother", "jupiter", "pluto", {}),
    ("lives", "neptune", "sea", {"reason": "loves waves"}),
    ("brother", "neptune", "jupiter", {}),
    ("brother", "neptune", "pluto", {}),
    ("father", "hercules", "jupiter", {}),
    ("mother", "hercules", "alcmene", {}),
    ("battled", "hercules", "nemean", {"time": 1, "place": _place(38.1, 23.7)}),
    ("battled", "hercules", "hydra", {"time": 2, "place": _place(37.7, 23.9)}),
    ("battled", "hercules", "cerberus", {"time": 12, "place": _place(39.0, 22.0)}),
    ("brother", "pluto", "jupiter", {}),
    ("brother", "pluto", "neptune", {}),
    ("lives", "pluto", "tartarus", {"reason": "no fear of death"}),
    ("pet", "pluto", "cerberus", {}),
    ("lives", "cerberus", "tartarus", {}),
]


class GodsApp(GraphApp):
    """Loads the Graph of the Gods; updates jupiter and deletes pluto."""

    schema = GODS_SCHEMA
    default_graphname = "gods"

    def populate(self) -> None:
        for label, properties in VERTICES:
            self.add_vertex(label, properties)
        for label, out_name, in_name, properties in EDGES:
            self.add_edge(label, out_name, in_name, properties)
        logger.info(f"Created {len(VERTICES)} vertices and {len(EDGES)} edges")

    def read(self) -> None:
        # look up vertex by name
        jupiter = self.find_vertex("jupiter")
        if jupiter is None:
            logger.warning("jupiter not found")
            return
        logger.info(f"jupiter: {jupiter.properties}")

        # look up an incident edge
        rows = self.execute_cypher(
            """
            MATCH (h)-[e:battled]->(m)
            WHERE h.name = %(hero)s AND m.name = %(monster)s
            RETURN properties(e) AS properties
            """,
            {"hero": Jsonb("hercules"), "monster": Jsonb("hydra")},
        )
        if rows:
            logger.info(f"hercules battled hydra: {rows[0].properties}")

        # numerical range query
        rows = self.execute_cypher(
            "MATCH (v) WHERE v.age >= %(age)s RETURN v.age AS age ORDER BY age",
            {"age": Jsonb(5000)},
        )
        logger.info(f"ages >= 5000: {[row.age for row in rows]}")

        # pluto can be walked to from jupiter, until he is deleted
        rows = self.execute_cypher(
            """
            MATCH (j)-[:brother]-(b)
            WHERE j.name = %(name)s
            RETURN DISTINCT b.name AS name ORDER BY name
            """,
            {"name": Jsonb("jupiter")},
        )
        logger.info(f"jupiter's brothers: {[row.name for row in rows]}")

        # where does pluto live
        homes = self.edges("pluto", "OUT", "lives")
        if homes:
            logger.info(f"pluto lives in {homes[0].in_name} because he {homes[0].properties.get('reason')}")
        else:
            logger.info("pluto has no home")

    def update(self) -> None:
        ts = int(time.time() * 1000)
        logger.info(f"Adding 'ts' field {ts} to 'jupiter' vertex")
        self.set_property("jupiter", "ts", ts)

    def delete(self) -> None:
        # the 'lives' edge first, then pluto, whose remaining edges go with him
        logger.info("Deleting pluto's 'lives' edge to tartarus")
        self.drop_edges("lives", "pluto", "tartarus")
        logger.info("Deleting 'pluto' vertex")
        self.drop_vertex("pluto")
