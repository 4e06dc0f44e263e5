"""A handful of people around Bob, following each other since known dates."""

import logging
import time

from psycopg.types.json import Jsonb  # type: ignore

from .graph_app import GraphApp
from .schema import EdgeLabel, GraphSchema, PropertyIndex, PropertyKey, VertexLabel

logger = logging.getLogger("agensgraph_examples")

SOCIAL_SCHEMA = GraphSchema(
    property_keys=[
        PropertyKey(name="name", data_type="string"),
        PropertyKey(name="age", data_type="integer"),
        PropertyKey(name="date", data_type="string"),
        PropertyKey(name="timestamp", data_type="integer"),
    ],
    vertex_labels=[VertexLabel(name="person")],
    edge_labels=[EdgeLabel(name="following", multiplicity="SIMPLE", signature=["date"])],
    indexes=[
        PropertyIndex(name="person_name_idx", label="person", keys=["name"], unique=True),
        PropertyIndex(name="following_date_idx", label="following", keys=["date"]),
    ],
)

PEOPLE = [
    {"name": "Alice", "age": 31},
    {"name": "Bob", "age": 27},
    {"name": "Carol", "age": 45},
    {"name": "Dave", "age": 19},
    {"name": "Eve", "age": 38},
]

# (follower, followed, since)
FOLLOWS = [
    ("Alice", "Bob", "2014-06-02"),
    ("Carol", "Bob", "2016-11-20"),
    ("Eve", "Bob", "2017-03-08"),
    ("Bob", "Alice", "2014-06-05"),
    ("Bob", "Dave", "2018-01-15"),
    ("Dave", "Eve", "2012-09-30"),
    ("Eve", "Carol", "2010-04-12"),
]

SINCE = "2015-01-01"


class SocialApp(GraphApp):
    """Loads Bob's circle; updates Bob and deletes Eve."""

    schema = SOCIAL_SCHEMA
    default_graphname = "social"

    update_target = "Bob"
    delete_target = "Eve"

    def populate(self) -> None:
        for person in PEOPLE:
            self.add_vertex("person", person)
        for follower, followed, since in FOLLOWS:
            self.add_edge("following", follower, followed, {"date": since})

    def read(self) -> None:
        bob = self.find_vertex("Bob")
        if bob is None:
            logger.warning("Bob not found")
            return
        logger.info(f"Bob: {bob.properties}")

        for edge in self.edges("Bob", "IN", "following"):
            logger.info(f"\t{edge.out_name} follows Bob since {edge.properties.get('date')}")
        for edge in self.edges("Bob", "OUT", "following"):
            logger.info(f"\tBob follows {edge.in_name} since {edge.properties.get('date')}")

        # ISO dates compare correctly as strings
        rows = self.execute_cypher(
            """
            MATCH (a)-[e:following]->(b)
            WHERE e.date >= %(since)s
            RETURN a.name AS follower, b.name AS followed, e.date AS date
            ORDER BY date
            """,
            {"since": Jsonb(SINCE)},
        )
        logger.info(f"Follows since {SINCE}:")
        for row in rows:
            logger.info(f"\t{row.follower} -> {row.followed} ({row.date})")

    def update(self) -> None:
        ts = int(time.time() * 1000)
        logger.info(f"Adding 'timestamp' field to '{self.update_target}' vertex")
        if not self.set_property(self.update_target, "timestamp", ts):
            logger.warning(f"{self.update_target} not found")

    def delete(self) -> None:
        logger.info(f"Deleting '{self.delete_target}' vertex")
        self.drop_vertex(self.delete_target)
