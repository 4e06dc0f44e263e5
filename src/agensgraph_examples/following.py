"""A random social network of people following each other."""

import logging
import random
import time
from datetime import date, timedelta
from typing import List, Optional

from faker import Faker

from .config import GraphConfig
from .graph_app import GraphApp
from .schema import EdgeLabel, GraphSchema, PropertyIndex, PropertyKey, VertexLabel

logger = logging.getLogger("agensgraph_examples")

PERSON_NUM = 20
FOLLOWING_DATE_START = date(2005, 1, 1)
FOLLOWING_DATE_END = date(2018, 4, 23)

FOLLOWING_SCHEMA = GraphSchema(
    property_keys=[
        PropertyKey(name="name", data_type="string"),
        PropertyKey(name="age", data_type="integer"),
        PropertyKey(name="date", data_type="string"),
        PropertyKey(name="timestamp", data_type="integer"),
    ],
    vertex_labels=[VertexLabel(name="person")],
    edge_labels=[
        EdgeLabel(name="following", multiplicity="SIMPLE", signature=["timestamp"]),
        EdgeLabel(name="followedBy", multiplicity="SIMPLE", signature=["timestamp"]),
    ],
    indexes=[
        PropertyIndex(name="person_name_idx", label="person", keys=["name"], unique=True),
    ],
)


def random_date(rng: random.Random, start: date, end: date) -> date:
    """Uniformly random day in ``[start, end)``."""
    return start + timedelta(days=int(rng.random() * (end - start).days))


def random_names(rng: random.Random, count: int) -> List[str]:
    """``count`` distinct full names."""
    fake = Faker()
    fake.seed_instance(rng.getrandbits(32))
    return [fake.unique.name() for _ in range(count)]


class FollowingApp(GraphApp):
    """
    People following each other since a random date.

    Update stamps one random person with a ``timestamp``; delete removes one
    random person together with the edges they are part of.
    """

    schema = FOLLOWING_SCHEMA
    default_graphname = "following"

    def __init__(self, config: GraphConfig, rng: Optional[random.Random] = None) -> None:
        super().__init__(config)
        self.rng = rng or random.Random()
        self.last_updated: Optional[str] = None
        self.last_deleted: Optional[str] = None

    def populate(self) -> None:
        names = random_names(self.rng, PERSON_NUM)
        for name in names:
            self.add_vertex("person", {"name": name, "age": 15 + self.rng.randrange(50)})

        for person in names:
            # random number of subscriptions
            subscriptions = self.rng.randrange(PERSON_NUM // 2)
            others = [name for name in names if name != person]
            for followed in self.rng.sample(others, subscriptions):
                since = random_date(self.rng, FOLLOWING_DATE_START, FOLLOWING_DATE_END)
                self.add_edge("following", person, followed, {"date": since.isoformat()})

        logger.info(f"Created {len(names)} people")

    def read(self) -> None:
        for counter, name in enumerate(self.vertex_names("person")):
            vertex = self.find_vertex(name)
            if vertex is None:
                continue
            logger.info(f"{counter})")
            logger.info(f"Person: {name}, {vertex.properties.get('age')}")
            logger.info(f"Vertex property list: {list(vertex.properties.values())}")

            followers = self.edges(name, "IN", "following")
            if followers:
                logger.info(f"{name} followed by:")
                for edge in followers:
                    logger.info(f"\t{edge.out_name} since {edge.properties.get('date')}")
                logger.info(f"Total followers: {len(followers)}")

            following = self.edges(name, "OUT", "following")
            if following:
                logger.info(f"{name} follows:")
                for edge in following:
                    logger.info(f"\t{edge.in_name} since {edge.properties.get('date')}")
                logger.info(f"Total following: {len(following)}")

            logger.info("********************************\n")

    def _sample_person(self) -> Optional[str]:
        names = self.vertex_names("person")
        if not names:
            logger.warning("No people in the graph")
            return None
        return self.rng.choice(names)

    def update(self) -> None:
        name = self._sample_person()
        if name is None:
            return
        ts = int(time.time() * 1000)
        logger.info(f"Adding 'timestamp' field to '{name}' vertex")
        self.set_property(name, "timestamp", ts)
        self.last_updated = name

    def delete(self) -> None:
        name = self._sample_person()
        if name is None:
            return
        logger.info(f"Deleting '{name}' vertex")
        self.drop_vertex(name)
        self.last_deleted = name
