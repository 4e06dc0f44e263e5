import psycopg  # type: ignore
import pytest

from agensgraph_examples.config import GraphConfig, process_config


def _config(graphname: str) -> GraphConfig:
    # same AGENSGRAPH_* variables as the applications
    return process_config(
        {"agensgraph.graphname": graphname, "agensgraph.connect_timeout": "5"}
    )


@pytest.fixture(scope="session", autouse=True)
def agensgraph_available():
    config = _config("it_ping")
    try:
        with psycopg.connect(config.connection_url, connect_timeout=5) as conn:
            with conn.cursor() as cursor:
                cursor.execute("SELECT 1 FROM pg_catalog.ag_graph LIMIT 1")
    except psycopg.Error as e:
        pytest.skip(f"AgensGraph not available: {e}")


@pytest.fixture
def open_app():
    """
    Opens an example app on a fresh graph and drops the graph afterwards.
    """
    apps = []

    def _open(app_class, graphname, **kwargs):
        app = app_class(_config(graphname), **kwargs)
        app.open_graph()
        app.drop_graph()
        app.close_graph()
        app.open_graph()
        apps.append(app)
        return app

    yield _open

    for app in apps:
        if app.conn is None:
            app.open_graph()
        app.drop_graph()
        app.close_graph()
