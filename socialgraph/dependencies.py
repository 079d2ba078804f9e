"""FastAPI dependencies."""
from fastapi import Request

from socialgraph.engine import SocialGraph


def get_graph(request: Request) -> SocialGraph:
    graph = getattr(request.app.state, "graph", None)
    if graph is None:
        raise RuntimeError("SocialGraph not initialised; the app lifespan did not run")
    return graph
