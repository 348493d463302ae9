from .dag import TaskGraph
from .types import CycleError, GraphError

__all__ = ["TaskGraph", "CycleError", "GraphError"]
