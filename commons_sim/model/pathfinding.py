"""A* pathfinding over a weighted grid."""

import logging
import math
from dataclasses import dataclass
from typing import Callable, Dict, List, Set, Tuple

logger = logging.getLogger(__name__)

CostFunction = Callable[[int, int], float]

# 8-connected: cardinal moves first, then diagonals
DIRECTIONS = (
    (0, -1), (0, 1), (-1, 0), (1, 0),
    (-1, -1), (-1, 1), (1, -1), (1, 1),
)
DIAGONAL_COST = math.sqrt(2)


@dataclass
class PathNode:
    """Search node; ``parent`` indexes the search arena (-1 for start)."""
    x: int
    y: int
    g: float
    h: float
    f: float
    parent: int = -1


class Pathfinder:
    """
    A* search on a ``width x height`` grid with terrain costs supplied by
    a collaborator.

    The step cost into a cell is (1 or sqrt(2)) * cost_fn(x, y). Cells
    whose cost is not finite are impassable. The open set is scanned
    linearly for the lowest f, which is O(n) per pop but fine at the grid
    sizes used here.
    """

    def __init__(self, width: int, height: int, cost_fn: CostFunction):
        self.width = width
        self.height = height
        self.get_cost = cost_fn

    def is_valid(self, x: int, y: int) -> bool:
        return 0 <= x < self.width and 0 <= y < self.height

    @staticmethod
    def heuristic(x1: int, y1: int, x2: int, y2: int) -> float:
        """Euclidean distance."""
        return math.sqrt((x2 - x1) ** 2 + (y2 - y1) ** 2)

    def find_path(self, sx: float, sy: float,
                  gx: float, gy: float) -> List[Tuple[int, int]]:
        """
        Return the cheapest path from start to goal, both inclusive.

        An empty list means no path: out-of-bounds endpoints, an exhausted
        open set, or more than width * height expansions.
        """
        sx, sy = math.floor(sx), math.floor(sy)
        gx, gy = math.floor(gx), math.floor(gy)

        if sx == gx and sy == gy:
            return [(sx, sy)]
        if not self.is_valid(sx, sy) or not self.is_valid(gx, gy):
            return []

        h = self.heuristic(sx, sy, gx, gy)
        nodes: List[PathNode] = [PathNode(sx, sy, 0.0, h, h)]
        open_list: List[int] = [0]
        open_index: Dict[Tuple[int, int], int] = {(sx, sy): 0}
        closed: Set[Tuple[int, int]] = set()

        max_iterations = self.width * self.height
        iterations = 0

        while open_list and iterations < max_iterations:
            iterations += 1

            # Linear scan for the lowest f
            best = min(range(len(open_list)), key=lambda i: nodes[open_list[i]].f)
            current_idx = open_list.pop(best)
            current = nodes[current_idx]
            key = (current.x, current.y)
            open_index.pop(key, None)

            if key in closed:
                continue
            closed.add(key)

            if current.x == gx and current.y == gy:
                return self._reconstruct(nodes, current_idx)

            for dx, dy in DIRECTIONS:
                nx, ny = current.x + dx, current.y + dy
                neighbor = (nx, ny)
                if not self.is_valid(nx, ny) or neighbor in closed:
                    continue

                terrain = self.get_cost(nx, ny)
                if not math.isfinite(terrain):
                    continue

                step = DIAGONAL_COST if dx != 0 and dy != 0 else 1.0
                g = current.g + step * terrain

                existing = open_index.get(neighbor)
                if existing is None:
                    h = self.heuristic(nx, ny, gx, gy)
                    nodes.append(PathNode(nx, ny, g, h, g + h, current_idx))
                    open_index[neighbor] = len(nodes) - 1
                    open_list.append(len(nodes) - 1)
                elif g < nodes[existing].g:
                    node = nodes[existing]
                    node.g = g
                    node.f = g + node.h
                    node.parent = current_idx

        if open_list:
            logger.debug("A* budget of %d expansions exhausted for (%d,%d)->(%d,%d)",
                         max_iterations, sx, sy, gx, gy)
        return []

    @staticmethod
    def _reconstruct(nodes: List[PathNode], idx: int) -> List[Tuple[int, int]]:
        path = []
        while idx != -1:
            node = nodes[idx]
            path.append((node.x, node.y))
            idx = node.parent
        path.reverse()
        return path


def straight_path(sx: float, sy: float, gx: float, gy: float,
                  steps: int = 10) -> List[Tuple[float, float]]:
    """Evenly spaced points from start to goal, ignoring terrain."""
    steps = max(1, steps)
    path = []
    for i in range(steps + 1):
        t = i / steps
        path.append((sx + (gx - sx) * t, sy + (gy - sy) * t))
    return path
