"""Agent pool with spatial hashing for neighbor and collision queries."""

from __future__ import annotations

from collections import Counter, defaultdict
from typing import Iterable, Iterator, Optional

import structlog

from rps_arena.core.agent import Agent
from rps_arena.core.colors import GameColor

logger = structlog.get_logger()


class AgentPool:
    """Owns every live agent of a run, in creation order.

    Provides spawn/remove operations, per-color counts, and a spatial hash
    grid for proximity queries. The grid is a snapshot: call
    rebuild_spatial_grid() after agents move and before querying.
    """

    def __init__(self, cell_size: float = 75.0) -> None:
        """Initialize an empty pool.

        Args:
            cell_size: Side length of a spatial hash cell in pixels. Queries
                are cheapest when this matches the largest query radius.
        """
        self.cell_size = cell_size
        self._agents: dict[int, Agent] = {}
        self._spatial_grid: dict[tuple[int, int], list[Agent]] = defaultdict(list)
        self._next_id = 0

    def spawn(
        self,
        x: float,
        y: float,
        color: GameColor,
        vx: float = 0.0,
        vy: float = 0.0,
        size: float = 25.0,
    ) -> Agent:
        """Create an agent and add it to the pool.

        Args:
            x: Initial x position.
            y: Initial y position.
            color: Population the agent belongs to.
            vx: Initial x velocity.
            vy: Initial y velocity.
            size: Diameter in pixels.

        Returns:
            The newly created agent.
        """
        agent = Agent(id=self._next_id, color=color, x=x, y=y, vx=vx, vy=vy, size=size)
        self._next_id += 1
        self._agents[agent.id] = agent
        return agent

    def remove_many(self, agent_ids: Iterable[int]) -> int:
        """Remove a batch of agents by id.

        Returns:
            How many agents were removed. Ids not in the pool are logged and
            skipped.
        """
        removed = 0
        for agent_id in agent_ids:
            if self._agents.pop(agent_id, None) is None:
                logger.warning("agent_remove_failed", agent_id=agent_id, reason="not_found")
                continue
            removed += 1
        return removed

    def agents(self) -> list[Agent]:
        """All agents, oldest first."""
        return list(self._agents.values())

    def __iter__(self) -> Iterator[Agent]:
        return iter(list(self._agents.values()))

    def __len__(self) -> int:
        return len(self._agents)

    def count_by_color(self) -> dict[GameColor, int]:
        """Live agent count per color, including colors with zero agents."""
        counts = Counter(agent.color for agent in self._agents.values())
        return {color: counts.get(color, 0) for color in GameColor}

    def clear(self) -> None:
        """Remove all agents. Ids keep increasing across clears."""
        self._agents.clear()
        self._spatial_grid.clear()

    # -------------------------------------------------------------------------
    # Spatial hashing
    # -------------------------------------------------------------------------

    def _build_grid(self, cell_size: float) -> dict[tuple[int, int], list[Agent]]:
        # Agents within each cell stay in creation order
        grid: dict[tuple[int, int], list[Agent]] = defaultdict(list)
        for agent in self._agents.values():
            grid[(int(agent.x // cell_size), int(agent.y // cell_size))].append(agent)
        return grid

    def rebuild_spatial_grid(self) -> None:
        """Rebuild the neighbor grid from current positions."""
        self._spatial_grid = self._build_grid(self.cell_size)

    def nearby(self, x: float, y: float, radius: float) -> list[Agent]:
        """Find all agents whose grid-snapshot position lies within radius of a point.

        Args:
            x: Center x coordinate.
            y: Center y coordinate.
            radius: Search radius in pixels (inclusive).

        Returns:
            Matching agents, cell by cell (column-major), creation order
            within a cell. The order is stable for a given layout.

        Note:
            Distances are measured with current positions, but cell
            membership comes from the last rebuild_spatial_grid() call.
        """
        cell_x_min = int((x - radius) // self.cell_size)
        cell_x_max = int((x + radius) // self.cell_size)
        cell_y_min = int((y - radius) // self.cell_size)
        cell_y_max = int((y + radius) // self.cell_size)

        radius_squared = radius * radius
        found: list[Agent] = []

        for cx in range(cell_x_min, cell_x_max + 1):
            for cy in range(cell_y_min, cell_y_max + 1):
                for agent in self._spatial_grid.get((cx, cy), ()):
                    dx = agent.x - x
                    dy = agent.y - y
                    if dx * dx + dy * dy <= radius_squared:
                        found.append(agent)

        return found

    def candidate_pairs(self, cell_size: Optional[float] = None) -> list[tuple[Agent, Agent]]:
        """List every unordered pair that shares a grid cell or a neighboring one.

        Args:
            cell_size: Cell size of a fresh grid built from current positions.
                Collision checks pass the agent diameter, which keeps the
                candidate set small. Defaults to the neighbor grid snapshot.

        Returns:
            Pairs (a, b) with a.id < b.id, sorted by (a.id, b.id). This is a
            superset of the pairs whose centers are closer than the cell size.
        """
        grid = self._spatial_grid if cell_size is None else self._build_grid(cell_size)
        pairs: list[tuple[Agent, Agent]] = []

        for (cx, cy), members in grid.items():
            neighbors: list[Agent] = []
            for ox in (-1, 0, 1):
                for oy in (-1, 0, 1):
                    neighbors.extend(grid.get((cx + ox, cy + oy), ()))

            for agent in members:
                for other in neighbors:
                    if agent.id < other.id:
                        pairs.append((agent, other))

        pairs.sort(key=lambda pair: (pair[0].id, pair[1].id))
        return pairs
