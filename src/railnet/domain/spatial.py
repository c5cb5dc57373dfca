# railnet/domain/spatial.py
import math
from collections import defaultdict
from collections.abc import Iterable, Iterator

from railnet.domain.entities.network import Coord
from railnet.domain.geometry import MI_PER_DEG_LAT, distance


class SpatialGrid:
    """
    Uniform lon/lat bucket index. Cells are square in degrees and at least
    `radius_mi` wide everywhere up to `max_abs_lat`, so a radius query only
    has to look at the surrounding ring of cells.
    """

    def __init__(self, radius_mi: float, max_abs_lat: float = 60.0):
        k = max(math.cos(math.radians(min(abs(max_abs_lat) + 0.5, 89.0))), 0.01)
        self.radius_mi = radius_mi
        self.cell = radius_mi / (MI_PER_DEG_LAT * k)
        self._cells: dict[tuple[int, int], list[str]] = defaultdict(list)
        self._pts: dict[str, Coord] = {}

    @classmethod
    def of(cls, items: Iterable[tuple[str, Coord]], radius_mi: float) -> "SpatialGrid":
        items = list(items)
        lat = max((abs(p[1]) for _, p in items), default=0.0)
        g = cls(radius_mi, lat)
        for key, p in items:
            g.insert(key, p)
        return g

    def __len__(self) -> int:
        return len(self._pts)

    def _cell_of(self, p: Coord) -> tuple[int, int]:
        return (math.floor(p[0] / self.cell), math.floor(p[1] / self.cell))

    def insert(self, key: str, p: Coord) -> None:
        self._pts[key] = p
        self._cells[self._cell_of(p)].append(key)

    def remove(self, key: str) -> None:
        p = self._pts.pop(key)
        self._cells[self._cell_of(p)].remove(key)

    def near(self, p: Coord, radius_mi: float | None = None) -> list[tuple[float, str]]:
        """(distance, key) pairs within radius, closest first, insertion order on ties."""
        r = self.radius_mi if radius_mi is None else radius_mi
        rings = max(1, math.ceil(r / self.radius_mi))
        cx, cy = self._cell_of(p)
        hits = []
        for ix in range(cx - rings, cx + rings + 1):
            for iy in range(cy - rings, cy + rings + 1):
                for key in self._cells.get((ix, iy), ()):
                    d = distance(p, self._pts[key])
                    if d <= r:
                        hits.append((d, key))
        hits.sort(key=lambda h: h[0])
        return hits

    def pairs(self, order: dict[str, int]) -> Iterator[tuple[str, str, float]]:
        """Every unordered pair within `radius_mi`, each once (a before b in `order`)."""
        for a, pa in self._pts.items():
            for d, b in self.near(pa):
                if order[a] < order[b]:
                    yield a, b, d
