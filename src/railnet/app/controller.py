# app/controller.py
from collections.abc import Callable

from railnet.app.router import RouteOutcome, RouteStatus, TransitRouter
from railnet.domain.entities.network import Coord

Listener = Callable[["RouteController"], None]


class RouteController:
    """
    Holds the start/end placement of one routing session and runs searches.

    Components that need to place points or trigger a search get this object
    passed in; there is no shared global handle. Listeners are called after
    every state change.
    """

    ROLES = ("start", "end")

    def __init__(
        self,
        router: TransitRouter,
        *,
        optimize_for: str = "time",
        max_walking_distance: float | None = None,
    ):
        self.router = router
        self.optimize_for = optimize_for
        self.max_walking_distance = max_walking_distance
        self.start: Coord | None = None
        self.end: Coord | None = None
        self.placing: str | None = None  # role awaiting a point
        self.outcome: RouteOutcome | None = None
        self._listeners: list[Listener] = []

    def subscribe(self, fn: Listener) -> Callable[[], None]:
        self._listeners.append(fn)
        return lambda: self._listeners.remove(fn)

    def _changed(self):
        for fn in list(self._listeners):
            fn(self)

    # ------------- placement ----------------

    def begin_placing(self, role: str) -> None:
        if role not in self.ROLES:
            raise ValueError(f"unknown role {role!r}; expected one of {self.ROLES}")
        self.placing = role
        self._changed()

    def place(self, point: Coord, role: str | None = None) -> None:
        """Set `role`'s point, or the point awaited by begin_placing()."""
        role = role or self.placing
        if role not in self.ROLES:
            raise ValueError("no placement in progress and no role given")
        setattr(self, role, (float(point[0]), float(point[1])))
        self.placing = None
        self.outcome = None
        self._changed()

    def set_start(self, point: Coord) -> None:
        self.place(point, "start")

    def set_end(self, point: Coord) -> None:
        self.place(point, "end")

    def swap(self) -> None:
        self.start, self.end = self.end, self.start
        self.outcome = None
        self._changed()

    def clear(self) -> None:
        self.start = self.end = None
        self.placing = None
        self.outcome = None
        self._changed()

    # ------------- search ----------------

    @property
    def ready(self) -> bool:
        return self.start is not None and self.end is not None and self.router.is_ready

    def calculate(self) -> RouteOutcome:
        missing = [r for r in self.ROLES if getattr(self, r) is None]
        if missing:
            self.outcome = RouteOutcome(
                RouteStatus.INVALID, errors=[f"Place the {r} point first" for r in missing]
            )
        else:
            self.outcome = self.router.find_route(
                self.start,
                self.end,
                optimize_for=self.optimize_for,
                max_walking_distance=self.max_walking_distance,
            )
        self._changed()
        return self.outcome
