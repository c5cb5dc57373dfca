# railnet/domain/speeds.py
from railnet.config.models import LineModel, SpeedModel

# Average speeds (mph) from historical Pacific Electric timetables, stops included.
HISTORICAL_LINE_SPEEDS: dict[str, float] = {
    "San Bernardino Line": 38.5,
    "Monrovia-Glendora Line": 25.0,
    "Pasadena Short Line": 18.0,
    "Pasadena Oak Knoll Line": 17.5,
    "Sierra Madre Line": 22.0,
    "Glendale-Burbank Line": 20.0,
    "Hollywood-Venice Line": 19.0,
    "Venice Short Line": 24.0,
    "Santa Monica via Sawtelle": 21.0,
    "Santa Monica Air Line": 28.0,
    "San Fernando Valley Line": 23.0,
    "Long Beach Line": 26.0,
    "Newport-Balboa Line": 30.0,
    "San Pedro via Dominguez": 27.0,
    "San Pedro via Torrance": 24.0,
    "Santa Ana Line": 28.0,
    "Whittier Line": 22.0,
    "Redondo Beach via Gardena": 21.0,
    "Redondo Beach via Inglewood": 23.0,
    "Manhattan Beach Line": 20.0,
    "Hermosa Beach Line": 19.0,
    "Venice Boulevard Line": 18.0,
    "Washington Boulevard Line": 17.0,
    "Watts Line": 19.0,
    "Riverside-Rialto Line": 35.0,
    "Pomona-Claremont Line": 26.0,
    "Fullerton Line": 25.0,
}

EXPRESS_WORDS = ("express", "limited", "air line", "flyer")
STREETCAR_WORDS = ("street", "boulevard", "avenue")


def _historical(line_id: str) -> float | None:
    name = line_id.strip().lower()
    for known, mph in HISTORICAL_LINE_SPEEDS.items():
        if known.lower() == name:
            return mph
    for known, mph in HISTORICAL_LINE_SPEEDS.items():
        if known.lower() in name:
            return mph
    return None


def infer_class(line_id: str) -> str | None:
    name = line_id.lower()
    if any(w in name for w in STREETCAR_WORDS):
        return "streetcar"
    if any(w in name for w in EXPRESS_WORDS):
        return "express"
    return None


class LineSpeeds:
    """
    Per-line average speed lookup. Precedence: config override, the line's
    own speed, the historical table, the line's class, a class inferred from
    its name, then the configured default class.
    """

    def __init__(self, cfg: SpeedModel):
        self.cfg = cfg
        self._own: dict[str, float] = {}
        self._cls: dict[str, str] = {}
        self._cache: dict[str, float] = {}

    def register(self, line: LineModel) -> None:
        if line.speed_mph is not None:
            self._own[line.line_id] = line.speed_mph
        if line.speed_class is not None:
            self._cls[line.line_id] = line.speed_class
        self._cache.pop(line.line_id, None)

    def speed_mph(self, line_id: str) -> float:
        v = self._cache.get(line_id)
        if v is None:
            v = self._resolve(line_id)
            self._cache[line_id] = v
        return v

    def _resolve(self, line_id: str) -> float:
        if line_id in self.cfg.lines:
            return self.cfg.lines[line_id]
        if line_id in self._own:
            return self._own[line_id]
        if self.cfg.use_historical:
            mph = _historical(line_id)
            if mph is not None:
                return mph
        cls = self._cls.get(line_id) or infer_class(line_id) or self.cfg.default_class
        return self.cfg.classes[cls]

    def travel_time_min(self, distance_mi: float, line_id: str) -> float:
        return distance_mi / self.speed_mph(line_id) * 60.0

    def walking_time_min(self, distance_mi: float) -> float:
        return distance_mi / self.cfg.walking_mph * 60.0

    def max_speed_mph(self, line_ids) -> float:
        return max([self.cfg.walking_mph, *(self.speed_mph(ln) for ln in line_ids)])
