"""
Operational alert records.

Every alert carries a `kind` tag; `Alert` is the union of all alert kinds.
"""
from dataclasses import dataclass, field, asdict
from typing import Iterable, Literal, Tuple, Union

import pandas as pd

Severity = Literal['high', 'medium']

BUNCHING_RECOMMENDATION = "Hold back trailing vehicle or accelerate leading vehicle"


@dataclass(frozen=True)
class BunchingAlert:
    """Two vehicles on the same route closer than the safe following distance"""
    route_id: str
    vehicle_ids: Tuple[str, str]
    distance_meters: int
    severity: Severity
    recommendation: str = BUNCHING_RECOMMENDATION
    kind: Literal['bunching'] = field(default='bunching', init=False)

    def __str__(self) -> str:
        return (f"[{self.severity.upper()}] Route {self.route_id}: vehicles "
                f"{self.vehicle_ids[0]} and {self.vehicle_ids[1]} are only {self.distance_meters}m apart\n"
                f"  Recommendation: {self.recommendation}")


Alert = Union[BunchingAlert]


def alerts_to_frame(alerts: Iterable[Alert]) -> pd.DataFrame:
    """Flatten alerts of any kind into a DataFrame; kind-specific fields are NaN where absent"""
    rows = [asdict(alert) for alert in alerts]
    if not rows:
        return pd.DataFrame(columns=['kind', 'route_id'])
    df = pd.DataFrame(rows)
    leading = ['kind', 'route_id']
    return df[leading + [c for c in df.columns if c not in leading]]
