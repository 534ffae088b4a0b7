from typing import Dict, List, Union

JSONScalar = Union[str, int, float, bool, None]
JSON = Union[JSONScalar, Dict[str, "JSON"], List["JSON"]]

GAS_STATION_SOURCE: str = "gasStation"
GAS_TRACKER_SOURCE: str = "gasTracker"

# Base fee (gwei) treated as fully congested.
CONGESTION_REFERENCE_BASE_FEE: float = 100.0

# The gas tracker publishes absolute prices only; base fee is assumed to be this share of "propose".
GAS_TRACKER_BASE_FEE_RATIO: float = 0.8
# Synthesized "fastest" tier relative to "fast".
GAS_TRACKER_FASTEST_MULTIPLIER: float = 1.2
MIN_PRIORITY_FEE: int = 1

GAS_TRACKER_SUCCESS_STATUS: str = "1"
GAS_TRACKER_API_KEY_PARAM: str = "apikey"
