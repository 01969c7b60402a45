from __future__ import annotations
from typing import Final, Dict

INDEX_NAME: Final[str] = "t_start"
FRAME_COLS: Final[list[str]] = [
    "nmi",
    "channel",
    "flow",
    "kwh",
    "cadence_min",
    "quality_method",
    "reason_code",
    "reason_description",
]
DEFAULT_TZ: Final[str] = "Australia/Brisbane"

# NEM12 record indicators
HEADER: Final[int] = 100
DATA_DETAILS: Final[int] = 200
INTERVAL_DATA: Final[int] = 300
INTERVAL_EVENT: Final[int] = 400
B2B_DETAILS: Final[int] = 500
END_OF_DATA: Final[int] = 900

VERSION_HEADER: Final[str] = "NEM12"
MINUTES_PER_DAY: Final[int] = 1440
MINUTES_PER_HOUR: Final[int] = 60
HOURS_PER_DAY: Final[int] = 24

DATE_FORMAT: Final[str] = "%Y%m%d"
DATETIME_FORMAT: Final[str] = "%Y%m%d%H%M%S"
HEADER_DATETIME_FORMAT: Final[str] = "%Y%m%d%H%M"

# A 300 record with this quality method carries its real methods on 400 records
VARIABLE_QUALITY_METHOD: Final[str] = "V"

# Australian GST
GST_MULTIPLIER: Final[float] = 1.1
MIN_DAYS_PER_MONTH: Final[int] = 14

# Raw NEM12 suffix/channel → semantic flow
CHANNEL_MAP: Dict[str, str] = {
    "E1": "grid_import",
    "E2": "controlled_load_import",
    "B1": "grid_export_solar",
    "B2": "grid_export_secondary",
}
