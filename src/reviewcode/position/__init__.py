"""GitHub diff position マッピング。"""

from reviewcode.position._mapper import (
    PositionMap,
    build_position_map,
    lookup_position,
    map_positions,
    parse_query,
)

__all__ = [
    "PositionMap",
    "build_position_map",
    "lookup_position",
    "map_positions",
    "parse_query",
]
