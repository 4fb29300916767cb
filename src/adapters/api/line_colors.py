from __future__ import annotations

from types import MappingProxyType
from typing import Mapping

DEFAULT_LINE_COLOR = "#808080"

LINE_COLORS: Mapping[int, str] = MappingProxyType(
    {
        1: "#3399FF",
        2: "#66CC66",
        3: "#FF80CC",
        4: "#994DE6",
        6: "#FFB333",
        7: "#4DE6E6",
        8: "#FF6666",
        9: "#FF9933",
        10: "#80B34D",
        12: "#3380CC",
        13: "#CC3399",
        15: "#E6804D",
        16: "#6699CC",
        17: "#B366B3",
        18: "#4DCC80",
        19: "#FFB366",
        20: "#8066E6",
        21: "#E64D66",
        151: "#999933",
    }
)


def line_color(line_id: int) -> str:
    return LINE_COLORS.get(line_id, DEFAULT_LINE_COLOR)
