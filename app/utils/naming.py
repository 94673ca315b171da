# app/utils/naming.py

"""
착즙 작업, 배치, 패키징 로트의 이름/코드 생성 규칙입니다.

    착즙 작업: 2025/09/19-01
    배치:     2025-09-19_TK03_GRAV_A
    로트 코드: B-2025-001-20251001-01
"""

from datetime import date, datetime
from typing import Any, Dict, Optional, Sequence, Union

PRIMARY_VARIETY_MIN_FRACTION = 0.6
UNKNOWN_VARIETY_CODE = "UNKN"
BLEND_CODE = "BLEND"

DateLike = Union[date, datetime]


def press_run_name(run_date: DateLike, sequence: int) -> str:
    """같은 날짜의 착즙 작업 순번을 붙인 이름: yyyy/mm/dd-##"""
    return f"{run_date:%Y/%m/%d}-{sequence:02d}"


def variety_code(name: Any) -> str:
    """
    품종명을 최대 4자리 코드로 줄입니다.
        Gravenstein -> GRAV, Northern Spy -> NOSP, Rhode Island Greening -> RIGR
    """
    if not isinstance(name, str):
        return UNKNOWN_VARIETY_CODE
    words = name.upper().split()
    if not words:
        return UNKNOWN_VARIETY_CODE
    if len(words) == 1:
        return words[0][:4]
    if len(words) == 2:
        return words[0][:2] + words[1][:2]
    return words[0][0] + words[1][0] + words[-1][:2]


def select_primary_variety(compositions: Sequence[Dict[str, Any]]) -> Optional[str]:
    """
    구성비가 60% 이상인 품종이 있으면 그 품종명을, 없으면 None(블렌드)을 반환합니다.
    compositions: [{"variety_name": str, "fraction": float}, ...]
    """
    if not compositions:
        return None
    top = max(compositions, key=lambda item: item["fraction"])
    if top["fraction"] >= PRIMARY_VARIETY_MIN_FRACTION:
        return top["variety_name"]
    return None


def batch_name(
    batch_date: DateLike,
    vessel_code: str,
    primary_variety: Optional[str] = None,
    sequence: str = "A",
) -> str:
    code = variety_code(primary_variety) if primary_variety else BLEND_CODE
    return f"{batch_date:%Y-%m-%d}_{''.join(vessel_code.upper().split())}_{code}_{sequence}"


def batch_number(batch_date: DateLike, sequence: int) -> str:
    """연도별 일련번호: B-2025-001"""
    return f"B-{batch_date:%Y}-{sequence:03d}"


def lot_code(batch_no: str, packaged_date: DateLike, sequence: int) -> str:
    return f"{batch_no}-{packaged_date:%Y%m%d}-{sequence:02d}"
