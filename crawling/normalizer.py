"""
Normalizes provider-specific rows into canonical GymRecord objects.

Seoul Open Data LOCALDATA_104201 (sports facilities) columns used:
  BPLCNM        business name
  RDNWHLADDR    road address        SITEWHLADDR  lot-number address
  TRDSTATENM    business status     SITETEL      phone
  UPTAENM       business type       DRMKCOBNM    detail business type
  CULPHYEDCOBNM culture/sports type MGTNO        management number
  X, Y          coordinates (strings, may be blank)

Only operating, gym-related facilities survive.
"""

from __future__ import annotations
from typing import Any

from models.events import GymRecord

SEOUL_SOURCE = "seoul_public_api"

_ACTIVE_STATUSES = ("영업", "정상영업", "영업중", "운영중", "정상운영")

_GYM_KEYWORDS = (
    "헬스", "헬스장", "피트니스", "fitness", "gym", "짐",
    "크로스핏", "crossfit", "cross fit",
    "pt", "personal training", "개인트레이닝",
    "gx", "group exercise", "그룹운동",
    "요가", "yoga", "필라테스", "pilates",
    "웨이트", "weight", "근력", "muscle",
    "체육관", "운동", "exercise", "스포츠",
    "체육", "운동시설", "헬스클럽", "피트니스센터",
)

# First match wins, so more specific services come first.
_SERVICE_TYPES: tuple[tuple[str, tuple[str, ...]], ...] = (
    ("crossfit", ("크로스핏", "crossfit")),
    ("pt", ("pt", "개인트레이닝", "personal training")),
    ("gx", ("gx", "그룹", "group exercise")),
    ("yoga", ("요가", "yoga")),
    ("pilates", ("필라테스", "pilates")),
    ("gym", ("헬스", "fitness", "gym")),
    ("sports_hall", ("체육관", "운동시설")),
)


def is_active_business(status: str | None) -> bool:
    if not status:
        return False
    return any(marker in status for marker in _ACTIVE_STATUSES)


def is_gym_related(*fields: str | None) -> bool:
    text = " ".join(f or "" for f in fields).lower()
    return any(keyword in text for keyword in _GYM_KEYWORDS)


def classify_service_type(name: str, detail_type: str | None = None) -> str:
    text = f"{name} {detail_type or ''}".lower()
    for service_type, keywords in _SERVICE_TYPES:
        if any(k in text for k in keywords):
            return service_type
    return "gym"


def _coord(value: Any) -> float | None:
    if value in (None, ""):
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def _clean(value: Any) -> str | None:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def seoul_row_to_gym(raw: dict[str, Any]) -> GymRecord | None:
    """
    Normalize one LOCALDATA_104201 row.
    Returns None for rows without name/address, closed businesses, or non-gym facilities.
    """
    name = _clean(raw.get("BPLCNM"))
    address = _clean(raw.get("RDNWHLADDR")) or _clean(raw.get("SITEWHLADDR"))
    if not name or not address:
        return None

    status = raw.get("TRDSTATENM")
    if not is_active_business(status):
        return None

    business_type = raw.get("UPTAENM")
    detail_type = raw.get("DRMKCOBNM")
    if not is_gym_related(business_type, detail_type, raw.get("CULPHYEDCOBNM"), name):
        return None

    return GymRecord(
        name=name,
        address=address,
        source=SEOUL_SOURCE,
        service_type=classify_service_type(name, detail_type),
        phone=_clean(raw.get("SITETEL")),
        facilities=_clean(detail_type) or _clean(business_type),
        latitude=_coord(raw.get("Y")),
        longitude=_coord(raw.get("X")),
        business_status=_clean(status),
        management_number=_clean(raw.get("MGTNO")),
        confidence=0.9,
    )


def seoul_rows_to_gyms(rows: list[dict[str, Any]]) -> list[GymRecord]:
    results: list[GymRecord] = []
    for raw in rows:
        gym = seoul_row_to_gym(raw)
        if gym is not None:
            results.append(gym)
    return results
