from __future__ import annotations

from typing import Dict, List, Tuple

# Header contract of the raw location/person table -> internal column names
MENTION_COLUMN_MAP: Dict[str, str] = {
    "name": "person_name",
    "age": "age",
    "migrated_from": "migrated_from",
    "migrated_to": "migrated_to",
    "gender": "gender",
    "occupation": "occupation_mentioned",
    "location": "raw_location",
    "city": "city",
    "country": "country",
}
MENTION_REQUIRED: List[str] = list(MENTION_COLUMN_MAP)
MENTION_OPTIONAL: List[str] = ["interview_id"]

GENDERS: Tuple[str, ...] = ("Female", "Male")
OCCUPATION_VALUES: Tuple[str, ...] = ("No", "NotMentioned", "Yes")

GEOCODE_LOOKUP_REQUIRED: List[str] = ["address", "latitude", "longitude"]

RESOLVED_REQUIRED: List[str] = [
    "address",
    "latitude",
    "longitude",
    "known",
    "camp",
    "resolved_location",
    "admin",
]
RESOLVED_BOOL_COLUMNS: List[str] = ["known", "camp", "admin"]

DISTANCE_REQUIRED: List[str] = ["PersonID", "resolved_location", "distance_km"]
CLASSIFICATION_REQUIRED: List[str] = ["PersonID", "CNTRY_NAME"]

# One row per (person, resolved location) once the analytic filter is applied
ANALYTIC_COLUMNS: List[str] = [
    "person_id",
    "person_name",
    "age",
    "gender",
    "occupation_mentioned",
    "resolved_location",
    "latitude",
    "longitude",
    "known",
    "camp",
]
