#allocation/spreadsheets.py
from __future__ import annotations

from io import BytesIO
from typing import Dict, Iterable, List

import pandas as pd

from users.models import User
from .recommendation import Recommendation

RECOMMENDATION_COLUMNS = [
    "Student Code", "Student Name", "Lecturer Code", "Lecturer Name",
    "Topic Title", "Source", "Priority",
]
ALLOCATION_COLUMNS = [
    "Student Code", "Student Name", "Lecturer Code", "Lecturer Name",
    "Topic Title", "Status", "Allocated At",
]

# wanted key -> accepted spreadsheet headers (compared lower-case)
UPLOAD_HEADERS: Dict[str, set] = {
    "student": {"student code", "student", "student_code", "student username"},
    "lecturer": {"lecturer code", "lecturer", "lecturer_code", "lecturer username", "supervisor"},
    "topic_title": {"topic title", "topic", "topic_title", "title"},
}


def _workbook_bytes(frames: Dict[str, pd.DataFrame]) -> bytes:
    buffer = BytesIO()
    with pd.ExcelWriter(buffer, engine="openpyxl") as writer:
        for sheet, df in frames.items():
            df.to_excel(writer, sheet_name=sheet, index=False)
    return buffer.getvalue()


def _no_data(columns: List[str]) -> pd.DataFrame:
    row = {c: "" for c in columns}
    row[columns[0]] = "No data"
    return pd.DataFrame([row], columns=columns)


def recommendation_to_excel(rec: Recommendation) -> bytes:
    """Render a recommendation as an .xlsx workbook (assignments + unallocated sheets)."""
    ids = {a.student_id for a in rec.assignments} | {a.lecturer_id for a in rec.assignments} | set(rec.unallocated)
    people = User.objects.in_bulk(ids)

    def code(pk):
        user = people.get(pk)
        return (user.code or user.username) if user else pk

    def name(pk):
        user = people.get(pk)
        return user.get_full_name() if user else ""

    rows = [{
        "Student Code": code(a.student_id),
        "Student Name": name(a.student_id),
        "Lecturer Code": code(a.lecturer_id),
        "Lecturer Name": name(a.lecturer_id),
        "Topic Title": a.topic_title,
        "Source": a.source,
        "Priority": a.priority if a.priority is not None else "",
    } for a in rec.assignments]
    assignments = pd.DataFrame(rows, columns=RECOMMENDATION_COLUMNS) if rows else _no_data(RECOMMENDATION_COLUMNS)

    unallocated_rows = [{"Student Code": code(pk), "Student Name": name(pk)} for pk in rec.unallocated]
    unallocated = (pd.DataFrame(unallocated_rows, columns=["Student Code", "Student Name"])
                   if unallocated_rows else _no_data(["Student Code", "Student Name"]))

    summary = pd.DataFrame([rec.summary()])
    return _workbook_bytes({"Recommendations": assignments, "Unallocated": unallocated, "Summary": summary})


def allocations_to_excel(allocations: Iterable) -> bytes:
    rows = [{
        "Student Code": a.student.code or a.student.username,
        "Student Name": a.student.get_full_name(),
        "Lecturer Code": a.lecturer.code or a.lecturer.username,
        "Lecturer Name": a.lecturer.get_full_name(),
        "Topic Title": a.topic_title,
        "Status": a.status,
        "Allocated At": a.allocated_at.strftime("%Y-%m-%d %H:%M"),
    } for a in allocations]
    df = pd.DataFrame(rows, columns=ALLOCATION_COLUMNS) if rows else _no_data(ALLOCATION_COLUMNS)
    return _workbook_bytes({"Allocations": df})


def _map_headers(df: pd.DataFrame) -> Dict[str, str]:
    mapping: Dict[str, str] = {}
    for column in df.columns:
        lowered = str(column).strip().lower()
        for want, synonyms in UPLOAD_HEADERS.items():
            if want not in mapping and lowered in synonyms:
                mapping[want] = column
    return mapping


def read_allocation_rows(file_like) -> List[dict]:
    """
    Parse an uploaded sheet of student/lecturer pairs into rows accepted by
    ``bulk_create_allocations``. Students and lecturers are matched by code
    or username. Raises ValueError on a malformed sheet.
    """
    df = pd.read_excel(file_like)
    mapping = _map_headers(df)
    missing = [c for c in ("student", "lecturer") if c not in mapping]
    if missing:
        raise ValueError(f"Spreadsheet is missing required columns: {', '.join(missing)}")

    def key(value) -> str:
        return "" if pd.isna(value) else str(value).strip()

    pairs = []
    for _, row in df.iterrows():
        student_key = key(row[mapping["student"]])
        lecturer_key = key(row[mapping["lecturer"]])
        if not student_key or not lecturer_key:
            continue
        topic = key(row[mapping["topic_title"]]) if "topic_title" in mapping else ""
        pairs.append((student_key, lecturer_key, topic))

    wanted = {p[0] for p in pairs} | {p[1] for p in pairs}
    lookup = {}
    for user in User.objects.filter(code__in=wanted):
        lookup[user.code] = user.pk
    for user in User.objects.filter(username__in=wanted):
        lookup.setdefault(user.username, user.pk)

    unknown = sorted(k for k in wanted if k not in lookup)
    if unknown:
        raise ValueError(f"Unknown students or lecturers: {', '.join(unknown)}")

    return [
        {"student_id": lookup[s], "lecturer_id": lookup[l], "topic_title": topic}
        for s, l, topic in pairs
    ]
