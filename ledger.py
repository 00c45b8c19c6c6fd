# ledger.py
import math
from typing import Dict, Any, List, Optional

OUTCOME_SCORED = "scored"
OUTCOME_ABSENT = "ab"
OUTCOME_NOT_ASSIGNED = "not_assigned"

_OUTCOME_ALIASES = {
    "scored": OUTCOME_SCORED,
    "ab": OUTCOME_ABSENT,
    "absent": OUTCOME_ABSENT,
    "not_assigned": OUTCOME_NOT_ASSIGNED,
}

FINAL_PASS = "Pass"
FINAL_FAIL = "Fail"
FINAL_NA = "NA"

# headers around the course columns in the ledger table
LEDGER_FIXED_HEADERS = ("SN", "Student", "Counted", "Total", "Max", "Final")


# -----------------------------
# Numbers
# -----------------------------
def to_number(value: Any) -> Optional[float]:
    """Finite number or None. Numeric strings are parsed, everything else is None."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return value if math.isfinite(value) else None
    if isinstance(value, str):
        s = value.strip()
        if not s:
            return None
        try:
            n = float(s)
        except ValueError:
            return None
        if not math.isfinite(n):
            return None
        return int(n) if n.is_integer() and "." not in s and "e" not in s.lower() else n
    return None


def format_number(n: Any) -> str:
    if n is None:
        return ""
    if isinstance(n, float) and n.is_integer():
        return str(int(n))
    return str(n)


def _text(value: Any) -> str:
    if value is None:
        return ""
    return str(value).strip()


# -----------------------------
# Normalization (backend JSON -> strict dicts)
# -----------------------------
def normalize_outcome(value: Any) -> str:
    return _OUTCOME_ALIASES.get(_text(value).lower(), OUTCOME_NOT_ASSIGNED)


def normalize_column(raw: Dict[str, Any]) -> Optional[Dict[str, Any]]:
    if not isinstance(raw, dict):
        return None
    ci_id = _text(raw.get("ciId"))
    if not ci_id:
        return None
    return {
        "ci_id": ci_id,
        "course_code": _text(raw.get("courseCode")),
        "course_name": _text(raw.get("courseName")),
        "exam_title": _text(raw.get("examTitle")),
        "max_marks": to_number(raw.get("maxMarks")),
        "pass_marks": to_number(raw.get("passMarks")),
    }


def normalize_cell(raw: Any) -> Dict[str, Any]:
    if not isinstance(raw, dict):
        raw = {}
    return {
        "exam_outcome": normalize_outcome(raw.get("examOutcome")),
        "marks": to_number(raw.get("marks")),
        "max_marks": to_number(raw.get("maxMarks")),
        "pass_marks": to_number(raw.get("passMarks")),
        "remarks": _text(raw.get("remarks")),
    }


def normalize_student(raw: Any) -> Dict[str, str]:
    if not isinstance(raw, dict):
        raw = {}
    return {
        "_id": _text(raw.get("_id")),
        "name": _text(raw.get("name")),
        "username": _text(raw.get("username")),
        "email": _text(raw.get("email")),
    }


def normalize_row(raw: Any) -> Optional[Dict[str, Any]]:
    if not isinstance(raw, dict):
        return None
    student = normalize_student(raw.get("student"))
    if not student["_id"]:
        return None

    cells = {}
    raw_cells = raw.get("cells")
    if isinstance(raw_cells, dict):
        for ci_id, cell in raw_cells.items():
            cells[_text(ci_id)] = normalize_cell(cell)

    return {"student": student, "cells": cells}


def normalize_ledger(payload: Any) -> Dict[str, Any]:
    """
    Ledger response -> {"meta", "columns", "rows"}.

    Columns without a ciId and rows without a student id are dropped;
    a repeated ciId keeps the first column.
    """
    if not isinstance(payload, dict):
        payload = {}

    columns = []
    seen = set()
    for raw in payload.get("columns") or []:
        col = normalize_column(raw)
        if col is None or col["ci_id"] in seen:
            continue
        seen.add(col["ci_id"])
        columns.append(col)

    rows = []
    for raw in payload.get("rows") or []:
        row = normalize_row(raw)
        if row is not None:
            rows.append(row)

    meta = payload.get("meta")
    return {
        "meta": meta if isinstance(meta, dict) else {},
        "columns": columns,
        "rows": rows,
    }


def normalize_practical_groups(payload: Any) -> List[Dict[str, Any]]:
    if not isinstance(payload, dict):
        return []

    groups = []
    for g in payload.get("grouped") or []:
        if not isinstance(g, dict):
            continue
        course = g.get("course") if isinstance(g.get("course"), dict) else {}
        records = []
        for d in g.get("records") or []:
            if not isinstance(d, dict):
                continue
            records.append({
                "_id": _text(d.get("_id")),
                "student": normalize_student(d.get("student")),
                "p_first": to_number(d.get("pFirst")),
                "p_final": to_number(d.get("pFinal")),
                "p_assign": to_number(d.get("pAssign")),
                "p_attend": to_number(d.get("pAttend")),
                "practical_total": to_number(d.get("practicalTotal")),
                "pass_marks": to_number(d.get("passMarks")),
                "remarks": _text(d.get("remarks")),
                "verified_by": d.get("verifiedBy") or None,
                "locked_by_admin": bool(d.get("lockedByAdmin")),
            })
        groups.append({
            "ci_id": _text(g.get("ciId")),
            "course_code": _text(course.get("code")),
            "course_name": _text(course.get("name")),
            "teacher": normalize_student(g.get("teacher")),
            "records": records,
        })
    return groups


# -----------------------------
# Totals
# -----------------------------
def empty_totals() -> Dict[str, Any]:
    return {"counted_columns": 0, "sum_marks": 0, "sum_max": 0, "final_outcome": FINAL_NA}


def _effective(own: Any, fallback: Any) -> float:
    n = to_number(own)
    if n is not None:
        return n
    n = to_number(fallback)
    return n if n is not None else 0


def compute_totals(
    columns: List[Dict[str, Any]],
    rows: List[Dict[str, Any]],
) -> Dict[str, Dict[str, Any]]:
    """
    Per-student totals over the ledger columns.

    - not assigned (or missing) cells are skipped entirely
    - absent adds the column max, nothing to marks, and fails the student
    - scored adds marks and max; marks below pass marks fails the student
    - nothing counted => NA
    """
    out = {}
    for r in rows:
        cells = r.get("cells") or {}
        counted = 0
        sum_marks = 0
        sum_max = 0
        failed = False

        for col in columns:
            cell = cells.get(col["ci_id"])
            if cell is None:
                continue
            outcome = cell.get("exam_outcome")
            if outcome not in (OUTCOME_SCORED, OUTCOME_ABSENT):
                continue

            counted += 1
            max_marks = _effective(cell.get("max_marks"), col.get("max_marks"))
            pass_marks = _effective(cell.get("pass_marks"), col.get("pass_marks"))

            if outcome == OUTCOME_ABSENT:
                sum_max += max_marks
                failed = True
            else:
                marks = to_number(cell.get("marks"))
                sum_marks += marks if marks is not None else 0
                sum_max += max_marks
                if marks is not None and marks < pass_marks:
                    failed = True

        if counted == 0:
            final = FINAL_NA
        elif failed:
            final = FINAL_FAIL
        else:
            final = FINAL_PASS

        out[r["student"]["_id"]] = {
            "counted_columns": counted,
            "sum_marks": sum_marks,
            "sum_max": sum_max,
            "final_outcome": final,
        }
    return out


def summarize(totals: Dict[str, Dict[str, Any]]) -> Dict[str, int]:
    summary = {FINAL_PASS: 0, FINAL_FAIL: 0, FINAL_NA: 0}
    for t in totals.values():
        summary[t["final_outcome"]] = summary.get(t["final_outcome"], 0) + 1
    return summary


# -----------------------------
# Display helpers
# -----------------------------
def student_label(student: Optional[Dict[str, Any]]) -> str:
    student = student or {}
    for key in ("name", "username", "email", "_id"):
        value = _text(student.get(key))
        if value:
            return value
    return ""


def column_label(column: Dict[str, Any]) -> str:
    label = f"{column.get('course_code') or ''} {column.get('course_name') or ''}".strip()
    return label or column.get("exam_title") or column.get("ci_id") or ""


def column_labels(columns: List[Dict[str, Any]], reserved=LEDGER_FIXED_HEADERS) -> List[str]:
    """
    Header per column, unique across the table.

    A label that repeats (or clashes with a reserved header) gets its
    ci_id appended, then a running "#n" if that is still taken.
    """
    taken = {x.lower() for x in reserved}
    labels = []
    for col in columns:
        base = column_label(col)
        label = base
        if label.lower() in taken:
            label = f"{base} ({col['ci_id']})"
        n = 2
        while label.lower() in taken:
            label = f"{base} #{n}"
            n += 1
        taken.add(label.lower())
        labels.append(label)
    return labels


def cell_remarks(rows: List[Dict[str, Any]], columns: List[Dict[str, Any]]) -> List[Dict[str, str]]:
    """Non-empty cell remarks, in table order."""
    labels = column_labels(columns)
    out = []
    for r in rows:
        cells = r.get("cells") or {}
        for col, label in zip(columns, labels):
            cell = cells.get(col["ci_id"])
            if cell and cell.get("remarks"):
                out.append({"Student": student_label(r["student"]), "Course": label, "Remarks": cell["remarks"]})
    return out


def cell_display(cell: Optional[Dict[str, Any]], max_marks: Any = None) -> str:
    if cell is None or cell.get("exam_outcome") == OUTCOME_NOT_ASSIGNED:
        return "–"
    if cell.get("exam_outcome") == OUTCOME_ABSENT:
        return "A"
    marks = to_number(cell.get("marks"))
    if marks is None:
        return ""
    max_n = to_number(max_marks)
    if max_n is None:
        return format_number(marks)
    return f"{format_number(marks)} / {format_number(max_n)}"
