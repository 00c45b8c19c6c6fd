# selection.py
from typing import Dict, Any, List, Optional, Tuple

from config import DEFAULT_SEMESTERS, DEFAULT_YEARS

MODE_TITLE = "title"
MODE_SLOT = "slot"


def normalize_type(t: Any) -> str:
    return "yearly" if t in ("year", "yearly") else "semester"


def api_type(t: Any) -> str:
    """Faculty type as the result endpoints expect it."""
    return "year" if normalize_type(t) == "yearly" else "semester"


def level_word(t: Any) -> str:
    return "Year" if normalize_type(t) == "yearly" else "Semester"


def to_int(v: Any) -> Optional[int]:
    if v is None or isinstance(v, bool):
        return None
    s = v.strip() if isinstance(v, str) else v
    if s == "":
        return None
    try:
        n = float(s)
    except (TypeError, ValueError):
        return None
    if not n.is_integer():
        return None
    return int(n)


def total_levels(faculty: Optional[Dict[str, Any]]) -> int:
    faculty = faculty or {}
    n = to_int(faculty.get("totalSemestersOrYears"))
    if n:
        return n
    return DEFAULT_YEARS if normalize_type(faculty.get("type")) == "yearly" else DEFAULT_SEMESTERS


def level_options(
    defs: List[Dict[str, Any]],
    ftype: Any,
    total: int,
    current: Any = None,
) -> List[Dict[str, Any]]:
    """
    Level choices for the selected faculty.

    Uses the semester/year definitions when there are any, otherwise 1..total.
    The batch's current level is always offered.
    """
    word = level_word(ftype)
    yearly = normalize_type(ftype) == "yearly"

    items = []
    for d in defs or []:
        n = to_int(d.get("yearNumber") if yearly else d.get("semesterNumber"))
        if n is None:
            continue
        items.append({"value": n, "label": d.get("name") or f"{word} {n}", "id": d.get("_id")})

    if items:
        seen = set()
        options = []
        for o in sorted(items, key=lambda x: x["value"]):
            if o["value"] in seen:
                continue
            seen.add(o["value"])
            options.append(o)
    else:
        options = [{"value": i, "label": f"{word} {i}", "id": None} for i in range(1, total + 1)]

    cur = to_int(current)
    if cur is not None and not any(o["value"] == cur for o in options):
        options.insert(0, {"value": cur, "label": f"{word} {cur} (current)", "id": None})
    return options


def title_options(sessions: List[Dict[str, Any]]) -> List[str]:
    titles = {(s.get("examTitle") or "").strip() for s in sessions}
    titles.discard("")
    return sorted(titles, key=str.lower)


def attempts_for_title(sessions: List[Dict[str, Any]], title: str) -> List[int]:
    if not title:
        return []
    wanted = title.strip().lower()
    attempts = set()
    for s in sessions:
        if (s.get("examTitle") or "").strip().lower() != wanted:
            continue
        # missing attempt counts as the first one
        attempt = s.get("attemptNo")
        n = to_int(1 if attempt is None else attempt)
        if n is not None:
            attempts.add(n)
    return sorted(attempts)


def build_ledger_query(
    *,
    batch_id: str,
    ftype: Any,
    level: Any,
    attempt_no: Any,
    mode: str,
    exam_title: str = "",
    exam_slot: Any = None,
) -> Tuple[Optional[Dict[str, str]], Optional[str]]:
    """Query params for the ledger endpoint, or (None, message) if the selection is incomplete."""
    if not batch_id or to_int(level) is None:
        return None, "Select a batch and a level first."

    att = to_int(attempt_no)
    if att is None or att < 1:
        return None, "Please pick a valid Attempt (≥ 1)."

    params = {
        "batch": str(batch_id),
        "type": api_type(ftype),
        "level": str(to_int(level)),
        "attemptNo": str(att),
    }

    if mode == MODE_TITLE:
        if not (exam_title or "").strip():
            return None, "Pick an Exam Title or switch to By Slot."
        params["examTitle"] = exam_title.strip()
    else:
        slot = to_int(exam_slot)
        if slot is None or slot < 1:
            return None, "Enter a valid Exam Slot (≥ 1) or switch back to Title mode."
        params["examSlot"] = str(slot)

    return params, None


def selection_label(mode: str, exam_title: str = "", exam_slot: Any = None) -> str:
    if mode == MODE_TITLE:
        return (exam_title or "").strip() or "exam"
    slot = to_int(exam_slot)
    return f"slot{slot if slot is not None else 'X'}"
