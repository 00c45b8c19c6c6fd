# api_client.py
from typing import Dict, Any, List, Optional, Tuple

import requests

from config import (
    ADMIN_TOKEN,
    BACKEND_URL,
    BATCH_BASE,
    FACULTY_BASE,
    LEVEL_DEFS_LIMIT,
    REQUEST_TIMEOUT,
    RESULT_BASE,
    SEM_BASE,
)
from ledger import normalize_ledger, normalize_practical_groups
from selection import api_type


# ------------------------------------------------------------------
# HTTP
# ------------------------------------------------------------------
def _headers(token: Optional[str] = None) -> Dict[str, str]:
    token = token if token is not None else ADMIN_TOKEN
    return {"Authorization": f"Bearer {token}"} if token else {}


def _error_message(r: requests.Response) -> str:
    text = (r.text or "").strip()
    msg = text or f"Request failed ({r.status_code})"
    try:
        j = r.json()
        if isinstance(j, dict):
            msg = j.get("error") or j.get("message") or msg
    except ValueError:
        pass
    if r.status_code in (401, 403):
        msg = f"{msg} — are you logged in as admin? (Missing/expired token)"
    return msg


def _get(path: str, params: Optional[Dict[str, Any]] = None) -> Tuple[Optional[Dict[str, Any]], Optional[str]]:
    """GET BACKEND_URL + path. Returns (json, None) or (None, error_message)."""
    url = f"{BACKEND_URL}{path}"
    try:
        r = requests.get(url, params=params, headers=_headers(), timeout=REQUEST_TIMEOUT)
    except requests.RequestException as e:
        print("API request error:", url, e)
        return None, f"Could not reach the server: {e}"

    if r.status_code != 200:
        return None, _error_message(r)

    try:
        data = r.json()
    except ValueError as e:
        print("API response error:", url, e)
        return None, "Server response is not valid JSON."

    if not isinstance(data, dict):
        return None, "Unexpected server response."
    return data, None


def _list_of(data: Optional[Dict[str, Any]], key: str) -> List[Dict[str, Any]]:
    items = (data or {}).get(key)
    if not isinstance(items, list):
        return []
    return [x for x in items if isinstance(x, dict)]


# ------------------------------------------------------------------
# Scope
# ------------------------------------------------------------------
def get_faculties() -> List[Dict[str, Any]]:
    data, err = _get(f"{FACULTY_BASE}/facultycode")
    if err:
        print("API get_faculties error:", err)
    return _list_of(data, "faculties")


def get_batches(faculty_id: str) -> List[Dict[str, Any]]:
    if not faculty_id:
        return []
    data, err = _get(f"{BATCH_BASE}/batchcode", {"faculty": faculty_id})
    if err:
        print("API get_batches error:", err)
    return _list_of(data, "batches")


def get_level_definitions(faculty_id: str) -> List[Dict[str, Any]]:
    if not faculty_id:
        return []
    data, err = _get(f"{SEM_BASE}semesterOrYear", {"faculty": faculty_id, "limit": LEVEL_DEFS_LIMIT})
    if err:
        print("API get_level_definitions error:", err)
    return _list_of(data, "semesters")


def get_scope_course_instances(*, batch_id: str, ftype: Any, level: Any) -> List[Dict[str, Any]]:
    params = {"batch": str(batch_id), "type": api_type(ftype), "level": str(level)}
    data, err = _get(f"{RESULT_BASE}/admin/by-scope", params)
    if err:
        print("API get_scope_course_instances error:", err)
    return _list_of(data, "courseInstances")


def get_exam_sessions(ci_ids: List[str]) -> List[Dict[str, Any]]:
    """Exam sessions (slot / attempt / title) of every course instance in scope."""
    sessions = []
    for ci_id in ci_ids:
        data, err = _get(f"{RESULT_BASE}/admin/exam-sessions/{ci_id}")
        if err:
            print("API get_exam_sessions error:", ci_id, err)
            continue
        for s in _list_of(data, "sessions"):
            sessions.append({
                "ciId": ci_id,
                "examSlot": s.get("examSlot"),
                "attemptNo": s.get("attemptNo"),
                "examTitle": s.get("examTitle") or "",
            })
    return sessions


# ------------------------------------------------------------------
# Ledger / practicals
# ------------------------------------------------------------------
def get_ledger(params: Dict[str, str]) -> Dict[str, Any]:
    data, err = _get(f"{RESULT_BASE}/admin/ledger", params)
    if err:
        return {"error": err}
    if not data.get("ok"):
        return {"error": data.get("error") or "Failed to load ledger"}

    ledger = normalize_ledger(data)
    ledger["ok"] = True
    return ledger


def get_practicals(*, batch_id: str, ftype: Any, level: Any) -> Dict[str, Any]:
    params = {
        "batch": str(batch_id),
        "type": api_type(ftype),
        "level": str(level),
        "kind": "practical",
    }
    data, err = _get(f"{RESULT_BASE}/admin/by-scope", params)
    if err:
        return {"error": f"Practical fetch failed: {err}"}
    return {"ok": True, "groups": normalize_practical_groups(data)}
