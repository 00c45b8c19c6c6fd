# app.py
import streamlit as st

from api_client import (
    get_batches,
    get_exam_sessions,
    get_faculties,
    get_ledger,
    get_level_definitions,
    get_practicals,
    get_scope_course_instances,
)
from ledger_report import render_ledger_report, render_practical_report
from selection import (
    MODE_SLOT,
    MODE_TITLE,
    attempts_for_title,
    build_ledger_query,
    level_options,
    level_word,
    normalize_type,
    selection_label,
    title_options,
    to_int,
    total_levels,
)

st.set_page_config(page_title="Admin • Exam Ledger", layout="wide")


# ------------------------------------------------------------------
# Initial setup
# ------------------------------------------------------------------
_DEFAULTS = {
    "sel_faculty": "",
    "sel_batch": "",
    "sel_level": None,
    "sel_mode": MODE_TITLE,
    "sel_exam_title": "",
    "sel_attempt": "1",
    "sel_exam_slot": "",
    "show_practical": True,
    # {scope_key: [session, ...]}
    "scope_sessions": {},
    "ledger": None,
    "ledger_error": "",
    "practicals": None,
}

for key, value in _DEFAULTS.items():
    if key not in st.session_state:
        st.session_state[key] = value


def _reset_below_faculty():
    st.session_state.sel_batch = ""
    st.session_state.sel_level = None
    _reset_exam()


def _reset_below_batch():
    st.session_state.sel_level = None
    _reset_exam()


def _reset_exam():
    st.session_state.sel_exam_title = ""
    st.session_state.sel_attempt = "1"
    st.session_state.sel_exam_slot = ""
    st.session_state.sel_mode = MODE_TITLE
    st.session_state.ledger = None
    st.session_state.ledger_error = ""
    st.session_state.practicals = None


def _load_sessions(batch_id: str, ftype: str, level: int):
    scope_key = f"{batch_id}:{ftype}:{level}"
    cache = st.session_state.scope_sessions
    if scope_key not in cache:
        cis = get_scope_course_instances(batch_id=batch_id, ftype=ftype, level=level)
        ci_ids = [c["_id"] for c in cis if c.get("_id")]
        cache[scope_key] = get_exam_sessions(ci_ids) if ci_ids else []
    return cache[scope_key]


# ------------------------------------------------------------------
# Selection (sidebar)
# ------------------------------------------------------------------
def show_selection():
    st.sidebar.header("Scope")

    faculties = get_faculties()
    if not faculties:
        st.sidebar.info("No faculties found.")
        return None

    fac_ids = [f["_id"] for f in faculties]
    if st.session_state.sel_faculty not in fac_ids:
        st.session_state.sel_faculty = fac_ids[0]

    fac_by_id = {f["_id"]: f for f in faculties}
    faculty_id = st.sidebar.selectbox(
        "Faculty",
        fac_ids,
        key="sel_faculty",
        format_func=lambda fid: " • ".join(
            x for x in (
                fac_by_id[fid].get("name", fid),
                fac_by_id[fid].get("code"),
                "Year-based" if normalize_type(fac_by_id[fid].get("type")) == "yearly" else "Semester-based",
            ) if x
        ),
        on_change=_reset_below_faculty,
    )
    faculty = fac_by_id[faculty_id]
    ftype = normalize_type(faculty.get("type"))
    word = level_word(ftype)

    batches = get_batches(faculty_id)
    if not batches:
        st.sidebar.info("No batches for this faculty.")
        return None

    batch_ids = [b["_id"] for b in batches]
    if st.session_state.sel_batch not in batch_ids:
        st.session_state.sel_batch = batch_ids[0]

    batch_by_id = {b["_id"]: b for b in batches}
    batch_id = st.sidebar.selectbox(
        "Batch",
        batch_ids,
        key="sel_batch",
        format_func=lambda bid: batch_by_id[bid].get("name") or bid,
        on_change=_reset_below_batch,
    )
    current = to_int(batch_by_id[batch_id].get("currentSemesterOrYear"))
    st.sidebar.caption(f"Current {word.lower()}: {current if current is not None else '—'}")

    options = level_options(get_level_definitions(faculty_id), ftype, total_levels(faculty), current)
    values = [o["value"] for o in options]
    if st.session_state.sel_level not in values:
        st.session_state.sel_level = current if current in values else values[0]

    labels = {o["value"]: o["label"] for o in options}
    level = st.sidebar.selectbox(
        word,
        values,
        key="sel_level",
        format_func=lambda v: labels[v],
        on_change=_reset_exam,
    )

    sessions = _load_sessions(batch_id, ftype, level)
    titles = title_options(sessions)

    # no titles => slot mode only
    if not titles:
        st.session_state.sel_mode = MODE_SLOT

    mode = st.sidebar.radio(
        "Search by",
        [MODE_TITLE, MODE_SLOT],
        key="sel_mode",
        format_func=lambda m: "By Title" if m == MODE_TITLE else "By Slot",
        horizontal=True,
        disabled=not titles,
    )

    if mode == MODE_TITLE:
        if st.session_state.sel_exam_title not in titles:
            st.session_state.sel_exam_title = titles[0]
        exam_title = st.sidebar.selectbox("Exam Title", titles, key="sel_exam_title")

        attempts = attempts_for_title(sessions, exam_title)
        if attempts:
            if to_int(st.session_state.sel_attempt) not in attempts:
                st.session_state.sel_attempt = str(attempts[0])
            st.sidebar.selectbox("Attempt", [str(a) for a in attempts], key="sel_attempt")
        else:
            st.session_state.sel_attempt = "1"
            st.sidebar.caption("Attempt: 1")
    else:
        st.sidebar.text_input("Exam Slot", key="sel_exam_slot")
        st.sidebar.text_input("Attempt", key="sel_attempt")

    st.sidebar.checkbox("Show practical results", key="show_practical")

    return {
        "faculty": faculty,
        "ftype": ftype,
        "word": word,
        "batch_id": batch_id,
        "batch_name": batch_by_id[batch_id].get("name") or batch_id,
        "level": level,
        "mode": mode,
        "exam_title": st.session_state.sel_exam_title,
        "exam_slot": st.session_state.sel_exam_slot,
        "attempt_no": st.session_state.sel_attempt,
    }


# ------------------------------------------------------------------
# Loading
# ------------------------------------------------------------------
def load_ledger(sel):
    params, err = build_ledger_query(
        batch_id=sel["batch_id"],
        ftype=sel["ftype"],
        level=sel["level"],
        attempt_no=sel["attempt_no"],
        mode=sel["mode"],
        exam_title=sel["exam_title"],
        exam_slot=sel["exam_slot"],
    )
    if err:
        st.session_state.ledger = None
        st.session_state.ledger_error = err
        return

    with st.spinner("Loading ledger…"):
        res = get_ledger(params)

    if res.get("error"):
        print("Ledger load failed:", res["error"])
        st.session_state.ledger = None
        st.session_state.ledger_error = res["error"]
        return

    st.session_state.ledger = res
    st.session_state.ledger_error = ""


def load_practicals(sel):
    with st.spinner("Loading practical results…"):
        res = get_practicals(batch_id=sel["batch_id"], ftype=sel["ftype"], level=sel["level"])
    if res.get("error"):
        print("Practical load failed:", res["error"])
        st.session_state.practicals = []
    else:
        st.session_state.practicals = res["groups"]


# ------------------------------------------------------------------
# Page
# ------------------------------------------------------------------
def main():
    st.title("Admin • Exam Ledger")
    st.caption(
        "Pick faculty, batch and level, then an exam title and attempt. "
        "With By Slot you enter the slot directly."
    )

    sel = show_selection()
    if sel is None:
        st.info("Select faculty and batch to begin.")
        return

    label = selection_label(sel["mode"], sel["exam_title"], sel["exam_slot"])
    scope_txt = f"{sel['batch_name']} • {sel['word']} {sel['level']}"
    st.markdown(f"**{scope_txt}** • {label} • Attempt {sel['attempt_no'] or '—'}")

    if st.button("🎓 Fetch exam ledger", type="primary"):
        load_ledger(sel)
        if st.session_state.show_practical:
            load_practicals(sel)

    if st.session_state.ledger_error:
        st.error(st.session_state.ledger_error)
    elif st.session_state.ledger is None:
        st.info("Use “Fetch exam ledger” to load results for the selection.")
    elif not st.session_state.ledger["rows"]:
        st.info("No ledger rows for this selection.")
    else:
        ledger = st.session_state.ledger
        # heading from what the server actually returned
        meta = ledger["meta"]
        shown = meta.get("examTitle") or (f"Slot {meta['examSlot']}" if meta.get("examSlot") else label)
        render_ledger_report(
            columns=ledger["columns"],
            rows=ledger["rows"],
            selection_label=label,
            attempt_no=sel["attempt_no"],
            batch_id=sel["batch_id"],
            heading=f"{shown} • Attempt {meta.get('attemptNo') or sel['attempt_no']}",
        )

    if st.session_state.show_practical and st.session_state.practicals is not None:
        st.markdown("---")
        render_practical_report(groups=st.session_state.practicals, batch_id=sel["batch_id"])


if __name__ == "__main__":
    main()
