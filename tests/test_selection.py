from selection import (
    MODE_SLOT,
    MODE_TITLE,
    api_type,
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


def test_type_words():
    assert normalize_type("year") == "yearly"
    assert normalize_type("yearly") == "yearly"
    assert normalize_type("semester") == "semester"
    assert normalize_type(None) == "semester"
    assert api_type("yearly") == "year"
    assert api_type("semester") == "semester"
    assert level_word("year") == "Year"
    assert level_word(None) == "Semester"


def test_to_int():
    assert to_int("3") == 3
    assert to_int(" 4 ") == 4
    assert to_int(5.0) == 5
    assert to_int("") is None
    assert to_int(None) is None
    assert to_int("x") is None
    assert to_int(2.5) is None


def test_total_levels():
    assert total_levels({"type": "year"}) == 4
    assert total_levels({"type": "semester"}) == 8
    assert total_levels({"type": "semester", "totalSemestersOrYears": "6"}) == 6
    assert total_levels(None) == 8


def test_level_options_from_definitions():
    defs = [
        {"_id": "d2", "semesterNumber": 2, "name": "Second"},
        {"_id": "d1", "semesterNumber": 1},
        {"_id": "dx", "semesterNumber": 2, "name": "Dup"},
        {"_id": "bad"},
    ]
    opts = level_options(defs, "semester", 8, current=2)
    assert [(o["value"], o["label"]) for o in opts] == [(1, "Semester 1"), (2, "Second")]


def test_level_options_adds_current():
    defs = [{"_id": "y1", "yearNumber": 1}]
    opts = level_options(defs, "yearly", 4, current="3")
    assert opts[0] == {"value": 3, "label": "Year 3 (current)", "id": None}
    assert [o["value"] for o in opts] == [3, 1]


def test_level_options_fallback_to_total():
    opts = level_options([], "yearly", 4, current=None)
    assert [o["label"] for o in opts] == ["Year 1", "Year 2", "Year 3", "Year 4"]

    opts = level_options([], "semester", 2, current=5)
    assert [o["value"] for o in opts] == [5, 1, 2]


SESSIONS = [
    {"ciId": "a", "examTitle": "Midterm", "attemptNo": 2, "examSlot": 1},
    {"ciId": "b", "examTitle": " midterm ", "attemptNo": None, "examSlot": 1},
    {"ciId": "a", "examTitle": "Final", "attemptNo": 1, "examSlot": 2},
    {"ciId": "c", "examTitle": "", "attemptNo": 3, "examSlot": 3},
]


def test_title_options():
    sessions = [
        {"examTitle": "mock"},
        {"examTitle": "Final "},
        {"examTitle": "Final"},
        {"examTitle": None},
    ]
    assert title_options(sessions) == ["Final", "mock"]
    assert title_options([]) == []


def test_attempts_for_title():
    assert attempts_for_title(SESSIONS, "MIDTERM") == [1, 2]
    assert attempts_for_title(SESSIONS, "Final") == [1]
    assert attempts_for_title(SESSIONS, "") == []


def test_build_ledger_query_title_mode():
    params, err = build_ledger_query(
        batch_id="b1", ftype="yearly", level=2, attempt_no="1", mode=MODE_TITLE, exam_title=" Midterm ",
    )
    assert err is None
    assert params == {"batch": "b1", "type": "year", "level": "2", "attemptNo": "1", "examTitle": "Midterm"}


def test_build_ledger_query_slot_mode():
    params, err = build_ledger_query(
        batch_id="b1", ftype="semester", level="3", attempt_no=2, mode=MODE_SLOT, exam_slot="4",
    )
    assert err is None
    assert params == {"batch": "b1", "type": "semester", "level": "3", "attemptNo": "2", "examSlot": "4"}


def test_build_ledger_query_rejects_incomplete_selection():
    def query(**kw):
        base = dict(batch_id="b1", ftype="semester", level=1, attempt_no=1, mode=MODE_TITLE, exam_title="Mid")
        base.update(kw)
        return build_ledger_query(**base)

    assert query(attempt_no="0") == (None, "Please pick a valid Attempt (≥ 1).")
    assert query(attempt_no="") == (None, "Please pick a valid Attempt (≥ 1).")
    assert query(exam_title="  ") == (None, "Pick an Exam Title or switch to By Slot.")
    assert query(mode=MODE_SLOT, exam_slot="") == (
        None, "Enter a valid Exam Slot (≥ 1) or switch back to Title mode."
    )
    params, err = query(batch_id="")
    assert params is None and err


def test_selection_label():
    assert selection_label(MODE_TITLE, "Mid Term") == "Mid Term"
    assert selection_label(MODE_TITLE, "") == "exam"
    assert selection_label(MODE_SLOT, exam_slot="2") == "slot2"
    assert selection_label(MODE_SLOT, exam_slot="") == "slotX"
