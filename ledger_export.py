# ledger_export.py
import re
from io import BytesIO
from typing import Dict, Any, List

import pandas as pd

from ledger import (
    OUTCOME_ABSENT,
    OUTCOME_NOT_ASSIGNED,
    FINAL_FAIL,
    cell_display,
    column_labels,
    empty_totals,
    format_number,
    student_label,
    to_number,
)

BOM = "\ufeff"


def _plain(text: Any) -> str:
    # no quoting in these files: separators inside free text become spaces
    return re.sub(r"[,\r\n]", " ", str(text or ""))


def _slug(text: Any) -> str:
    return re.sub(r"\s+", "_", str(text or "").strip())


def _csv_cell(cell: Any) -> str:
    if cell is None or cell.get("exam_outcome") == OUTCOME_NOT_ASSIGNED:
        return "-"
    if cell.get("exam_outcome") == OUTCOME_ABSENT:
        return "A"
    return format_number(to_number(cell.get("marks")))


# -----------------------------
# Exam ledger
# -----------------------------
def export_csv(
    rows: List[Dict[str, Any]],
    columns: List[Dict[str, Any]],
    totals: Dict[str, Dict[str, Any]],
    selection_label: str = "",
) -> str:
    """
    Ledger as CSV text (BOM prefixed, "\\n" line endings).

    "A" = absent, "-" = not assigned / no cell. selection_label names the
    export, see ledger_file_name().
    """
    head = ["SN", "Student"] + [_plain(x) for x in column_labels(columns)] + ["Counted", "Total", "Max", "Final"]
    lines = [",".join(head)]

    for i, r in enumerate(rows, start=1):
        t = totals.get(r["student"]["_id"]) or empty_totals()
        cells = r.get("cells") or {}
        line = [str(i), _plain(student_label(r["student"]))]
        line += [_csv_cell(cells.get(c["ci_id"])) for c in columns]
        line += [
            str(t["counted_columns"]),
            format_number(t["sum_marks"]),
            format_number(t["sum_max"]),
            t["final_outcome"],
        ]
        lines.append(",".join(line))

    return BOM + "\n".join(lines)


def ledger_file_name(selection_label: str, attempt_no: Any, batch_id: Any) -> str:
    return f"ledger_{_slug(selection_label)}_attempt{attempt_no}_batch_{batch_id}.csv"


def _frame(rows, columns, totals, render) -> pd.DataFrame:
    head = ["SN", "Student"] + column_labels(columns) + ["Counted", "Total", "Max", "Final"]

    data = []
    for i, r in enumerate(rows, start=1):
        t = totals.get(r["student"]["_id"]) or empty_totals()
        cells = r.get("cells") or {}
        line = [i, student_label(r["student"])]
        line += [render(cells.get(c["ci_id"]), c) for c in columns]
        line += [t["counted_columns"], t["sum_marks"], t["sum_max"], t["final_outcome"]]
        data.append(line)

    return pd.DataFrame(data, columns=head)


def ledger_dataframe(
    rows: List[Dict[str, Any]],
    columns: List[Dict[str, Any]],
    totals: Dict[str, Dict[str, Any]],
) -> pd.DataFrame:
    """Same cells as the CSV export (used for Excel)."""
    return _frame(rows, columns, totals, lambda cell, col: _csv_cell(cell))


def display_dataframe(
    rows: List[Dict[str, Any]],
    columns: List[Dict[str, Any]],
    totals: Dict[str, Dict[str, Any]],
) -> pd.DataFrame:
    """On-screen ledger: "A", "–" and "marks / max" cells."""
    def render(cell, col):
        if cell is None:
            return cell_display(None)
        max_marks = cell.get("max_marks")
        if max_marks is None:
            max_marks = col.get("max_marks")
        return cell_display(cell, max_marks)

    return _frame(rows, columns, totals, render)


def export_excel(df: pd.DataFrame, sheet_name: str = "Ledger") -> bytes:
    buffer = BytesIO()
    with pd.ExcelWriter(buffer, engine="xlsxwriter") as writer:
        df.to_excel(writer, index=False, sheet_name=sheet_name)

        if "Final" in df.columns:
            workbook = writer.book
            worksheet = writer.sheets[sheet_name]
            red = workbook.add_format({"bg_color": "#FFC7CE"})

            for i, final in enumerate(df["Final"], start=1):
                if final == FINAL_FAIL:
                    worksheet.set_row(i, None, red)

    return buffer.getvalue()


# -----------------------------
# Practical groups
# -----------------------------
PRACTICAL_HEAD = ["SN", "Student", "First", "Final", "Assign", "Attend", "Total", "Pass", "Verified", "Locked", "Remarks"]


def export_practical_csv(group: Dict[str, Any]) -> str:
    lines = [",".join(PRACTICAL_HEAD)]
    for i, r in enumerate(group.get("records") or [], start=1):
        lines.append(",".join([
            str(i),
            _plain(student_label(r.get("student"))),
            format_number(r.get("p_first")),
            format_number(r.get("p_final")),
            format_number(r.get("p_assign")),
            format_number(r.get("p_attend")),
            format_number(r.get("practical_total")),
            format_number(r.get("pass_marks")),
            "Yes" if r.get("verified_by") else "No",
            "Yes" if r.get("locked_by_admin") else "No",
            _plain(r.get("remarks")),
        ]))
    return BOM + "\n".join(lines)


def practical_file_name(group: Dict[str, Any], batch_id: Any) -> str:
    name = group.get("course_code") or group.get("course_name") or group.get("ci_id")
    return f"practical_{_slug(name)}_batch_{batch_id}.csv"


def practical_dataframe(group: Dict[str, Any]) -> pd.DataFrame:
    data = []
    for i, r in enumerate(group.get("records") or [], start=1):
        data.append({
            "SN": i,
            "Student": student_label(r.get("student")),
            "First": r.get("p_first"),
            "Final": r.get("p_final"),
            "Assign": r.get("p_assign"),
            "Attend": r.get("p_attend"),
            "Total": r.get("practical_total"),
            "Pass": r.get("pass_marks"),
            "Verified": "Yes" if r.get("verified_by") else "No",
            "Locked": "Yes" if r.get("locked_by_admin") else "No",
            "Remarks": r.get("remarks") or "",
        })
    return pd.DataFrame(data, columns=PRACTICAL_HEAD)
