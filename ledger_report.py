# ledger_report.py
from typing import Dict, Any, List

import pandas as pd
import streamlit as st

from ledger import FINAL_FAIL, FINAL_NA, FINAL_PASS, cell_remarks, compute_totals, student_label, summarize
from ledger_export import (
    display_dataframe,
    export_csv,
    export_excel,
    export_practical_csv,
    ledger_dataframe,
    ledger_file_name,
    practical_dataframe,
    practical_file_name,
)


def render_ledger_report(
    *,
    columns: List[Dict[str, Any]],
    rows: List[Dict[str, Any]],
    selection_label: str,
    attempt_no: Any,
    batch_id: str,
    heading: str = "",
):
    """
    Streamlit UI for the exam ledger:
    - summary cards (students, columns, pass / fail / NA)
    - student x course table with counted / total / max / final
    - cell remarks, failed students
    - CSV + Excel export
    """
    totals = compute_totals(columns, rows)
    summary = summarize(totals)

    st.subheader(f"📒 Exam Ledger — {heading or selection_label}")
    st.caption("“A” = Absent; “–” = Not Assigned.")

    c1, c2, c3, c4, c5 = st.columns(5)
    c1.metric("Students", len(rows))
    c2.metric("Courses", len(columns))
    c3.metric("Pass", summary[FINAL_PASS])
    c4.metric("Fail", summary[FINAL_FAIL])
    c5.metric("NA", summary[FINAL_NA])

    view = display_dataframe(rows, columns, totals)
    st.dataframe(view, use_container_width=True, hide_index=True)

    remarks = cell_remarks(rows, columns)
    if remarks:
        with st.expander(f"📝 Remarks ({len(remarks)})", expanded=False):
            st.dataframe(pd.DataFrame(remarks), use_container_width=True, hide_index=True)

    df = ledger_dataframe(rows, columns, totals)

    failed = df[df["Final"] == FINAL_FAIL]
    if not failed.empty:
        with st.expander(f"❌ Failed Students ({len(failed)})", expanded=False):
            st.write(", ".join(failed["Student"].tolist()))

    # --- Export ---
    st.markdown("### ⬇ Download Ledger")
    col_csv, col_xlsx = st.columns(2)

    with col_csv:
        st.download_button(
            "Export CSV",
            data=export_csv(rows, columns, totals, selection_label).encode("utf-8"),
            file_name=ledger_file_name(selection_label, attempt_no, batch_id),
            mime="text/csv",
            key="ledger_csv",
        )

    with col_xlsx:
        st.download_button(
            "Export Excel",
            data=export_excel(df, sheet_name="Ledger"),
            file_name=ledger_file_name(selection_label, attempt_no, batch_id).replace(".csv", ".xlsx"),
            mime="application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
            key="ledger_xlsx",
        )


def render_practical_report(*, groups: List[Dict[str, Any]], batch_id: str):
    st.subheader("🧪 Practical Results")

    if not groups:
        st.info("No practical records for this scope.")
        return

    for grp in groups:
        title = " ".join(x for x in (grp.get("course_code"), grp.get("course_name")) if x) or grp["ci_id"]
        teacher = student_label(grp.get("teacher"))
        if teacher:
            title = f"{title} — {teacher}"
        with st.expander(f"{title} ({len(grp['records'])})", expanded=False):
            if not grp["records"]:
                st.info("No records.")
                continue

            st.dataframe(practical_dataframe(grp), use_container_width=True, hide_index=True)
            st.download_button(
                "Export CSV",
                data=export_practical_csv(grp).encode("utf-8"),
                file_name=practical_file_name(grp, batch_id),
                mime="text/csv",
                key=f"practical_csv_{grp['ci_id']}",
            )
