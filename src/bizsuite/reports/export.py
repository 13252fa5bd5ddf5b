from __future__ import annotations

import io
from typing import Sequence

import pandas as pd

XLSX_MIMETYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"


def to_excel(rows: Sequence[dict], *, sheet_name: str = "Report") -> bytes:
    """Render report rows into an in-memory .xlsx workbook."""
    df = pd.DataFrame(list(rows))

    output = io.BytesIO()
    with pd.ExcelWriter(output, engine="openpyxl") as writer:
        df.to_excel(writer, index=False, sheet_name=sheet_name)

    return output.getvalue()
