# pane_context/diagnostics.py
from __future__ import annotations

from typing import Any, Dict, List, Mapping, Sequence

import pandas as pd

from .scoring import STAGES


def stage_table(stages: Sequence[Mapping[str, Any]]) -> pd.DataFrame:
    """
    Ranked stage breakdown, one row per pane (index = pane id).

    ``stages`` is the ``debug["stages"]`` list of a describe response:
    [{"paneId", "total", "stageContributions"}, ...] in ranked order.
    """
    rows: List[Dict[str, Any]] = []
    for entry in stages:
        contrib = entry.get("stageContributions", {}) or {}
        row: Dict[str, Any] = {"paneId": entry.get("paneId", "")}
        for stage in STAGES:
            row[stage] = float(contrib.get(stage, 0.0))
        row["total"] = float(entry.get("total", 0.0))
        rows.append(row)
    df = pd.DataFrame(rows, columns=["paneId", *STAGES, "total"])
    return df.set_index("paneId")


def active_stages(df: pd.DataFrame) -> pd.DataFrame:
    """Drop stage columns that are zero for every pane (keeps ``total``)."""
    keep = [c for c in df.columns if c == "total" or (df[c] != 0).any()]
    return df[keep]
