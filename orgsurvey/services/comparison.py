"""Current vs previous survey selection for the dashboard charts."""
from collections import namedtuple
from datetime import date

from .aggregation import (
    category_averages,
    compute_overall_score,
    round_half_up,
    row_end_date,
    row_start_date,
    row_survey_id,
)
from .categories import CATEGORY_IDS, category_label

SurveyGroup = namedtuple("SurveyGroup", ["survey_id", "rows", "start_date", "end_date", "category_averages", "overall"])
Comparison = namedtuple("Comparison", ["current", "previous"])


def group_by_survey(rows):
    """Group summary rows by survey id, keeping the max end date and min start date."""
    grouped = {}
    for row in rows or []:
        sid = row_survey_id(row)
        if sid is None:
            continue
        entry = grouped.setdefault(sid, {"rows": [], "start": None, "end": None})
        entry["rows"].append(row)
        end = row_end_date(row)
        if end and (entry["end"] is None or end > entry["end"]):
            entry["end"] = end
        start = row_start_date(row)
        if start and (entry["start"] is None or start < entry["start"]):
            entry["start"] = start

    groups = []
    for sid, entry in grouped.items():
        groups.append(SurveyGroup(
            survey_id=sid,
            rows=entry["rows"],
            start_date=entry["start"],
            end_date=entry["end"],
            category_averages=category_averages(entry["rows"]),
            overall=compute_overall_score(entry["rows"]),
        ))
    # 終了日の新しい順。終了日なしは最後
    groups.sort(key=lambda g: g.end_date or date.min, reverse=True)
    return groups


def select_current_and_previous(rows):
    """Latest survey by end date (active or not) and the one before it."""
    groups = group_by_survey(rows)
    if not groups:
        return Comparison(None, None)
    return Comparison(groups[0], groups[1] if len(groups) > 1 else None)


def select_growth_current_and_previous(surveys, survey_ids_with_data):
    """Growth surveys that have responses, latest end date first.

    ``previous`` is the next survey in that data-bearing list, which can skip
    surveys that were created but never answered.
    """
    with_data = set(survey_ids_with_data or [])
    candidates = [s for s in surveys if s.survey_type == "growth" and s.id in with_data]
    candidates.sort(key=lambda s: (s.end_date or date.min, s.id), reverse=True)
    if not candidates:
        return Comparison(None, None)
    return Comparison(candidates[0], candidates[1] if len(candidates) > 1 else None)


def diff_categories(current, previous):
    """Per-category chart series for two survey groups (previous may be None)."""
    if current is None:
        return []
    cur = current.category_averages or [None] * len(CATEGORY_IDS)
    prev = previous.category_averages if previous is not None and previous.category_averages else None
    out = []
    for i, cid in enumerate(CATEGORY_IDS):
        c = cur[i]
        p = prev[i] if prev is not None else None
        out.append({
            "categoryId": cid,
            "label": category_label(cid),
            "current": round_half_up(c, 2),
            "previous": round_half_up(p, 2),
            "diff": round_half_up(c - p, 2) if c is not None and p is not None else None,
        })
    return out


def comparison_payload(comparison):
    def describe(group):
        if group is None:
            return None
        return {
            "surveyId": group.survey_id,
            "startDate": group.start_date.isoformat() if group.start_date else None,
            "endDate": group.end_date.isoformat() if group.end_date else None,
            "overall": group.overall,
            "participantCount": len(group.rows),
        }

    return {
        "current": describe(comparison.current),
        "previous": describe(comparison.previous),
        "categories": diff_categories(comparison.current, comparison.previous),
    }
