"""Score aggregation over organizational survey summary rows.

Rows may be ``OrganizationalSurveySummary`` instances or plain mappings
(camelCase as returned by the API, or snake_case column names).
"""
import math
from collections import OrderedDict
from datetime import date, datetime
from decimal import Decimal, ROUND_HALF_UP

from .categories import CATEGORY_COUNT, CATEGORY_IDS, category_label


def round_half_up(value, digits=1):
    if value is None:
        return None
    quant = Decimal(1).scaleb(-digits)
    return float(Decimal(repr(value)).quantize(quant, rounding=ROUND_HALF_UP))


def _finite(value):
    if value is None or isinstance(value, bool):
        return None
    try:
        num = float(value)
    except (TypeError, ValueError):
        return None
    return num if math.isfinite(num) else None


def row_value(row, camel, snake=None):
    snake = snake or camel
    if isinstance(row, dict):
        if camel in row and row[camel] is not None:
            return row[camel]
        return row.get(snake)
    return getattr(row, snake, None)


def row_user_id(row):
    return row_value(row, "userId", "user_id")


def row_survey_id(row):
    return row_value(row, "surveyId", "survey_id")


def _row_date(row, camel, snake):
    value = row_value(row, camel, snake)
    if value is None and not isinstance(row, dict):
        survey = getattr(row, "survey", None)
        value = getattr(survey, snake, None) if survey is not None else None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not value:
        return None
    try:
        return datetime.fromisoformat(str(value)[:10]).date()
    except ValueError:
        return None


def row_start_date(row):
    return _row_date(row, "startDate", "start_date")


def row_end_date(row):
    return _row_date(row, "endDate", "end_date")


def category_values(row):
    """The 8 category scores of a row; non-finite values become None."""
    return [_finite(row_value(row, f"category{i}Score", f"category{i}_score")) for i in CATEGORY_IDS]


def included_rows(rows):
    """Rows with at least one finite category score."""
    return [row for row in rows or [] if any(v is not None for v in category_values(row))]


def category_averages(rows):
    """Per-category averages over the included rows, or None when no row is included.

    A missing category counts as 0 for a row that has any other category.
    """
    rows = included_rows(rows)
    if not rows:
        return None
    sums = [0.0] * CATEGORY_COUNT
    for row in rows:
        for i, v in enumerate(category_values(row)):
            sums[i] += v if v is not None else 0.0
    return [s / len(rows) for s in sums]


def compute_overall_score(rows):
    averages = category_averages(rows)
    if averages is None:
        return None
    return round_half_up(sum(averages) / CATEGORY_COUNT, 1)


def describe_categories(averages, digits=2):
    if averages is None:
        return []
    return [
        {"categoryId": cid, "label": category_label(cid), "average": round_half_up(avg, digits)}
        for cid, avg in zip(CATEGORY_IDS, averages)
    ]


def organization_category_averages(rows):
    averages = category_averages(rows)
    return {
        "categories": describe_categories(averages),
        "overall": compute_overall_score(rows),
        "participantCount": len(included_rows(rows)),
    }


def parse_department_code(code):
    try:
        return float(str(code).strip())
    except (TypeError, ValueError):
        return None


def department_category_scores(rows, employee_departments, departments, code_min=3):
    """Per-department category averages for departments whose code is a number >= code_min.

    ``employee_departments`` maps user id -> department id.
    """
    eligible = OrderedDict()
    for dept in departments:
        dept_id = row_value(dept, "id")
        code = parse_department_code(row_value(dept, "code"))
        if code is not None and code >= code_min:
            eligible[dept_id] = (code, dept)

    grouped = {}
    for row in included_rows(rows):
        dept_id = employee_departments.get(row_user_id(row))
        if dept_id in eligible:
            grouped.setdefault(dept_id, []).append(row)

    out = []
    for dept_id, (code, dept) in sorted(eligible.items(), key=lambda kv: (kv[1][0], str(row_value(kv[1][1], "name")))):
        group = grouped.get(dept_id)
        if not group:
            continue
        averages = category_averages(group)
        entry = {
            "departmentId": dept_id,
            "departmentName": row_value(dept, "name"),
            "departmentCode": row_value(dept, "code"),
            "participantCount": len(group),
            "totalAvg": compute_overall_score(group),
        }
        for cid, avg in zip(CATEGORY_IDS, averages):
            entry[f"category{cid}Avg"] = round_half_up(avg, 2)
        out.append(entry)
    return out


def response_rate(statuses):
    """Share of employees whose own response rate reached 100, in percent."""
    statuses = list(statuses or [])
    if not statuses:
        return 0.0
    responded = sum(1 for s in statuses if (_finite(row_value(s, "responseRate", "response_rate")) or 0.0) >= 100)
    return round_half_up(responded / len(statuses) * 100, 1)


def historical_trend(rows):
    """One point per survey: label from its earliest start date, mean totalScore."""
    groups = {}
    for row in rows or []:
        sid = row_survey_id(row)
        if sid is None:
            continue
        entry = groups.setdefault(sid, {"start": None, "totals": []})
        start = row_start_date(row)
        if start and (entry["start"] is None or start < entry["start"]):
            entry["start"] = start
        total = _finite(row_value(row, "totalScore", "total_score"))
        if total is not None:
            entry["totals"].append(total)

    points = []
    for sid, entry in groups.items():
        if entry["start"] is None or not entry["totals"]:
            continue
        start = entry["start"]
        points.append({
            "surveyId": sid,
            "label": f"{start.year}年{start.month}月",
            "date": start.isoformat(),
            "value": round_half_up(sum(entry["totals"]) / len(entry["totals"]), 1),
        })
    points.sort(key=lambda p: p["date"])
    return points


def calculate_category_scores(items):
    """Category sums for one employee's answers; totalScore is the mean of the 8 sums."""
    sums = {cid: 0.0 for cid in CATEGORY_IDS}
    for item in items or []:
        cid = item.get("cid", item.get("categoryId"))
        score = _finite(item.get("s", item.get("score")))
        if isinstance(cid, int) and not isinstance(cid, bool) and cid in sums and score is not None:
            sums[cid] += score
    out = {f"category{cid}_score": round_half_up(sums[cid], 2) for cid in CATEGORY_IDS}
    out["total_score"] = round_half_up(sum(sums.values()) / CATEGORY_COUNT, 2)
    return out


def survey_statistics(rows):
    """Average total, category 1 and category 7 (inputs of the growth bonus score)."""
    rows = list(rows or [])

    def avg(camel, snake):
        vals = [_finite(row_value(r, camel, snake)) for r in rows]
        vals = [v for v in vals if v is not None]
        return sum(vals) / len(vals) if vals else 0.0

    return {
        "averageTotal": avg("totalScore", "total_score"),
        "averageCategory1": avg("category1Score", "category1_score"),
        "averageCategory7": avg("category7Score", "category7_score"),
        "count": len(rows),
    }


def manager_statistics(rows, employee_jobs, manager_codes):
    """survey_statistics restricted to employees whose job code is a manager code.

    ``employee_jobs`` maps user id -> job code.
    """
    codes = {str(c).strip() for c in manager_codes or []}
    managers = [r for r in rows or [] if str(employee_jobs.get(row_user_id(r)) or "").strip() in codes]
    return survey_statistics(managers)
