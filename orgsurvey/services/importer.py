"""CSV / bulk row import and export for employees and the question catalogs.

Imports are partial-success: each row runs in its own savepoint and a
failing row is reported without aborting the rest.
"""
import csv
import io
import json
from datetime import datetime

from flask import current_app

from ..extensions import db
from ..models.department import Department
from ..models.growth_survey_question import GrowthSurveyQuestion
from ..models.job import Job
from ..models.problem import Problem
from ..models.user import ROLES, User
from .categories import ANSWER_LABELS
from .problem_bank import (
    QuestionInputError,
    apply_growth_input,
    next_display_order,
    ordered_query,
    parse_growth_question_input,
    parse_problem_input,
)

MAX_REPORTED_ERRORS = 5


class RowError(ValueError):
    pass


class ImportReport:
    def __init__(self):
        self.created = 0
        self.updated = 0
        self.errors = []

    def error(self, line, message):
        self.errors.append(f"行 {line}: {message}")

    def messages(self):
        """First errors individually, the rest as a count."""
        shown = self.errors[:MAX_REPORTED_ERRORS]
        rest = len(self.errors) - len(shown)
        if rest > 0:
            shown = shown + [f"他に{rest}件のエラーがあります"]
        return shown

    def to_dict(self, noun):
        suffix = f" ({len(self.errors)}件のエラー)" if self.errors else ""
        return {
            "created": self.created,
            "updated": self.updated,
            "errors": self.messages(),
            "errorCount": len(self.errors),
            "message": f"{self.created}件の{noun}を登録、{self.updated}件を更新しました{suffix}",
        }


def read_csv_rows(file_storage):
    raw = file_storage.read()
    if isinstance(raw, bytes):
        raw = raw.decode('utf-8-sig')
    return list(csv.DictReader(io.StringIO(raw)))


def to_csv(headers, rows):
    buf = io.StringIO()
    writer = csv.writer(buf)
    writer.writerow(headers)
    writer.writerows(rows)
    # Excel で文字化けしないよう BOM 付き
    return buf.getvalue().encode('utf-8-sig')


def _run_rows(rows, handler, first_line=1):
    report = ImportReport()
    for i, row in enumerate(rows):
        line = i + first_line
        try:
            with db.session.begin_nested():
                created = handler(row)
            if created:
                report.created += 1
            else:
                report.updated += 1
        except (RowError, QuestionInputError) as e:
            report.error(line, str(e))
        except Exception as e:
            current_app.logger.exception('Import row %s failed', line)
            report.error(line, str(e) or "処理に失敗しました")
    db.session.commit()
    return report


def _clean(value):
    if value is None:
        return None
    value = str(value).strip()
    return value or None


def _parse_date(value):
    value = _clean(value)
    if not value:
        return None
    for fmt in ('%Y-%m-%d', '%Y/%m/%d'):
        try:
            return datetime.strptime(value, fmt).date()
        except ValueError:
            continue
    raise RowError(f"日付の形式が不正です: {value}")


def _parse_int(value, label):
    value = _clean(value)
    if value is None:
        return None
    try:
        return int(float(value))
    except ValueError:
        raise RowError(f"{label}は数値である必要があります")


# ---- employees ------------------------------------------------------------

def _resolve(model, id_value, name_value, label):
    ref_id = _parse_int(id_value, f"{label}ID")
    if ref_id is not None:
        obj = db.session.get(model, ref_id)
        if obj is None:
            raise RowError(f"{label}ID {ref_id} が見つかりません")
        return obj
    name = _clean(name_value)
    if name:
        obj = model.query.filter_by(name=name).first()
        if obj is None:
            raise RowError(f"{label}「{name}」が見つかりません")
        return obj
    return None


def import_employees(rows, default_password):
    def handle(row):
        email = (_clean(row.get("email")) or "").lower()
        name = _clean(row.get("name"))
        if not email or not name:
            raise RowError("メールアドレスと氏名は必須です")
        role = _clean(row.get("role"))
        if role and role not in ROLES:
            raise RowError(f"ロール「{role}」は無効です")
        department = _resolve(Department, row.get("departmentId"), row.get("departmentName"), "部署")
        job = _resolve(Job, row.get("jobId"), row.get("jobName"), "役職")

        user = None
        row_id = _parse_int(row.get("id"), "ID")
        if row_id is not None:
            user = db.session.get(User, row_id)
        if user is None:
            user = User.query.filter_by(email=email).first()

        created = user is None
        if created:
            user = User(email=email, role=role or "none")
            user.set_password(_clean(row.get("password")) or default_password)
            db.session.add(user)
        elif role:
            user.role = role
        user.name = name
        if department is not None or "departmentId" in row or "departmentName" in row:
            user.department_id = department.id if department else None
        if job is not None or "jobId" in row or "jobName" in row:
            user.job_id = job.id if job else None
        if _clean(row.get("dateOfBirth")):
            user.date_of_birth = _parse_date(row.get("dateOfBirth"))
        if _clean(row.get("yearsOfService")):
            user.years_of_service = _parse_int(row.get("yearsOfService"), "勤続年数")
        if _clean(row.get("address")):
            user.address = _clean(row.get("address"))
        db.session.flush()
        return created

    report = _run_rows(rows, handle)
    current_app.logger.info('Employee import: %d created, %d updated, %d errors',
                            report.created, report.updated, len(report.errors))
    return report


EMPLOYEE_HEADERS = ["id", "name", "email", "role", "departmentId", "departmentName", "jobId", "jobName",
                    "dateOfBirth", "yearsOfService", "address"]


def export_employees_csv():
    users = User.query.order_by(User.id).all()
    rows = []
    for u in users:
        d = u.to_dict()
        rows.append([d[h] if d[h] is not None else "" for h in EMPLOYEE_HEADERS])
    return to_csv(EMPLOYEE_HEADERS, rows)


# ---- problems -------------------------------------------------------------

PROBLEM_HEADERS = ["順序", "問題文", "カテゴリ"] + ANSWER_LABELS


def _problem_payload(row):
    payload = {
        "questionText": _clean(row.get("問題文")) or "",
        "category": _clean(row.get("カテゴリ")) or "",
        "questionType": _clean(row.get("質問タイプ")) or "single_choice",
    }
    for i, label in enumerate(ANSWER_LABELS, start=1):
        # 旧ヘッダ「回答Nスコア」も受け付ける
        raw = row.get(label)
        if _clean(raw) is None:
            raw = row.get(f"回答{i}スコア")
        payload[f"answer{i}Score"] = _clean(raw)
    return payload


def import_problems(rows):
    existing = {}
    for p in Problem.query.all():
        existing[(p.question_text or "").strip().lower()] = p

    def handle(row):
        values = parse_problem_input(_problem_payload(row))
        order = _parse_int(row.get("順序") or row.get("display_order"), "順序")
        key = values["question_text"].strip().lower()
        problem = existing.get(key)
        created = problem is None
        if created:
            problem = Problem()
            db.session.add(problem)
        for k, v in values.items():
            setattr(problem, k, v)
        if order is not None:
            problem.display_order = order
        elif created:
            problem.display_order = next_display_order(Problem)
        db.session.flush()
        existing[key] = problem
        return created

    return _run_rows(rows, handle, first_line=2)


def export_problems_csv():
    rows = []
    for p in ordered_query(Problem).all():
        rows.append([p.display_order or "", p.question_text, p.category] + p.answer_scores)
    return to_csv(PROBLEM_HEADERS, rows)


# ---- growth questions -----------------------------------------------------

GROWTH_HEADERS = ["順序", "質問文", "質問タイプ", "カテゴリ", "問題比重", "対象職種", "回答", "有効"]


def _growth_answers(value):
    value = _clean(value)
    if not value:
        return []
    if value.startswith("["):
        try:
            return json.loads(value)
        except ValueError:
            raise RowError("回答のJSONが不正です")
    answers = []
    for part in value.split("|"):
        text, _, score = part.rpartition(":")
        if not text:
            text, score = score, None
        answers.append({"text": text.strip(), "score": score})
    return answers


def _format_growth_answers(answers):
    return "|".join(f"{a.get('text', '')}:{'' if a.get('score') is None else a.get('score')}" for a in answers or [])


def import_growth_questions(rows):
    existing = {(q.question_text or "").strip().lower(): q for q in GrowthSurveyQuestion.query.all()}

    def handle(row):
        active = (_clean(row.get("有効")) or "true").lower() not in ("false", "0", "no", "無効")
        data = parse_growth_question_input({
            "questionText": row.get("質問文"),
            "questionType": _clean(row.get("質問タイプ")) or "single_choice",
            "category": row.get("カテゴリ"),
            "weight": _clean(row.get("問題比重") or row.get("weight")),
            "targetJobs": _clean(row.get("対象職種")) or "",
            "answers": _growth_answers(row.get("回答")),
            "isActive": active,
        })
        order = _parse_int(row.get("順序"), "順序")
        key = data.question_text.lower()
        question = existing.get(key)
        created = question is None
        if created:
            question = GrowthSurveyQuestion()
            db.session.add(question)
        apply_growth_input(question, data)
        if order is not None:
            question.display_order = order
        elif created:
            question.display_order = next_display_order(GrowthSurveyQuestion)
        db.session.flush()
        existing[key] = question
        return created

    return _run_rows(rows, handle, first_line=2)


def export_growth_questions_csv():
    rows = []
    for q in ordered_query(GrowthSurveyQuestion).all():
        rows.append([
            q.display_order or "", q.question_text, q.question_type, q.category or "",
            "" if q.weight is None else q.weight, ",".join(q.target_jobs or []),
            _format_growth_answers(q.answers), "true" if q.is_active else "false",
        ])
    return to_csv(GROWTH_HEADERS, rows)
