from flask import current_app, request, Response
from flask_login import login_required, current_user
from sqlalchemy.exc import IntegrityError
from . import bp
from ...extensions import db
from .forms import DepartmentForm, JobForm, EmployeeForm, PasswordForm
from ...models.department import Department
from ...models.job import Job
from ...models.user import User
from ...services.importer import export_employees_csv, import_employees
from ...utils.decorators import admin_required
from ...utils.forms import request_json
from ...utils.responses import ApiError, success


def _get_or_404(model, obj_id, message):
    obj = db.session.get(model, obj_id)
    if obj is None:
        raise ApiError(message, 404)
    return obj


def _commit(conflict_message):
    try:
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        raise ApiError(conflict_message, 409)


def _blank_to_none(value):
    value = (value or "").strip() if isinstance(value, str) else value
    return value or None


# ---- departments ----------------------------------------------------------

@bp.route("/departments", methods=["GET"])
@login_required
def departments_index():
    rows = Department.query.order_by(Department.code.asc(), Department.name.asc()).all()
    return success(departments=[d.to_dict() for d in rows])


def _apply_department(dept, form, partial=False):
    # 更新時は送られてきた項目だけ書き換える
    dept.name = form.name.data.strip()
    if not partial or form.provided("code"):
        dept.code = _blank_to_none(form.code.data)
    if not partial or form.provided("description"):
        dept.description = _blank_to_none(form.description.data)
    if partial and not form.provided("parentId"):
        return
    parent_id = form.parent_id.data
    if parent_id is not None:
        parent = _get_or_404(Department, parent_id, "親部門が見つかりません")
        if dept.id is not None and (parent.id == dept.id or dept.id in parent.ancestor_ids()):
            raise ApiError("部門を自身の配下に移動することはできません", 400)
    dept.parent_id = parent_id


@bp.route("/departments", methods=["POST"])
@admin_required
def departments_create():
    form = DepartmentForm.from_json().validate_or_raise()
    dept = Department()
    _apply_department(dept, form)
    db.session.add(dept)
    _commit("同じ部門が既に存在します")
    return success(201, department=dept.to_dict())


@bp.route("/departments/<int:dept_id>", methods=["PUT"])
@admin_required
def departments_update(dept_id):
    dept = _get_or_404(Department, dept_id, "部門が見つかりません")
    form = DepartmentForm.from_json().validate_or_raise()
    _apply_department(dept, form, partial=True)
    _commit("同じ部門が既に存在します")
    return success(department=dept.to_dict())


@bp.route("/departments/<int:dept_id>", methods=["DELETE"])
@admin_required
def departments_delete(dept_id):
    dept = _get_or_404(Department, dept_id, "部門が見つかりません")
    if dept.employees:
        raise ApiError("この部門に従業員が所属しているため削除できません", 400)
    if dept.children:
        raise ApiError("この部門に子部門が存在するため削除できません", 400)
    db.session.delete(dept)
    db.session.commit()
    return success(message="部門を削除しました")


# ---- jobs -----------------------------------------------------------------

@bp.route("/jobs", methods=["GET"])
@login_required
def jobs_index():
    rows = Job.query.order_by(Job.code.asc(), Job.name.asc()).all()
    return success(jobs=[j.to_dict() for j in rows])


@bp.route("/jobs", methods=["POST"])
@admin_required
def jobs_create():
    form = JobForm.from_json().validate_or_raise()
    job = Job(name=form.name.data.strip(), code=_blank_to_none(form.code.data),
              description=_blank_to_none(form.description.data))
    db.session.add(job)
    _commit("同じ名前の職位が既に存在します")
    return success(201, job=job.to_dict())


@bp.route("/jobs/<int:job_id>", methods=["PUT"])
@admin_required
def jobs_update(job_id):
    job = _get_or_404(Job, job_id, "職位が見つかりません")
    form = JobForm.from_json().validate_or_raise()
    job.name = form.name.data.strip()
    if form.provided("code"):
        job.code = _blank_to_none(form.code.data)
    if form.provided("description"):
        job.description = _blank_to_none(form.description.data)
    _commit("同じ名前の職位が既に存在します")
    return success(job=job.to_dict())


@bp.route("/jobs/<int:job_id>", methods=["DELETE"])
@admin_required
def jobs_delete(job_id):
    job = _get_or_404(Job, job_id, "職位が見つかりません")
    if job.employees:
        raise ApiError("この職位に従業員が所属しているため削除できません", 400)
    db.session.delete(job)
    db.session.commit()
    return success(message="職位を削除しました")


# ---- employees ------------------------------------------------------------

@bp.route("/employees", methods=["GET"])
@login_required
def employees_index():
    if not current_user.is_admin:
        return success(employees=[current_user.to_dict()])

    page = max(request.args.get("page", 1, type=int), 1)
    limit = min(max(request.args.get("limit", 1000, type=int), 1), 1000)
    q = User.query.order_by(User.created_at.desc(), User.id.desc())
    total = q.count()
    rows = q.offset((page - 1) * limit).limit(limit).all()
    return success(
        employees=[u.to_dict() for u in rows],
        pagination={"page": page, "limit": limit, "total": total, "totalPages": (total + limit - 1) // limit},
    )


def _apply_employee(user, form):
    if form.provided("departmentId"):
        if form.department_id.data is not None:
            _get_or_404(Department, form.department_id.data, "部門が見つかりません")
        user.department_id = form.department_id.data
    if form.provided("jobId"):
        if form.job_id.data is not None:
            _get_or_404(Job, form.job_id.data, "職位が見つかりません")
        user.job_id = form.job_id.data
    user.email = form.email.data.strip().lower()
    user.name = form.name.data.strip()
    if form.role.data:
        user.role = form.role.data
    if form.provided("dateOfBirth"):
        user.date_of_birth = form.date_of_birth.data
    if form.provided("yearsOfService"):
        user.years_of_service = form.years_of_service.data
    if form.provided("address"):
        user.address = _blank_to_none(form.address.data)


@bp.route("/employees", methods=["POST"])
@admin_required
def employees_create():
    form = EmployeeForm.from_json().validate_or_raise()
    if User.query.filter_by(email=form.email.data.strip().lower()).first():
        raise ApiError("このメールアドレスは既に登録されています", 409)
    user = User(role="employee")
    _apply_employee(user, form)
    user.set_password(form.password.data or current_app.config["DEFAULT_EMPLOYEE_PASSWORD"])
    db.session.add(user)
    _commit("このメールアドレスは既に登録されています")
    return success(201, employee=user.to_dict())


@bp.route("/employees/<int:user_id>", methods=["PUT"])
@admin_required
def employees_update(user_id):
    user = _get_or_404(User, user_id, "従業員が見つかりません")
    form = EmployeeForm.from_json().validate_or_raise()
    _apply_employee(user, form)
    if form.password.data:
        user.set_password(form.password.data)
    _commit("このメールアドレスは既に登録されています")
    return success(employee=user.to_dict())


@bp.route("/employees/<int:user_id>", methods=["DELETE"])
@admin_required
def employees_delete(user_id):
    user = _get_or_404(User, user_id, "従業員が見つかりません")
    if user.id == current_user.id:
        raise ApiError("自分自身は削除できません", 400)
    db.session.delete(user)
    db.session.commit()
    return success(message="従業員を削除しました")


@bp.route("/employees/<int:user_id>/password", methods=["POST"])
@admin_required
def employees_password(user_id):
    user = _get_or_404(User, user_id, "従業員が見つかりません")
    form = PasswordForm.from_json().validate_or_raise()
    user.set_password(form.password.data)
    db.session.commit()
    current_app.logger.info('Password reset for user %s by admin %s', user.id, current_user.id)
    return success(message="パスワードを更新しました")


@bp.route("/employees/import", methods=["POST"])
@admin_required
def employees_import():
    payload = request_json()
    rows = payload.get("employees")
    if not isinstance(rows, list) or not rows:
        raise ApiError("インポートする従業員データがありません", 400)
    if not all(isinstance(r, dict) for r in rows):
        raise ApiError("従業員データの形式が不正です", 400)
    report = import_employees(rows, current_app.config["DEFAULT_EMPLOYEE_PASSWORD"])
    return success(**report.to_dict("従業員"))


@bp.route("/employees/export", methods=["GET"])
@admin_required
def employees_export():
    return Response(
        export_employees_csv(),
        mimetype="text/csv",
        headers={"Content-Disposition": "attachment; filename=employees.csv"},
    )
