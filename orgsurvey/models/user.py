from ..extensions import db
from flask_login import UserMixin
from .base import TimestampMixin, iso
from werkzeug.security import generate_password_hash, check_password_hash

ROLES = ("admin", "employee", "none")


class User(db.Model, UserMixin, TimestampMixin):
    __tablename__ = "users"
    id = db.Column(db.Integer, primary_key=True)
    email = db.Column(db.String(255), unique=True, nullable=False)
    name = db.Column(db.String(120), nullable=False)
    password_hash = db.Column(db.String(255), nullable=False)
    role = db.Column(db.String(20), default="employee", nullable=False)  # admin/employee/none
    department_id = db.Column(db.Integer, db.ForeignKey("departments.id"), index=True)
    job_id = db.Column(db.Integer, db.ForeignKey("jobs.id"), index=True)
    date_of_birth = db.Column(db.Date)
    years_of_service = db.Column(db.Integer)
    address = db.Column(db.String(255))

    department = db.relationship("Department", back_populates="employees")
    job = db.relationship("Job", back_populates="employees")
    # 従業員の削除で回答・集計・通知も消える
    results = db.relationship("OrganizationalSurveyResult", cascade="all, delete-orphan")
    summaries = db.relationship("OrganizationalSurveySummary", back_populates="user",
                                cascade="all, delete-orphan")
    growth_responses = db.relationship("GrowthSurveyResponse", cascade="all, delete-orphan")
    notifications = db.relationship("Notification", cascade="all, delete-orphan")

    def set_password(self, raw):
        self.password_hash = generate_password_hash(raw)

    def check_password(self, raw):
        return check_password_hash(self.password_hash, raw)

    @property
    def is_admin(self):
        return self.role == "admin"

    def to_dict(self):
        return {
            "id": self.id,
            "email": self.email,
            "name": self.name,
            "role": self.role,
            "departmentId": self.department_id,
            "departmentName": self.department.name if self.department else None,
            "jobId": self.job_id,
            "jobName": self.job.name if self.job else None,
            "dateOfBirth": iso(self.date_of_birth),
            "yearsOfService": self.years_of_service,
            "address": self.address,
            "createdAt": iso(self.created_at),
            "updatedAt": iso(self.updated_at),
        }

    def __repr__(self) -> str:
        return f"<User id={self.id} email={self.email!r}>"
