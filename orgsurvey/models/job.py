from ..extensions import db
from .base import TimestampMixin, iso


class Job(db.Model, TimestampMixin):
    __tablename__ = "jobs"
    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(120), nullable=False, unique=True)
    code = db.Column(db.String(50))  # 1/2/3 は管理職
    description = db.Column(db.Text)

    employees = db.relationship("User", back_populates="job")

    def to_dict(self):
        return {
            "id": self.id,
            "name": self.name,
            "code": self.code,
            "description": self.description,
            "employeeCount": len(self.employees),
            "createdAt": iso(self.created_at),
            "updatedAt": iso(self.updated_at),
        }
