from ..extensions import db
from .base import TimestampMixin, iso

SURVEY_TYPES = ("organizational", "growth")
SURVEY_STATUSES = ("active", "inactive", "completed")


def normalize_survey_type(value):
    lower = (value or "").strip().lower()
    return lower if lower in SURVEY_TYPES else "organizational"


class Survey(db.Model, TimestampMixin):
    __tablename__ = "surveys"
    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(200), nullable=False)
    survey_type = db.Column(db.String(20), nullable=False, default="organizational", index=True)
    start_date = db.Column(db.Date, nullable=False)
    end_date = db.Column(db.Date, nullable=False)
    # 保存上のステータス。日付から導出する実施状況とは独立
    status = db.Column(db.String(20), nullable=False, default="active")
    running = db.Column(db.Boolean, nullable=False, default=False)
    display = db.Column(db.Boolean, nullable=False, default=False)
    created_by = db.Column(db.Integer, db.ForeignKey("users.id", ondelete="SET NULL"))

    results = db.relationship("OrganizationalSurveyResult", cascade="all, delete-orphan")
    summaries = db.relationship("OrganizationalSurveySummary", back_populates="survey", cascade="all, delete-orphan")
    growth_responses = db.relationship("GrowthSurveyResponse", cascade="all, delete-orphan")
    notifications = db.relationship("Notification", cascade="all, delete-orphan")

    def to_dict(self):
        return {
            "id": self.id,
            "name": self.name,
            "surveyType": self.survey_type,
            "startDate": iso(self.start_date),
            "endDate": iso(self.end_date),
            "status": self.status,
            "running": bool(self.running),
            "display": bool(self.display),
            "createdAt": iso(self.created_at),
            "updatedAt": iso(self.updated_at),
        }

    def __repr__(self) -> str:
        return f"<Survey id={self.id} name={self.name!r} type={self.survey_type}>"
