from ..extensions import db
from .base import TimestampMixin, iso


class GrowthSurveyQuestion(db.Model, TimestampMixin):
    __tablename__ = "growth_survey_questions"
    id = db.Column(db.Integer, primary_key=True)
    question_text = db.Column(db.Text, nullable=False)
    question_type = db.Column(db.String(20), nullable=False, default="single_choice")
    category = db.Column(db.String(50))  # single_choice のときのみ
    weight = db.Column(db.Float)         # None は 1.0 扱い
    target_jobs = db.Column(db.JSON, nullable=False, default=list)  # ["営業","エンジニア"]、空なら全職種
    answers = db.Column(db.JSON, nullable=False, default=list)      # [{"text": "...", "score": 3}]、free_text は空
    is_active = db.Column(db.Boolean, nullable=False, default=True)
    display_order = db.Column(db.Integer, index=True)

    @property
    def is_free_text(self):
        return self.question_type == "free_text"

    def to_dict(self):
        return {
            "id": self.id,
            "questionText": self.question_text,
            "questionType": self.question_type,
            "category": self.category or "",
            "weight": self.weight,
            "targetJobs": list(self.target_jobs or []),
            "answers": list(self.answers or []),
            "isActive": bool(self.is_active),
            "displayOrder": self.display_order,
            "createdAt": iso(self.created_at),
            "updatedAt": iso(self.updated_at),
        }
