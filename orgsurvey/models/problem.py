from ..extensions import db
from .base import TimestampMixin, iso

QUESTION_TYPES = ("single_choice", "free_text")
ANSWER_COUNT = 6


class Problem(db.Model, TimestampMixin):
    """組織サーベイの設問（問題バンク）。"""
    __tablename__ = "problems"
    id = db.Column(db.Integer, primary_key=True)
    question_text = db.Column(db.Text, nullable=False)
    question_type = db.Column(db.String(20), nullable=False, default="single_choice")
    category = db.Column(db.String(100), nullable=False, default="")
    category_id = db.Column(db.Integer)
    answer1_score = db.Column(db.Float, nullable=False, default=0.0)
    answer2_score = db.Column(db.Float, nullable=False, default=0.0)
    answer3_score = db.Column(db.Float, nullable=False, default=0.0)
    answer4_score = db.Column(db.Float, nullable=False, default=0.0)
    answer5_score = db.Column(db.Float, nullable=False, default=0.0)
    answer6_score = db.Column(db.Float, nullable=False, default=0.0)
    display_order = db.Column(db.Integer, index=True)

    @property
    def answer_scores(self):
        return [getattr(self, f"answer{i}_score") or 0.0 for i in range(1, ANSWER_COUNT + 1)]

    @answer_scores.setter
    def answer_scores(self, scores):
        for i, score in enumerate(scores, start=1):
            setattr(self, f"answer{i}_score", float(score))

    def to_dict(self):
        out = {
            "id": self.id,
            "questionText": self.question_text,
            "questionType": self.question_type,
            "category": self.category,
            "categoryId": self.category_id,
            "displayOrder": self.display_order,
            "createdAt": iso(self.created_at),
            "updatedAt": iso(self.updated_at),
        }
        for i, score in enumerate(self.answer_scores, start=1):
            out[f"answer{i}Score"] = score
        return out
