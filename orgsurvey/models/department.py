from ..extensions import db
from .base import TimestampMixin, iso


class Department(db.Model, TimestampMixin):
    __tablename__ = "departments"
    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(120), nullable=False)
    code = db.Column(db.String(50))  # 数値文字列が多い。表示順と部署別集計の対象判定に使う
    description = db.Column(db.Text)
    parent_id = db.Column(db.Integer, db.ForeignKey("departments.id"), nullable=True)

    parent = db.relationship("Department", remote_side=[id], back_populates="children")
    children = db.relationship("Department", back_populates="parent")
    employees = db.relationship("User", back_populates="department")

    def ancestor_ids(self):
        seen = []
        node = self.parent
        while node is not None and node.id not in seen:
            seen.append(node.id)
            node = node.parent
        return seen

    def to_dict(self):
        return {
            "id": self.id,
            "name": self.name,
            "code": self.code,
            "description": self.description,
            "parentId": self.parent_id,
            "parentName": self.parent.name if self.parent else None,
            "employeeCount": len(self.employees),
            "createdAt": iso(self.created_at),
            "updatedAt": iso(self.updated_at),
        }
