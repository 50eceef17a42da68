"""Create the tables and load a small demo organization.

Usage:
  python scripts/seed_demo.py [admin-email] [admin-password]
"""

import sys
import os
from datetime import date, timedelta

ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
if ROOT not in sys.path:
  sys.path.insert(0, ROOT)

from orgsurvey import create_app
from orgsurvey.extensions import db
from orgsurvey.models import Department, GrowthSurveyQuestion, Job, Problem, Survey, User
from orgsurvey.services.categories import CATEGORY_LABELS, GROWTH_CATEGORIES, DEFAULT_GROWTH_SCALE_OPTIONS


def seed(email, password):
  if User.query.filter_by(email=email).first():
    print('already seeded:', email)
    return

  admin = User(email=email, name='管理者', role='admin')
  admin.set_password(password)
  db.session.add(admin)

  head = Department(name='本社', code='1')
  db.session.add(head)
  db.session.flush()
  depts = [Department(name=n, code=c, parent_id=head.id) for n, c in (('営業部', '3'), ('開発部', '4'), ('管理部', '5'))]
  db.session.add_all(depts)
  jobs = [Job(name=n, code=c) for n, c in (('部長', '1'), ('課長', '2'), ('主任', '3'), ('一般', '9'))]
  db.session.add_all(jobs)
  db.session.flush()

  for i in range(1, 9):
    u = User(email=f'employee{i}@example.com', name=f'社員{i}', role='employee',
             department_id=depts[i % len(depts)].id, job_id=jobs[i % len(jobs)].id)
    u.set_password(password)
    db.session.add(u)

  order = 1
  for cid, label in enumerate(CATEGORY_LABELS, start=1):
    p = Problem(question_text=f'{label}に関する設問', category=label, category_id=cid, display_order=order)
    p.answer_scores = [100, 80, 60, 40, 20, 0]
    db.session.add(p)
    order += 1

  for i, cat in enumerate(GROWTH_CATEGORIES, start=1):
    db.session.add(GrowthSurveyQuestion(question_text=f'{cat}は機能していますか', category=cat, weight=1.0,
                                        target_jobs=[], answers=[dict(o) for o in DEFAULT_GROWTH_SCALE_OPTIONS],
                                        display_order=i))

  today = date.today()
  db.session.add(Survey(name=f'{today.year}年{today.month}月 組織サーベイ', survey_type='organizational',
                        start_date=today, end_date=today + timedelta(days=14), running=True, display=True))
  db.session.add(Survey(name=f'{today.year}年{today.month}月 グロースサーベイ', survey_type='growth',
                        start_date=today, end_date=today + timedelta(days=14), running=True, display=True))
  db.session.commit()
  print('seeded demo data; admin:', email)


def main():
  email = sys.argv[1] if len(sys.argv) > 1 else 'admin@example.com'
  password = sys.argv[2] if len(sys.argv) > 2 else 'admin12345'
  app = create_app()
  with app.app_context():
    db.create_all()
    seed(email, password)


if __name__ == '__main__':
  main()
