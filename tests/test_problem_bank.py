import pytest

from orgsurvey.extensions import db
from orgsurvey.models import GrowthSurveyQuestion, Problem
from orgsurvey.services import problem_bank
from orgsurvey.services.problem_bank import (
    FreeTextQuestionInput,
    QuestionInputError,
    ReorderError,
    SingleChoiceQuestionInput,
    apply_move,
    current_order,
    move_down,
    move_item,
    move_up,
    parse_growth_question_input,
    parse_problem_input,
    reorder,
)


def test_drag_to_top_equals_repeated_move_up():
    seq = ['a', 'b', 'c', 'd', 'e']
    assert move_item(seq, 3, 0) == move_up(move_up(move_up(seq, 3), 2), 1)
    assert move_item(seq, 3, 1) == move_up(move_up(seq, 3), 2)


def test_out_of_range_moves_are_noops():
    seq = [1, 2, 3]
    assert move_up(seq, 0) == seq
    assert move_down(seq, 2) == seq
    assert move_item(seq, 5, 0) == seq


def test_move_down_persists_new_order(make_problem):
    ids = [make_problem(f'問{i}', order=i).id for i in (1, 2, 3)]
    order, ok = apply_move(Problem, 'down', 0)
    assert ok
    assert order == [ids[1], ids[0], ids[2]]
    assert current_order(Problem) == [ids[1], ids[0], ids[2]]
    assert [p.display_order for p in Problem.query.order_by(Problem.display_order)] == [1, 2, 3]


def test_drag_and_move_up_persist_same_order(make_problem):
    ids = [make_problem(f'問{i}', order=i).id for i in range(1, 6)]
    apply_move(Problem, 'drag', 3, 1)
    dragged = current_order(Problem)
    reorder(Problem, ids)
    apply_move(Problem, 'up', 3)
    apply_move(Problem, 'up', 2)
    assert current_order(Problem) == dragged


def test_failed_persist_returns_stored_order(make_problem, monkeypatch):
    ids = [make_problem(f'問{i}', order=i).id for i in (1, 2, 3)]

    def boom(model, new_ids):
        raise RuntimeError('db down')
    monkeypatch.setattr(problem_bank, 'reorder', boom)
    order, ok = apply_move(Problem, 'down', 0)
    assert not ok
    assert order == ids


def test_reorder_rejects_unknown_ids(make_problem):
    p = make_problem('問1', order=1)
    with pytest.raises(ReorderError):
        reorder(Problem, [p.id, 999])
    with pytest.raises(ReorderError):
        reorder(Problem, [])
    assert db.session.get(Problem, p.id).display_order == 1


def test_problem_input_requires_known_category():
    with pytest.raises(QuestionInputError):
        parse_problem_input({'questionText': '問', 'category': '存在しない'})
    values = parse_problem_input({'questionText': ' 問 ', 'category': 'self-evaluation consciousness', 'answer1Score': '5'})
    assert values['question_text'] == '問'
    assert values['category_id'] == 1
    assert values['answer1_score'] == 5.0
    assert values['answer6_score'] == 0.0


def test_free_text_problem_has_no_category():
    values = parse_problem_input({'questionText': '自由記述', 'questionType': 'free_text', 'category': '変化意識'})
    assert values['category'] == ''
    assert values['category_id'] is None


def test_growth_input_variants():
    single = parse_growth_question_input({'questionText': '問', 'category': '主保・会議', 'weight': '1.235',
                                          'targetJobs': '営業, 開発'})
    assert isinstance(single, SingleChoiceQuestionInput)
    assert single.category == '週報・会議'
    assert single.weight == 1.24
    assert single.target_jobs == ['営業', '開発']
    assert len(single.answers) == 6

    free = parse_growth_question_input({'questionText': '感想', 'questionType': 'free_text', 'category': 'ルール'})
    assert isinstance(free, FreeTextQuestionInput)
    assert not hasattr(free, 'category')

    with pytest.raises(QuestionInputError):
        parse_growth_question_input({'questionText': '問'})


def test_growth_move_uses_its_own_table(app):
    for i in range(3):
        db.session.add(GrowthSurveyQuestion(question_text=f'Q{i}', category='ルール', target_jobs=[], answers=[],
                                            display_order=i + 1))
    db.session.commit()
    ids = current_order(GrowthSurveyQuestion)
    order, ok = apply_move(GrowthSurveyQuestion, 'up', 2)
    assert ok and order == [ids[0], ids[2], ids[1]]
