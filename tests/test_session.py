import numpy as np

from fretquiz.fretboard import Fretboard
from fretquiz.generator import IntervalQuestionGenerator
from fretquiz.session import QuizSession, round_half_up
from fretquiz.shapes import create_position_zone


FB = Fretboard()
ZONE = create_position_zone(5)


def _question(gen=None):
	gen = gen or IntervalQuestionGenerator(FB, rng=np.random.default_rng(3))
	return gen.generate_question(ZONE).question


def _right(q):
	return FB.notes_by_pitch_class(q.target_pitch_class)[0]


def _wrong(q):
	return next(n for n in FB.all_notes() if n.pitch_class != q.target_pitch_class)


def _started(**config):
	session = QuizSession(**config)
	assert session.start(ZONE)
	return session


def test_three_correct_answers_complete_the_quiz():
	session = _started(total_questions=3)
	gen = IntervalQuestionGenerator(FB, rng=np.random.default_rng(3))
	for _ in range(3):
		q = _question(gen)
		assert session.set_question(q)
		assert session.submit_answer(_right(q)) == "correct"
	assert session.state == "complete"
	result = session.result()
	assert result.accuracy == 100
	assert result.correct_answers == 3
	assert result.average_attempts == 1.0

	assert session.submit_answer(_right(q)) == "invalid"
	assert session.state == "complete"
	assert (session.questions_answered, session.correct_answers, session.total_attempts) == (3, 3, 3)
	assert session.result() == result


def test_three_hints_score_zero():
	session = _started(total_questions=3, max_attempts=3)
	for _ in range(3):
		q = _question()
		session.set_question(q)
		assert session.submit_answer(_wrong(q)) == "incorrect"
		assert session.submit_answer(_wrong(q)) == "incorrect"
		assert session.state == "active"
		assert session.submit_answer(_wrong(q)) == "incorrect"
		assert session.state == "hint"
		assert session.question_stats.hint_shown
		assert session.submit_answer(_right(q)) == "invalid"
		assert session.acknowledge_hint()
	result = session.result()
	assert session.state == "complete"
	assert result.hints_used == 3
	assert result.correct_answers == 0
	assert result.accuracy == 0
	assert result.average_attempts == 0.0


def test_average_attempts_rounds_to_two_places():
	session = _started(total_questions=3)
	q = _question()
	session.set_question(q)
	session.submit_answer(_wrong(q))
	session.submit_answer(_wrong(q))
	session.submit_answer(_right(q))
	for _ in range(2):
		q = _question()
		session.set_question(q)
		session.submit_answer(_right(q))
	assert session.result().average_attempts == 1.67
	assert session.result().total_attempts == 5


def test_round_half_up():
	assert round_half_up(2.5) == 3
	assert round_half_up(66.5) == 67
	assert round_half_up(5 / 3, 2) == 1.67


def test_invalid_calls_do_not_change_state():
	session = QuizSession()
	q = _question()
	assert session.submit_answer(_right(q)) == "invalid"
	assert not session.set_question(q)
	assert not session.acknowledge_hint()
	assert not session.pause()
	assert session.result() is None

	session.start(ZONE)
	assert not session.start(ZONE)
	assert session.submit_answer(_right(q)) == "invalid"
	assert session.total_attempts == 0
	assert not session.update_config(total_questions=5)


def test_start_rejects_an_empty_zone():
	from fretquiz.zones import HighlightZone
	session = QuizSession()
	assert not session.start(HighlightZone())
	assert session.state == "idle"


def test_pause_is_a_flag_on_active():
	session = _started()
	assert session.pause()
	assert session.is_paused
	assert session.state == "active"
	assert session.resume()
	assert not session.is_paused


def test_reset_returns_to_idle():
	session = _started()
	q = _question()
	session.set_question(q)
	session.submit_answer(_wrong(q))
	seen = []
	session.on("state_change", lambda e: seen.append((e.previous_state, e.state)))
	session.reset()
	assert session.state == "idle"
	assert session.current_question is None
	assert session.total_attempts == 0
	assert seen == [("active", "idle")]
	assert session.update_config(total_questions=5)
	assert session.config.total_questions == 5


def test_events_fire_in_order():
	session = QuizSession(total_questions=1, max_attempts=1)
	kinds = []
	for kind in ["state_change", "question_generated", "correct_answer", "incorrect_answer", "hint_shown", "quiz_complete"]:
		session.on(kind, lambda e, k=kind: kinds.append(k))
	session.start(ZONE)
	q = _question()
	session.set_question(q)
	session.submit_answer(_wrong(q))
	session.acknowledge_hint()
	assert kinds == [
		"state_change",
		"question_generated",
		"incorrect_answer",
		"state_change",
		"hint_shown",
		"quiz_complete",
		"state_change",
	]


def test_failing_listener_does_not_block_others():
	session = QuizSession()
	calls = []

	def boom(event):
		raise RuntimeError("listener failure")

	session.on("state_change", boom)
	session.on("state_change", lambda e: calls.append(e.state))
	assert session.start(ZONE)
	assert calls == ["active"]


def test_unsubscribe():
	session = QuizSession()
	calls = []
	unsubscribe = session.on("state_change", calls.append)
	unsubscribe()
	session.start(ZONE)
	assert calls == []
