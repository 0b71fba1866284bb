import threading

import numpy as np

from fretquiz.flow import IntervalQuizFlow
from fretquiz.fretboard import Fretboard
from fretquiz.models import GeneratorConfig, QuizConfig
from fretquiz.shapes import create_position_zone
from fretquiz.timers import ManualScheduler
from fretquiz.zones import HighlightZone

ZONE = create_position_zone(5)


def _flow(**quiz):
	clock = ManualScheduler()
	flow = IntervalQuizFlow(
		Fretboard(),
		quiz_config=QuizConfig(**quiz),
		scheduler=clock,
		rng=np.random.default_rng(11),
	)
	events = []
	for kind in [
		"quiz_started",
		"question_ready",
		"answer_processed",
		"auto_advance_scheduled",
		"auto_advance_cancelled",
		"paused",
		"resumed",
		"quiz_completed",
		"quiz_reset",
		"generation_failed",
	]:
		flow.on(kind, events.append)
	return flow, clock, events


def _right(flow):
	q = flow.current_question
	return q.target_notes_in_zone[0]


def _wrong(flow):
	q = flow.current_question
	return next(n for n in flow.fretboard.all_notes() if n.pitch_class != q.target_pitch_class)


def _kinds(events):
	return [e.type for e in events]


def test_start_presents_the_first_question():
	flow, _, events = _flow(total_questions=5)
	assert flow.start(ZONE)
	assert _kinds(events) == ["quiz_started", "question_ready"]
	assert flow.current_question.question_number == 1
	assert flow.progress().display == "Question 1 of 5"
	assert events[-1].score.display == "0/0"


def test_correct_answer_auto_advances():
	flow, clock, events = _flow(auto_advance_delay=1.0)
	flow.start(ZONE)
	note = _right(flow)
	assert flow.submit_answer(note) == "correct"
	assert flow.feedback.feedback_type(note.position_id) == "correct"
	assert flow.auto_advance_pending
	assert flow.current_question is None
	clock.advance(0.5)
	assert flow.feedback.feedback_type(note.position_id) == "none"
	assert flow.current_question is None
	clock.advance(0.5)
	assert flow.current_question.question_number == 2
	assert _kinds(events).count("question_ready") == 2
	assert flow.score().display == "1/1"
	assert flow.score().accuracy == 100


def test_incorrect_answer_marks_the_note():
	flow, _, _ = _flow()
	flow.start(ZONE)
	note = _wrong(flow)
	assert flow.submit_answer(note) == "incorrect"
	assert flow.feedback.feedback_type(note.position_id) == "incorrect"
	assert not flow.auto_advance_pending


def test_exhausted_attempts_show_a_hint():
	flow, _, _ = _flow(max_attempts=1, total_questions=2)
	flow.start(ZONE)
	target = flow.current_question.target_notes_in_zone[0]
	flow.submit_answer(_wrong(flow))
	assert flow.session.state == "hint"
	assert flow.feedback.feedback_type(target.position_id) == "hint"
	assert flow.acknowledge_hint()
	assert flow.session.state == "active"
	assert flow.current_question.question_number == 2
	assert not flow.feedback.has_feedback


def test_pause_holds_the_remaining_delay():
	flow, clock, events = _flow(auto_advance_delay=1.0)
	flow.start(ZONE)
	flow.submit_answer(_right(flow))
	clock.advance(0.4)
	assert flow.pause()
	assert abs(events[-1].auto_advance_remaining - 0.6) < 1e-9
	assert flow.submit_answer(flow.fretboard.note_at(1, 5)) == "invalid"
	clock.advance(5)
	assert flow.current_question is None
	assert flow.resume()
	clock.advance(0.5)
	assert flow.current_question is None
	clock.advance(0.2)
	assert flow.current_question.question_number == 2


def test_manual_advance_and_cancel():
	flow, clock, events = _flow()
	flow.start(ZONE)
	assert not flow.advance()
	flow.submit_answer(_right(flow))
	assert flow.cancel_auto_advance()
	assert "auto_advance_cancelled" in _kinds(events)
	clock.advance(2)
	assert flow.current_question is None
	assert flow.advance()
	assert flow.current_question.question_number == 2


def test_auto_advance_can_be_disabled():
	flow, clock, _ = _flow(auto_advance=False)
	flow.start(ZONE)
	flow.submit_answer(_right(flow))
	assert not flow.auto_advance_pending
	clock.advance(5)
	assert flow.current_question is None


def test_last_answer_completes_the_quiz():
	flow, clock, events = _flow(total_questions=2)
	flow.start(ZONE)
	flow.submit_answer(_right(flow))
	clock.advance(1)
	flow.submit_answer(_wrong(flow))
	flow.submit_answer(_right(flow))
	assert flow.session.state == "complete"
	assert not flow.auto_advance_pending
	done = [e for e in events if e.type == "quiz_completed"]
	assert len(done) == 1
	assert done[0].result.accuracy == 100
	assert done[0].result.average_attempts == 1.5
	assert flow.result().total_attempts == 3


def test_start_failures():
	flow, _, events = _flow()
	assert not flow.start(HighlightZone())
	assert events == []

	clock = ManualScheduler()
	lonely = HighlightZone()
	lonely.add_note(1, 0)
	flow = IntervalQuizFlow(Fretboard(), generator_config=GeneratorConfig(intervals=["m2"]), scheduler=clock)
	failures = []
	flow.on("generation_failed", failures.append)
	assert not flow.start(lonely)
	assert failures[0].error == "Failed to generate valid question after maximum retries"


def test_reset_and_restart():
	flow, clock, events = _flow()
	flow.start(ZONE)
	flow.submit_answer(_right(flow))
	flow.reset()
	assert flow.session.state == "idle"
	assert not flow.auto_advance_pending
	assert not flow.feedback.has_feedback
	assert events[-1].type == "quiz_reset"
	assert flow.start(ZONE)
	assert flow.current_question.question_number == 1
	flow.dispose()
	assert clock.pending() == 0


class LateCancelScheduler(ManualScheduler):
	"""A timer that fires even after cancel(), as a thread already inside its callback would."""

	def cancel(self, handle):
		pass


def test_cancelled_auto_advance_that_still_fires_is_ignored():
	clock = LateCancelScheduler()
	flow = IntervalQuizFlow(Fretboard(), scheduler=clock, rng=np.random.default_rng(5))
	ready = []
	flow.on("question_ready", ready.append)
	flow.start(ZONE)
	flow.submit_answer(flow.current_question.target_notes_in_zone[0])
	assert flow.pause()
	clock.advance(5)
	assert flow.current_question is None
	assert len(ready) == 1

	assert flow.resume()
	clock.advance(5)
	assert flow.current_question.question_number == 2


def test_auto_advance_on_a_timer_thread():
	flow = IntervalQuizFlow(
		Fretboard(),
		quiz_config=QuizConfig(auto_advance_delay=0.05),
		rng=np.random.default_rng(5),
	)
	second = threading.Event()
	flow.on("question_ready", lambda e: e.question.question_number == 2 and second.set())
	flow.start(ZONE)
	flow.submit_answer(flow.current_question.target_notes_in_zone[0])
	assert second.wait(5.0)
	assert flow.current_question.question_number == 2
	flow.dispose()
