import time
from typing import Any, List

import altair as alt
import pandas as pd
import streamlit as st

from fretquiz.fretboard import Fretboard
from fretquiz.flow import IntervalQuizFlow
from fretquiz.shapes import create_position_zone
from fretquiz.storage import list_zones, load_zone, save_zone
from fretquiz.theory import COMMON_INTERVALS, COMPOUND_INTERVALS
from fretquiz.timers import ManualScheduler
from fretquiz.zones import HighlightZone


st.set_page_config(page_title="Fretboard Trainer", page_icon=None, layout="wide")

FEEDBACK_COLORS = {"correct": "#2e7d32", "incorrect": "#c62828", "hint": "#66bb6a"}


def get_state() -> Any:
	if "fretboard" not in st.session_state:
		st.session_state.fretboard = Fretboard()
	if "zone" not in st.session_state:
		st.session_state.zone = create_position_zone(5)
	if "scheduler" not in st.session_state:
		# virtual clock, advanced from wall time on every rerun
		st.session_state.scheduler = ManualScheduler()
		st.session_state.last_tick = time.monotonic()
	if "flow" not in st.session_state:
		st.session_state.flow = IntervalQuizFlow(st.session_state.fretboard, scheduler=st.session_state.scheduler)
	if "message" not in st.session_state:
		st.session_state.message = None
	return st.session_state


def tick(state: Any) -> None:
	now = time.monotonic()
	state.scheduler.advance(now - state.last_tick)
	state.last_tick = now


def sidebar_controls(state: Any) -> None:
	st.sidebar.header("Settings")
	flow: IntervalQuizFlow = state.flow
	names = [i.short_name() for i in COMMON_INTERVALS + COMPOUND_INTERVALS]
	current = flow.generator.config
	chosen = st.sidebar.multiselect(
		"Intervals",
		options=names,
		default=current.intervals if isinstance(current.intervals, list) else [i.short_name() for i in COMMON_INTERVALS],
	)
	compound = st.sidebar.checkbox("Allow compound intervals", value=current.allow_compound_intervals)
	spelling = st.sidebar.selectbox("Accidentals", ["sharps", "flats", "both"], index=["sharps", "flats", "both"].index(current.display_preference))
	total = st.sidebar.slider("Questions", min_value=1, max_value=50, value=flow.session.config.total_questions)
	attempts = st.sidebar.slider("Attempts before hint", min_value=1, max_value=10, value=flow.session.config.max_attempts)

	flow.generator.update_config(intervals=chosen or "common", allow_compound_intervals=compound, display_preference=spelling)
	if flow.session.state == "idle":
		flow.session.update_config(total_questions=total, max_attempts=attempts)

	st.sidebar.header("Zone")
	position = st.sidebar.slider("Position", min_value=1, max_value=20, value=5)
	if st.sidebar.button("Use position"):
		state.zone = create_position_zone(position)
	saved = list_zones()
	if saved:
		pick = st.sidebar.selectbox("Saved zones", saved)
		if st.sidebar.button("Load zone"):
			zone = load_zone(pick)
			if zone is not None:
				state.zone = zone
	name = st.sidebar.text_input("Save current zone as")
	if name and st.sidebar.button("Save zone"):
		save_zone(state.zone, name)


def fretboard_chart(fretboard: Fretboard, zone: HighlightZone, flow: IntervalQuizFlow) -> alt.Chart:
	rows: List[dict] = []
	question = flow.current_question
	for note in fretboard.all_notes():
		kind = flow.feedback.feedback_type(note.position_id)
		if question is not None and note.same_position(question.root_note):
			kind = "root"
		elif kind == "none":
			kind = "zone" if zone.contains(note) else "off"
		rows.append({"string": note.string, "fret": note.fret, "note": note.full_name(), "kind": kind})
	df = pd.DataFrame(rows)
	colors = alt.Scale(
		domain=["off", "zone", "root", "correct", "incorrect", "hint"],
		range=["#eeeeee", "#90caf9", "#1565c0", FEEDBACK_COLORS["correct"], FEEDBACK_COLORS["incorrect"], FEEDBACK_COLORS["hint"]],
	)
	return alt.Chart(df).mark_rect().encode(
		x=alt.X("fret:O"),
		y=alt.Y("string:O", sort="ascending"),
		color=alt.Color("kind:N", scale=colors, legend=None),
		tooltip=["note", "string", "fret"],
	).properties(height=220)


def main() -> None:
	state = get_state()
	tick(state)
	sidebar_controls(state)
	flow: IntervalQuizFlow = state.flow

	st.title("Interval Fretboard Trainer")

	cols = st.columns(3)
	if cols[0].button("Start", use_container_width=True):
		if not flow.start(state.zone):
			state.message = "Could not start: the zone is empty or has no valid questions."
	if cols[1].button("Next", use_container_width=True):
		flow.advance()
	if cols[2].button("Reset", use_container_width=True):
		flow.reset()

	question = flow.current_question
	if question is not None:
		st.subheader(question.question_text)
		st.caption(flow.progress().display)

	if flow.session.state == "hint":
		st.warning(f"Out of attempts. The answer is {question.target_pitch_class if question else ''}.")
		if st.button("Continue"):
			flow.acknowledge_hint()

	st.altair_chart(fretboard_chart(state.fretboard, state.zone, flow), use_container_width=True)

	pick_cols = st.columns(2)
	string = pick_cols[0].number_input("String", min_value=1, max_value=flow.fretboard.string_count, value=1)
	fret = pick_cols[1].number_input("Fret", min_value=0, max_value=flow.fretboard.fret_count, value=0)
	if st.button("Answer", use_container_width=True):
		note = flow.fretboard.note_at(int(string), int(fret))
		if note is not None:
			outcome = flow.submit_answer(note)
			if outcome == "correct":
				state.message = "Correct!"
			elif outcome == "incorrect":
				state.message = f"{note.full_name()} is not it."

	if state.message:
		st.info(state.message)

	st.markdown("---")
	st.write(f"Score: {flow.score().display}")
	result = flow.result()
	if result is not None:
		st.success(f"Done: {result.accuracy}% accuracy, {result.average_attempts} attempts per correct answer.")

	stats = flow.generator.zone_statistics(state.zone)
	if stats.valid_combinations:
		st.subheader("Questions available in this zone")
		st.dataframe(pd.DataFrame([c.model_dump() for c in stats.valid_combinations]), hide_index=True)


if __name__ == "__main__":
	main()
