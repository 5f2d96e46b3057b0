"""Text and MIDI export of chord graphs and voicings.

Export never changes what it is given: `graph_to_dot` returns Graphviz text for
a finished graph, `voicing_to_midi` turns a voicing into a standard MIDI file
of block chords, and `transitions_to_lily` engraves transitions as LilyPond
code.
"""

import logging
import typing

import mido

import chordwalk.chord_graph
import chordwalk.digraph
import chordwalk.transition_network
import chordwalk.transitions


logger = logging.getLogger(__name__)

LABEL_FORMATS: typing.List[str] = ["symbol", "number", "latex"]
CENTRALITY_FORMATS: typing.List[str] = ["label", "color"]


def _shade (value: float) -> str:

	"""Return a grey ``fillcolor`` where 0 is white and 1 is black."""

	if not 0.0 <= value <= 1.0:
		raise ValueError(f"Centrality shade must lie in [0, 1], got {value}")

	level = round(255 * (1.0 - value))

	return f"#{level:02x}{level:02x}{level:02x}"


def graph_to_dot (
	graph: chordwalk.digraph.WeightedDigraph,
	undirected: bool = False,
	label_format: str = "symbol",
	centrality: typing.Optional[typing.Dict[int, float]] = None,
	centrality_format: str = "label"
) -> str:

	"""Return a Graphviz description of ``graph``.

	Parameters:
		graph: Any digraph; chord graphs get chord labels.
		undirected: Write each pair of opposite arcs as one edge (``--``).
			Only arcs with ``tail < head`` are written.
		label_format: ``"symbol"`` (vertex labels), ``"number"`` (vertex ids)
			or ``"latex"`` (chord names in a ``texlbl`` attribute).
		centrality: Optional value per vertex id.
		centrality_format: ``"label"`` writes the values as ``xlabel``;
			``"color"`` fills vertices with grey shades, so values must lie
			in ``[0, 1]``.

	Example:
		```python
		print(graph_to_dot(graph, undirected=True))
		```
	"""

	if label_format not in LABEL_FORMATS:
		raise ValueError(f"Unknown label format: {label_format!r}. Expected one of {LABEL_FORMATS}")

	if centrality_format not in CENTRALITY_FORMATS:
		raise ValueError(f"Unknown centrality format: {centrality_format!r}. Expected one of {CENTRALITY_FORMATS}")

	if label_format == "latex" and not isinstance(graph, chordwalk.chord_graph.ChordGraph):
		raise ValueError("LaTeX labels need a chord graph")

	lines = [("graph" if undirected else "digraph") + " {"]

	for i in graph.vertex_ids():

		if label_format == "latex":
			attributes = [f'texlbl="${typing.cast(chordwalk.chord_graph.ChordGraph, graph).vertex_chord(i).to_tex()}$"']
		elif label_format == "number":
			attributes = [f'label="{i}"']
		else:
			attributes = [f'label="{graph.vertex(i).label}"']

		if centrality is not None:

			value = centrality[i]

			if centrality_format == "label":
				attributes.append(f'xlabel="{value:.6f}"')

			else:
				attributes.append(f'style="filled" fillcolor="{_shade(value)}"')

				if value > 0.5:
					attributes.append('fontcolor="white"')

		lines.append(f"  v{i} [{' '.join(attributes)}];")

	connector = "--" if undirected else "->"

	for arc in sorted(graph.arcs(), key=lambda a: (a.tail, a.head)):

		if undirected and arc.head < arc.tail:
			continue

		line = f"  v{arc.tail} {connector} v{arc.head}"

		if graph.weighted:
			line += f" [weight={arc.weight:g}]"

		lines.append(line + ";")

	lines.append("}")

	return "\n".join(lines) + "\n"


def _fold (note: int) -> int:

	"""Move ``note`` by whole octaves into the MIDI range 0-127."""

	while note > 127:
		note -= 12

	while note < 0:
		note += 12

	return note


def _place_voices (
	voicing: chordwalk.transition_network.Voicing,
	lowest: int
) -> typing.List[typing.List[int]]:

	"""Return MIDI notes for each realization.

	The first chord is stacked upwards from ``lowest``; afterwards each voice
	moves to the octave nearest its previous note. Notes that drift out of the
	MIDI range are folded back by octaves.
	"""

	placed: typing.List[typing.List[int]] = []

	for realization, _ in voicing:

		pcs = [tone.pitch_class() for tone in realization.tones]

		if not placed:
			notes: typing.List[int] = []
			floor = lowest
			for pc in pcs:
				note = floor + (pc - floor) % 12
				notes.append(note)
				floor = note + 1
			placed.append([_fold(note) for note in notes])
			continue

		previous = placed[-1]
		notes = []

		for pc, prev in zip(pcs, previous):
			offset = (pc - prev) % 12
			if offset > 6:
				offset -= 12
			notes.append(_fold(prev + offset))

		placed.append(notes)

	return placed


def voicing_to_midi (
	voicing: chordwalk.transition_network.Voicing,
	filename: typing.Optional[str] = None,
	bpm: float = 90,
	beats_per_chord: int = 2,
	velocity: int = 80,
	lowest: int = 48,
	include_cues: bool = False,
	ticks_per_beat: int = 480
) -> mido.MidiFile:

	"""Render a voicing as block chords in a single-track MIDI file.

	Parameters:
		voicing: The voicing to render.
		filename: Where to save the file; not saved if omitted.
		bpm: Tempo.
		beats_per_chord: Length of each chord.
		velocity: Note-on velocity.
		lowest: Lower bound for the first chord's lowest voice.
		include_cues: Also sound the respelling cues.
		ticks_per_beat: MIDI resolution.

	Returns:
		The MIDI file.
	"""

	entries = [(realization, cue) for realization, cue in voicing if include_cues or not cue]

	mid = mido.MidiFile(type=1)
	mid.ticks_per_beat = ticks_per_beat
	track = mido.MidiTrack()
	mid.tracks.append(track)

	track.append(mido.MetaMessage('set_tempo', tempo=mido.bpm2tempo(bpm), time=0))

	duration = beats_per_chord * ticks_per_beat

	for (realization, _), notes in zip(entries, _place_voices(entries, lowest)):

		track.append(mido.MetaMessage('marker', text=realization.name(), time=0))

		for note in notes:
			track.append(mido.Message('note_on', note=note, velocity=velocity, time=0))

		for index, note in enumerate(notes):
			track.append(mido.Message('note_off', note=note, velocity=0, time=duration if index == 0 else 0))

	track.append(mido.MetaMessage('end_of_track', time=0))

	if filename:
		mid.save(filename)
		logger.info(f"Saved {len(entries)} chords to {filename}")

	return mid


LILY_HEADER: str = (
	'\\include "lilypond-book-preamble.ly"\n'
	"\\paper {\n\toddFooterMarkup = ##f\n\t#(include-special-characters)\n}\n"
	"\\score {\n"
	"\t\\new Staff {\n"
	"\t\t\\override Score.TimeSignature.stencil = ##f\n"
	"\t\t\\override Score.BarNumber.stencil = ##f\n"
	"\t\t\\time 2/1\n"
	"\t\t\\accidentalStyle modern\n"
)

LILY_FOOTER: str = "\t}\n\t\\layout { indent = 0\\cm }\n}\n"


def transition_to_lily (
	transition: chordwalk.transitions.Transition,
	prepared: bool = False,
	chord_symbols: bool = False,
	lowest: int = 55
) -> str:

	"""Return one transition as a LilyPond measure of two whole-note chords.

	Voices are placed as in `voicing_to_midi`. With ``prepared`` the voice
	carrying the second chord's seventh is drawn with filled note heads, and
	``chord_symbols`` writes each chord's name above it.

	Example:
		```python
		transition_to_lily(t)  # "<bes c' g' e''>1 <a c' f' e''>1"
		```
	"""

	marked = transition.second.generic_seventh_voice() if prepared else None
	realizations = [transition.first, transition.second]
	placed = _place_voices([(r, False) for r in realizations], lowest)
	measures = []

	for realization, notes in zip(realizations, placed):

		text = realization.to_lily(notes, marked) + "1"

		if chord_symbols:
			text += "^\\markup\\sans{" + realization.chord.name() + "}"

		measures.append(text)

	return " ".join(measures)


def transitions_to_lily (
	transitions: typing.Iterable[chordwalk.transitions.Transition],
	prepared: bool = False,
	chord_symbols: bool = False
) -> str:

	"""Return a LilyPond document with one measure per transition."""

	lines = [LILY_HEADER]

	for transition in transitions:
		lines.append("\t\t" + transition_to_lily(transition, prepared, chord_symbols) + " |\n")

	lines.append(LILY_FOOTER)

	return "".join(lines)
