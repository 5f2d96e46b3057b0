import mido
import pytest

import chordwalk.chord_graph
import chordwalk.chords
import chordwalk.digraph
import chordwalk.export
import chordwalk.realizations
import chordwalk.transitions


@pytest.fixture
def pair () -> chordwalk.digraph.WeightedDigraph:

	graph = chordwalk.digraph.WeightedDigraph()
	graph.add_vertices(2)
	graph.add_arc(1, 2, 1.5)
	graph.add_arc(2, 1, 1.5)

	return graph


# ---------------------------------------------------------------------------
# graph_to_dot
# ---------------------------------------------------------------------------

def test_undirected_dot (pair: chordwalk.digraph.WeightedDigraph) -> None:

	text = chordwalk.export.graph_to_dot(pair, undirected=True)

	assert text == 'graph {\n  v1 [label="1"];\n  v2 [label="2"];\n  v1 -- v2;\n}\n'


def test_directed_weighted_dot (pair: chordwalk.digraph.WeightedDigraph) -> None:

	pair.weighted = True
	lines = chordwalk.export.graph_to_dot(pair).splitlines()

	assert lines[0] == "digraph {"
	assert "  v1 -> v2 [weight=1.5];" in lines
	assert "  v2 -> v1 [weight=1.5];" in lines


def test_centrality_as_label (pair: chordwalk.digraph.WeightedDigraph) -> None:

	text = chordwalk.export.graph_to_dot(pair, centrality={1: 0.25, 2: 1.0})

	assert '  v1 [label="1" xlabel="0.250000"];' in text.splitlines()


def test_centrality_as_color (pair: chordwalk.digraph.WeightedDigraph) -> None:

	lines = chordwalk.export.graph_to_dot(pair, centrality={1: 0.0, 2: 1.0}, centrality_format="color").splitlines()

	assert '  v1 [label="1" style="filled" fillcolor="#ffffff"];' in lines
	assert '  v2 [label="2" style="filled" fillcolor="#000000" fontcolor="white"];' in lines


def test_color_needs_unit_interval (pair: chordwalk.digraph.WeightedDigraph) -> None:

	with pytest.raises(ValueError):
		chordwalk.export.graph_to_dot(pair, centrality={1: 0.5, 2: 1.5}, centrality_format="color")


def test_unknown_formats (pair: chordwalk.digraph.WeightedDigraph) -> None:

	with pytest.raises(ValueError):
		chordwalk.export.graph_to_dot(pair, label_format="roman")

	with pytest.raises(ValueError):
		chordwalk.export.graph_to_dot(pair, centrality_format="size")

	with pytest.raises(ValueError):
		chordwalk.export.graph_to_dot(pair, label_format="latex")


def test_chord_graph_labels () -> None:

	graph = chordwalk.chord_graph.ChordGraph([chordwalk.chords.Chord.parse("5:maj7")])

	symbol = chordwalk.export.graph_to_dot(graph)
	latex = chordwalk.export.graph_to_dot(graph, label_format="latex")
	number = chordwalk.export.graph_to_dot(graph, label_format="number")

	assert '  v1 [label="5:maj7"];' in symbol.splitlines()
	assert '  v1 [texlbl="$\\mathrm{F}^\\triangle$"];' in latex.splitlines()
	assert '  v1 [label="1"];' in number.splitlines()


# ---------------------------------------------------------------------------
# voicing_to_midi
# ---------------------------------------------------------------------------

def _note_ons (mid: mido.MidiFile) -> list:

	return [msg.note for msg in mid.tracks[0] if msg.type == "note_on"]


def test_voicing_to_midi_places_voices (
	c7_natural: chordwalk.realizations.Realization,
	fmaj7_natural: chordwalk.realizations.Realization
) -> None:

	"""The first chord stacks upward; later voices move to the nearest octave."""

	mid = chordwalk.export.voicing_to_midi([(c7_natural, False), (fmaj7_natural, False)])

	assert _note_ons(mid) == [58, 60, 67, 76, 57, 60, 65, 76]
	assert mid.ticks_per_beat == 480

	tempo = [msg for msg in mid.tracks[0] if msg.type == "set_tempo"]

	assert tempo[0].tempo == mido.bpm2tempo(90)


def test_voicing_to_midi_skips_cues (
	c7_natural: chordwalk.realizations.Realization,
	fmaj7_natural: chordwalk.realizations.Realization
) -> None:

	voicing = [(c7_natural, False), (c7_natural.transposed(12), True), (fmaj7_natural, False)]

	assert len(_note_ons(chordwalk.export.voicing_to_midi(voicing))) == 8
	assert len(_note_ons(chordwalk.export.voicing_to_midi(voicing, include_cues=True))) == 12


def test_voicing_to_midi_chord_length (c7_natural: chordwalk.realizations.Realization) -> None:

	mid = chordwalk.export.voicing_to_midi([(c7_natural, False)], beats_per_chord=3, ticks_per_beat=96)
	offs = [msg for msg in mid.tracks[0] if msg.type == "note_off"]

	assert sum(msg.time for msg in offs) == 3 * 96


def test_voicing_to_midi_saves (
	tmp_path: "pytest.TempPathFactory",
	c7_natural: chordwalk.realizations.Realization,
	fmaj7_natural: chordwalk.realizations.Realization
) -> None:

	path = tmp_path / "voicing.mid"
	chordwalk.export.voicing_to_midi([(c7_natural, False), (fmaj7_natural, False)], str(path))

	loaded = mido.MidiFile(str(path))

	assert _note_ons(loaded) == [58, 60, 67, 76, 57, 60, 65, 76]


def test_voicing_to_midi_stays_in_range (c7_natural: chordwalk.realizations.Realization) -> None:

	"""Rising tritones would climb past note 127 without folding back."""

	voicing = [(c7_natural.transposed(6 * step), False) for step in range(30)]
	notes = _note_ons(chordwalk.export.voicing_to_midi(voicing))

	assert len(notes) == 120
	assert all(0 <= note <= 127 for note in notes)


# ---------------------------------------------------------------------------
# LilyPond
# ---------------------------------------------------------------------------

@pytest.fixture
def cadence (
	c7_natural: chordwalk.realizations.Realization,
	fmaj7_natural: chordwalk.realizations.Realization
) -> chordwalk.transitions.Transition:

	return chordwalk.transitions.Transition(c7_natural, fmaj7_natural)


def test_transition_to_lily (cadence: chordwalk.transitions.Transition) -> None:

	assert chordwalk.export.transition_to_lily(cadence) == "<bes c' g' e''>1 <a c' f' e''>1"


def test_transition_to_lily_marks_prepared_seventh (cadence: chordwalk.transitions.Transition) -> None:

	"""The seventh of Fmaj7 is the held E in the top voice."""

	text = chordwalk.export.transition_to_lily(cadence, prepared=True)

	assert text == "<bes c' g' \\tweak duration-log #2 e''>1 <a c' f' \\tweak duration-log #2 e''>1"


def test_transition_to_lily_chord_symbols (cadence: chordwalk.transitions.Transition) -> None:

	text = chordwalk.export.transition_to_lily(cadence, chord_symbols=True)

	assert text == "<bes c' g' e''>1^\\markup\\sans{C7} <a c' f' e''>1^\\markup\\sans{Fmaj7}"


def test_transitions_to_lily_document (cadence: chordwalk.transitions.Transition) -> None:

	text = chordwalk.export.transitions_to_lily([cadence, cadence])

	assert text.startswith(chordwalk.export.LILY_HEADER)
	assert text.endswith(chordwalk.export.LILY_FOOTER)
	assert text.count("\t\t<bes c' g' e''>1 <a c' f' e''>1 |\n") == 2
