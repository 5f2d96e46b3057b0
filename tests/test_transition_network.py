import itertools

import pytest

import chordwalk.chord_graph
import chordwalk.chords
import chordwalk.realizations
import chordwalk.transition_network


def _tone_names (realization: chordwalk.realizations.Realization) -> set:

	return {tone.name() for tone in realization.tones}


@pytest.fixture
def cadence (full_graph: chordwalk.chord_graph.ChordGraph, c7: chordwalk.chords.Chord, fmaj7: chordwalk.chords.Chord) -> list:

	"""The walk C7 - Fmaj7 - C7."""

	return full_graph.walk([c7, fmaj7, c7])


@pytest.fixture
def network (
	full_graph: chordwalk.chord_graph.ChordGraph,
	cadence: list,
	c7_natural: chordwalk.realizations.Realization
) -> chordwalk.transition_network.TransitionNetwork:

	return chordwalk.transition_network.TransitionNetwork(full_graph, cadence, c7_natural, z=-1)


# ---------------------------------------------------------------------------
# Network construction and search
# ---------------------------------------------------------------------------

def test_levels_hold_arc_transitions (
	full_graph: chordwalk.chord_graph.ChordGraph,
	cadence: list,
	network: chordwalk.transition_network.TransitionNetwork
) -> None:

	levels = network.levels()

	assert network.num_levels() == 2
	assert len(levels[0]) == len(full_graph.transitions(cadence[0], cadence[1]))
	assert len(levels[1]) == len(full_graph.transitions(cadence[1], cadence[2]))
	assert network.num_paths() == len(levels[0]) * len(levels[1])
	assert network.sources() == levels[0]
	assert network.sinks() == levels[1]
	assert network.arc_count() == network.num_paths()


def test_best_path_is_cheapest (network: chordwalk.transition_network.TransitionNetwork) -> None:

	"""The best path costs no more than any of the enumerated paths."""

	sources, sinks = network.levels()
	costs = [network.total_weight([v, w]) for v, w in itertools.product(sources, sinks)]

	assert network.total_weight(network.best_path()) == pytest.approx(min(costs))
	assert network.total_weight(network.worst_path()) == pytest.approx(max(costs))


def test_path_cost_includes_entry (network: chordwalk.transition_network.TransitionNetwork) -> None:

	v, w = network.sources()[0], network.sinks()[0]
	glue = network.arc_data(v, w)
	step = network.total_weight([v, w]) - network.entry_cost(v)

	assert step == pytest.approx(network._step_cost(network.transition(w).second, glue.displacement))


def test_worst_path_restores_weights (network: chordwalk.transition_network.TransitionNetwork) -> None:

	before = [arc.weight for arc in network.arcs()]

	network.worst_path()

	assert [arc.weight for arc in network.arcs()] == before


def test_best_paths_share_optimal_cost (network: chordwalk.transition_network.TransitionNetwork) -> None:

	theta, paths = network.best_paths()

	assert paths
	assert theta == pytest.approx(network.total_weight(network.best_path()))

	for path in paths:
		assert network.total_weight(path) == pytest.approx(theta)


def test_single_step_network (
	full_graph: chordwalk.chord_graph.ChordGraph,
	c7: chordwalk.chords.Chord,
	fmaj7: chordwalk.chords.Chord,
	c7_natural: chordwalk.realizations.Realization
) -> None:

	"""With one level every source is a sink and a path costs its entry."""

	walk = full_graph.walk([c7, fmaj7])
	network = chordwalk.transition_network.TransitionNetwork(full_graph, walk, c7_natural)

	assert network.num_levels() == 1
	assert network.sources() == network.sinks()

	best = network.best_path()
	entries = [network.entry_cost(v) for v in network.sources()]

	assert len(best) == 1
	assert network.total_weight(best) == pytest.approx(min(entries))
	assert network.total_weight(network.worst_path()) == pytest.approx(max(entries))

	theta, paths = network.best_paths()

	assert theta == pytest.approx(min(entries))
	assert all(len(path) == 1 for path in paths)


def test_realize_path_keeps_voices (network: chordwalk.transition_network.TransitionNetwork) -> None:

	voicing = network.realize_path(network.best_path())
	chords = [r.chord for r, cue in voicing if not cue]

	assert voicing[0] == (network.start, False)
	assert [c.symbol() for c in chords] == ["0:d7", "5:maj7", "0:d7"]

	for realization, _ in voicing:
		assert realization.spells(realization.chord)


def test_start_must_spell_first_chord (
	full_graph: chordwalk.chord_graph.ChordGraph,
	cadence: list,
	fmaj7_natural: chordwalk.realizations.Realization
) -> None:

	with pytest.raises(chordwalk.transition_network.InvalidWalkError):
		chordwalk.transition_network.TransitionNetwork(full_graph, cadence, fmaj7_natural)


def test_weights_must_have_three_entries (
	full_graph: chordwalk.chord_graph.ChordGraph,
	cadence: list,
	c7_natural: chordwalk.realizations.Realization
) -> None:

	with pytest.raises(ValueError):
		chordwalk.transition_network.TransitionNetwork(full_graph, cadence, c7_natural, weights=(1.0, 1.0))


# ---------------------------------------------------------------------------
# Voicings
# ---------------------------------------------------------------------------

def test_best_voicing_of_c7_to_fmaj7 (
	full_graph: chordwalk.chord_graph.ChordGraph,
	c7: chordwalk.chords.Chord,
	fmaj7: chordwalk.chords.Chord
) -> None:

	"""C7 to Fmaj7 is best spelled Bb C G E to A C F E, without cues."""

	z, voicing = full_graph.find_voicing([c7, fmaj7])

	assert len(voicing) == 2
	assert not any(cue for _, cue in voicing)
	assert _tone_names(voicing[0][0]) == {"Bb", "C", "G", "E"}
	assert _tone_names(voicing[1][0]) == {"A", "C", "F", "E"}
	assert z in full_graph.support


def test_worst_voicing_costs_more (
	full_graph: chordwalk.chord_graph.ChordGraph,
	c7: chordwalk.chords.Chord,
	fmaj7: chordwalk.chords.Chord
) -> None:

	_, best = full_graph.find_voicing([c7, fmaj7])
	_, worst = full_graph.find_voicing([c7, fmaj7], worst=True)

	assert best != worst


def test_voicing_is_arranged (
	full_graph: chordwalk.chord_graph.ChordGraph,
	c7: chordwalk.chords.Chord,
	fmaj7: chordwalk.chords.Chord
) -> None:

	_, voicing = full_graph.find_voicing([c7, fmaj7, c7])

	assert chordwalk.transition_network.arrange_voices(voicing) == voicing


def test_find_voicing_rejects_invalid_walk (full_graph: chordwalk.chord_graph.ChordGraph, c7: chordwalk.chords.Chord) -> None:

	with pytest.raises(chordwalk.transition_network.InvalidWalkError):
		full_graph.find_voicing([c7, c7])


def test_find_voicings_are_inequivalent (
	full_graph: chordwalk.chord_graph.ChordGraph,
	c7: chordwalk.chords.Chord,
	fmaj7: chordwalk.chords.Chord
) -> None:

	voicings = full_graph.find_voicings([c7, fmaj7, c7])

	assert voicings
	assert [abs(z) for z, _ in voicings] == sorted(abs(z) for z, _ in voicings)

	for (_, a), (_, b) in itertools.combinations(voicings, 2):
		assert not chordwalk.transition_network.are_voicings_equivalent(a, b)


def test_best_voicing_is_among_all_optimal (
	full_graph: chordwalk.chord_graph.ChordGraph,
	c7: chordwalk.chords.Chord,
	fmaj7: chordwalk.chords.Chord
) -> None:

	_, best = full_graph.find_voicing([c7, fmaj7])
	voicings = full_graph.find_voicings([c7, fmaj7])

	assert any(chordwalk.transition_network.are_voicings_equivalent(best, v) for _, v in voicings)


# ---------------------------------------------------------------------------
# Voicing helpers
# ---------------------------------------------------------------------------

def test_count_parallel_fifths (
	c7: chordwalk.chords.Chord,
	fmaj7: chordwalk.chords.Chord
) -> None:

	"""C-G moving to F-C and E-Bb moving to A-E are parallel fifths."""

	first = chordwalk.realizations.Realization.from_lofs(c7, [-2, -1, 2, -4])
	second = chordwalk.realizations.Realization.from_lofs(fmaj7, [-3, -2, 1, 2])

	assert chordwalk.transition_network.count_parallel_fifths([(first, False), (second, False)]) == 2
	assert chordwalk.transition_network.count_parallel_fifths([(first, False), (first, False)]) == 0


def test_arrange_voices_is_idempotent (
	c7_natural: chordwalk.realizations.Realization,
	fmaj7_natural: chordwalk.realizations.Realization
) -> None:

	voicing = [(c7_natural, False), (fmaj7_natural, False)]
	arranged = chordwalk.transition_network.arrange_voices(voicing)

	assert chordwalk.transition_network.arrange_voices(arranged) == arranged
	assert chordwalk.transition_network.arrange_voices([(r.arranged((3, 1, 0, 2)), cue) for r, cue in voicing]) == arranged


def test_equivalence (
	c7_natural: chordwalk.realizations.Realization,
	fmaj7_natural: chordwalk.realizations.Realization
) -> None:

	"""Voicings twelve positions apart are equivalent; a fifth apart they are not."""

	voicing = [(c7_natural, False), (fmaj7_natural, False)]
	sharp = [(r.transposed(12), cue) for r, cue in voicing]
	up_a_fifth = [(r.transposed(1), cue) for r, cue in voicing]

	assert chordwalk.transition_network.are_voicings_equivalent(voicing, voicing)
	assert chordwalk.transition_network.are_voicings_equivalent(voicing, sharp)
	assert chordwalk.transition_network.are_voicings_equivalent(sharp, voicing)
	assert not chordwalk.transition_network.are_voicings_equivalent(voicing, up_a_fifth)
	assert not chordwalk.transition_network.are_voicings_equivalent(voicing, voicing[:1])
	assert not chordwalk.transition_network.are_voicings_equivalent(voicing, [(c7_natural, False), (fmaj7_natural, True)])


def test_compose () -> None:

	assert chordwalk.transition_network.compose((1, 2, 3, 0), (3, 2, 1, 0)) == (2, 1, 0, 3)


def test_format_voicing (
	c7_natural: chordwalk.realizations.Realization,
	fmaj7_natural: chordwalk.realizations.Realization
) -> None:

	text = chordwalk.transition_network.format_voicing([(c7_natural, False), (fmaj7_natural, True)])

	assert text == "Bb-C-G-E\n(A-C-F-E)"
