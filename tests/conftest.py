import typing

import pytest

import chordwalk.chord_graph
import chordwalk.chords
import chordwalk.realizations
import chordwalk.tones


def make_chord_graph (count: int, arcs: typing.Iterable[typing.Tuple[int, int]]) -> chordwalk.chord_graph.ChordGraph:

	"""Return a chord graph with ``count`` unlabelled vertices and the given arcs."""

	graph = chordwalk.chord_graph.ChordGraph([])
	graph.add_vertices(count)

	for i, j in arcs:
		graph.add_arc(i, j)

	return graph


def undirected (pairs: typing.Iterable[typing.Tuple[int, int]]) -> typing.List[typing.Tuple[int, int]]:

	"""Return both orientations of every pair."""

	return [arc for i, j in pairs for arc in ((i, j), (j, i))]


@pytest.fixture(scope="session")
def full_graph () -> chordwalk.chord_graph.ChordGraph:

	"""The chord graph over all 51 seventh chords with default settings."""

	return chordwalk.chord_graph.ChordGraph(chordwalk.chords.all_seventh_chords())


@pytest.fixture
def c7 () -> chordwalk.chords.Chord:

	return chordwalk.chords.Chord.parse("0:d7")


@pytest.fixture
def fmaj7 () -> chordwalk.chords.Chord:

	return chordwalk.chords.Chord.parse("5:maj7")


@pytest.fixture
def c7_natural (c7: chordwalk.chords.Chord) -> chordwalk.realizations.Realization:

	"""C7 spelled Bb-C-G-E."""

	return chordwalk.realizations.Realization.from_lofs(c7, [-4, -2, -1, 2])


@pytest.fixture
def fmaj7_natural (fmaj7: chordwalk.chords.Chord) -> chordwalk.realizations.Realization:

	"""Fmaj7 spelled A-C-F-E, the voice-by-voice continuation of Bb-C-G-E."""

	return chordwalk.realizations.Realization.from_lofs(fmaj7, [1, -2, -3, 2])
