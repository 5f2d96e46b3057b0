"""Seventh chords as pitch-class objects.

This module provides the five seventh-chord qualities used by the chord graph
and the `Chord` class that represents one chord as a root pitch class and a
quality.

Module-level constants:
- `CHORD_INTERVALS`: Maps quality names to the third, fifth and seventh above the root (semitones)
- `CHORD_SYMBOLS`: Maps quality names to the short symbols used in text (e.g. `"d7"`, `"maj7"`)
- `CHORD_SUFFIX`: Maps quality names to human-readable suffixes (e.g. `"7"`, `"m7b5"`)

Chords are written in text as ``"<root>:<symbol>"``, where the root is a pitch
class (0 = C). For example ``"0:d7"`` is C7 and ``"5:maj7"`` is Fmaj7.
"""

import dataclasses
import itertools
import typing

import chordwalk.tones


DOMINANT: str = "dominant_7th"
HALF_DIMINISHED: str = "half_diminished_7th"
MINOR: str = "minor_7th"
MAJOR: str = "major_7th"
DIMINISHED: str = "diminished_7th"

QUALITIES: typing.List[str] = [DOMINANT, HALF_DIMINISHED, MINOR, MAJOR, DIMINISHED]

CHORD_INTERVALS: typing.Dict[str, typing.List[int]] = {
	DOMINANT: [4, 7, 10],
	HALF_DIMINISHED: [3, 6, 10],
	MINOR: [3, 7, 10],
	MAJOR: [4, 7, 11],
	DIMINISHED: [3, 6, 9],
}

CHORD_SYMBOLS: typing.Dict[str, str] = {
	DOMINANT: "d7",
	HALF_DIMINISHED: "hdim7",
	MINOR: "m7",
	MAJOR: "maj7",
	DIMINISHED: "dim7",
}

SYMBOL_TO_QUALITY: typing.Dict[str, str] = {symbol: quality for quality, symbol in CHORD_SYMBOLS.items()}

CHORD_SUFFIX: typing.Dict[str, str] = {
	DOMINANT: "7",
	HALF_DIMINISHED: "m7b5",
	MINOR: "m7",
	MAJOR: "maj7",
	DIMINISHED: "dim7",
}

TEX_SUFFIX: typing.Dict[str, str] = {
	DOMINANT: "^7",
	HALF_DIMINISHED: "^\\text{\\o}",
	MINOR: "\\mathrm{m}^7",
	MAJOR: "^\\triangle",
	DIMINISHED: "^{\\mathrm{o}7}",
}

# Structural inversion mirrors pitch classes around D; dominant and
# half-diminished sevenths swap, the other qualities are symmetric.
INVERSE_QUALITY: typing.Dict[str, str] = {
	DOMINANT: HALF_DIMINISHED,
	HALF_DIMINISHED: DOMINANT,
	MINOR: MINOR,
	MAJOR: MAJOR,
	DIMINISHED: DIMINISHED,
}


@dataclasses.dataclass(frozen=True, order=True)
class Chord:

	"""
	Represents a seventh chord as a root pitch class and quality.
	"""

	root_pc: int
	quality: str


	def __post_init__ (self) -> None:

		if self.quality not in CHORD_INTERVALS:
			raise ValueError(f"Unknown chord quality: {self.quality}")

		# Only three diminished sevenths are distinct.
		modulus = 3 if self.quality == DIMINISHED else 12
		object.__setattr__(self, "root_pc", self.root_pc % modulus)


	@classmethod
	def parse (cls, text: str) -> "Chord":

		"""Parse a chord from its textual form.

		Parameters:
			text: Root pitch class and symbol separated by a colon, e.g. ``"5:maj7"``.

		Returns:
			The parsed chord. Diminished sevenths are normalized to the root
			``root % 3`` since only three of them are distinct.

		Raises:
			ValueError: If the text is not of the form ``"<int>:<symbol>"``.

		Example:
			```python
			Chord.parse("0:d7")    # Chord(root_pc=0, quality="dominant_7th")
			Chord.parse("7:dim7")  # Chord(root_pc=1, quality="diminished_7th")
			```
		"""

		root_text, sep, symbol = text.strip().partition(":")

		if not sep or symbol not in SYMBOL_TO_QUALITY:
			raise ValueError(
				f"Invalid chord: {text!r}. Expected e.g. '0:d7', '5:maj7', '1:dim7'."
			)

		try:
			root = int(root_text)
		except ValueError:
			raise ValueError(f"Invalid chord root in {text!r}") from None

		return cls(root, SYMBOL_TO_QUALITY[symbol])


	def intervals (self) -> typing.List[int]:

		"""Return the semitones from the root to the third, fifth and seventh."""

		return CHORD_INTERVALS[self.quality]


	def third (self) -> int:

		return (self.root_pc + self.intervals()[0]) % 12


	def fifth (self) -> int:

		return (self.root_pc + self.intervals()[1]) % 12


	def seventh (self) -> int:

		return (self.root_pc + self.intervals()[2]) % 12


	def pitch_classes (self) -> typing.List[int]:

		"""Return root, third, fifth and seventh as pitch classes."""

		return [self.root_pc, self.third(), self.fifth(), self.seventh()]


	def pitch_class_set (self) -> typing.FrozenSet[int]:

		return frozenset(self.pitch_classes())


	def symbol (self) -> str:

		"""Return the textual form, e.g. ``"5:maj7"``."""

		return f"{self.root_pc}:{CHORD_SYMBOLS[self.quality]}"


	def name (self) -> str:

		"""Return a human-friendly chord name, e.g. ``"Fmaj7"`` or ``"Bbm7b5"``."""

		root = chordwalk.tones.Tone(chordwalk.tones.pitch_class_to_lof(self.root_pc))

		return f"{root.name()}{CHORD_SUFFIX[self.quality]}"


	def to_tex (self) -> str:

		"""Return the chord name as LaTeX math, e.g. ``"\\mathrm{F}^\\triangle"``."""

		root = chordwalk.tones.Tone(chordwalk.tones.pitch_class_to_lof(self.root_pc))
		acc = root.accidental()
		sign = "\\sharp" if acc > 0 else "\\flat"

		return "\\mathrm{" + chordwalk.tones.NOTE_LETTERS[root.note_name()] + "}" + sign * abs(acc) + TEX_SUFFIX[self.quality]


	def structural_inversion (self) -> "Chord":

		"""Return the chord whose pitch classes mirror this one around D.

		Each pitch class ``p`` maps to ``4 - p``. A dominant seventh becomes a
		half-diminished seventh and vice versa.
		"""

		inverted = frozenset((4 - pc) % 12 for pc in self.pitch_classes())
		quality = INVERSE_QUALITY[self.quality]

		for root in range(12):
			candidate = Chord(root, quality)
			if candidate.pitch_class_set() == inverted:
				return candidate

		raise ValueError(f"No structural inversion for {self.symbol()}")


	def pmn_relations (self, other: "Chord") -> typing.Set[typing.Tuple[int, int]]:

		"""Return the parsimonious voice-leading types from this chord to ``other``.

		Common tones are held; the remaining pitch classes are paired in every
		possible way. A pairing in which every voice moves by at most a whole
		tone contributes ``(m, n)``, the number of semitone and whole-tone moves.
		"""

		moving_from, moving_to = _pitch_class_differences(self, other)
		result: typing.Set[typing.Tuple[int, int]] = set()

		for targets in itertools.permutations(moving_to):

			steps = [chordwalk.tones.modd(a - b, 12) for a, b in zip(moving_from, targets)]

			if all(step <= 2 for step in steps):
				result.add((steps.count(1), steps.count(2)))

		return result


	def vl_efficiency_metric (self, other: "Chord") -> int:

		"""Return the smallest total semitone displacement from this chord to ``other``."""

		moving_from, moving_to = _pitch_class_differences(self, other)

		return min(
			sum(chordwalk.tones.modd(a - b, 12) for a, b in zip(moving_from, targets))
			for targets in itertools.permutations(moving_to)
		)


	def __str__ (self) -> str:

		return self.symbol()


def _pitch_class_differences (first: Chord, second: Chord) -> typing.Tuple[typing.List[int], typing.List[int]]:

	"""Return the sorted pitch classes unique to each chord."""

	a = first.pitch_class_set()
	b = second.pitch_class_set()

	return sorted(a - b), sorted(b - a)


def seventh_chords (quality: str) -> typing.List[Chord]:

	"""Return every distinct chord of one quality, ordered by root.

	Raises:
		ValueError: If the quality is unknown.
	"""

	if quality not in CHORD_INTERVALS:
		raise ValueError(f"Unknown chord quality: {quality}")

	count = 3 if quality == DIMINISHED else 12

	return [Chord(root, quality) for root in range(count)]


def all_seventh_chords () -> typing.List[Chord]:

	"""Return the 51 distinct seventh chords of the five qualities."""

	return [chord for quality in QUALITIES for chord in seventh_chords(quality)]


def chords_from_symbols (tokens: typing.Iterable[str]) -> typing.List[Chord]:

	"""Parse a list of chords, expanding bare family symbols.

	A token is either a chord (``"0:d7"``) or a quality symbol on its own
	(``"d7"``), which stands for every chord of that quality. Duplicates are
	dropped, first occurrence wins.

	Example:
		```python
		chords_from_symbols(["dim7", "0:d7"])  # 3 diminished sevenths, then C7
		```
	"""

	result: typing.List[Chord] = []

	for token in tokens:

		token = token.strip()

		if not token:
			continue

		if token in SYMBOL_TO_QUALITY:
			parsed = seventh_chords(SYMBOL_TO_QUALITY[token])
		else:
			parsed = [Chord.parse(token)]

		for chord in parsed:
			if chord not in result:
				result.append(chord)

	return result
