"""Four-voice spellings of seventh chords on the line of fifths.

A `Realization` assigns a tone (a line-of-fifths position) to each of four
voices. Voice order is significant: voice ``i`` of one realization moves to
voice ``i`` of the next in a voice leading.

The tonal realizations of a chord are the placements of a fixed line-of-fifths
pattern for its quality. Dominant and half-diminished sevenths additionally
have augmented-sixth spellings (German sixth and Tristan chord) in which the
seventh is respelled as an augmented sixth.
"""

import dataclasses
import itertools
import math
import typing

import chordwalk.chords
import chordwalk.tones


GERMAN_SIXTH: str = "german_sixth"
TRISTAN: str = "tristan"

# Line-of-fifths offsets of the four voices relative to a base position.
LOF_STRUCTURES: typing.Dict[str, typing.Tuple[int, int, int, int]] = {
	chordwalk.chords.DOMINANT: (-2, 0, 1, 4),
	chordwalk.chords.HALF_DIMINISHED: (-6, -3, -2, 0),
	chordwalk.chords.MINOR: (-3, -2, 0, 1),
	chordwalk.chords.MAJOR: (0, 1, 4, 5),
	chordwalk.chords.DIMINISHED: (-9, -6, -3, 0),
	GERMAN_SIXTH: (0, 1, 4, 10),
	TRISTAN: (0, 6, 9, 10),
}

AUGMENTED_SIXTHS: typing.Dict[str, str] = {
	chordwalk.chords.DOMINANT: GERMAN_SIXTH,
	chordwalk.chords.HALF_DIMINISHED: TRISTAN,
}

TYPE_SYMBOLS: typing.Dict[str, str] = dict(chordwalk.chords.CHORD_SYMBOLS, **{GERMAN_SIXTH: "Ger6+", TRISTAN: "TC"})


@dataclasses.dataclass(frozen=True)
class Realization:

	"""
	A chord together with the tones of its four voices.
	"""

	chord: chordwalk.chords.Chord
	tones: typing.Tuple[chordwalk.tones.Tone, ...]


	def __post_init__ (self) -> None:

		if len(self.tones) != 4:
			raise ValueError(f"A realization has four voices, got {len(self.tones)}")


	@classmethod
	def from_lofs (cls, chord: chordwalk.chords.Chord, lofs: typing.Iterable[int]) -> "Realization":

		"""Build a realization from line-of-fifths positions."""

		return cls(chord, tuple(chordwalk.tones.Tone(lof) for lof in lofs))


	def lofs (self) -> typing.Tuple[int, ...]:

		return tuple(tone.lof for tone in self.tones)


	def tone_set (self) -> typing.FrozenSet[chordwalk.tones.Tone]:

		return frozenset(self.tones)


	def pitch_class_set (self) -> typing.FrozenSet[int]:

		return frozenset(tone.pitch_class() for tone in self.tones)


	def is_enharmonically_equal (self, other: "Realization") -> bool:

		"""Return True if both realizations sound the same pitch classes."""

		return self.pitch_class_set() == other.pitch_class_set()


	def spells (self, chord: chordwalk.chords.Chord) -> bool:

		"""Return True if this realization sounds exactly the pitch classes of ``chord``."""

		return self.pitch_class_set() == chord.pitch_class_set()


	def _generic_second (self) -> typing.Tuple[int, int, int]:

		"""Return ``(i, j, specific)`` for the unique pair of voices a generic second apart."""

		found = [
			(i, j, self.tones[i].interval(self.tones[j])[1])
			for i in range(4)
			for j in range(4)
			if i != j and self.tones[i].interval(self.tones[j])[0] == 1
		]

		if len(found) != 1:
			raise ValueError(f"{self.name()} is not a tonal seventh-chord spelling")

		return found[0]


	def generic_root_voice (self) -> int:

		"""Return the voice holding the generic root (upper note of the generic second)."""

		return self._generic_second()[1]


	def generic_seventh_voice (self) -> int:

		"""Return the voice holding the generic seventh (lower note of the generic second)."""

		return self._generic_second()[0]


	def acoustic_seventh_voice (self) -> int:

		"""Return the first voice lying a semitone or whole tone below another voice, or -1."""

		for i in range(4):
			for j in range(4):
				if (self.tones[j].pitch_class() - self.tones[i].pitch_class()) % 12 in (1, 2):
					return i

		return -1


	def realized_type (self) -> str:

		"""Return the chord quality as spelled.

		A dominant seventh whose generic second spans three semitones is spelled
		as a German sixth; a half-diminished seventh likewise as a Tristan chord.
		"""

		specific = self._generic_second()[2]
		quality = self.chord.quality

		if quality in AUGMENTED_SIXTHS and specific == 3:
			return AUGMENTED_SIXTHS[quality]

		return quality


	def is_augmented_sixth (self, tristan: bool = False) -> bool:

		"""Return True for a Tristan chord, or for a German sixth unless ``tristan`` is set."""

		realized = self.realized_type()

		return realized == TRISTAN or (not tristan and realized == GERMAN_SIXTH)


	def arranged (self, perm: typing.Sequence[int]) -> "Realization":

		"""Return the realization with voice ``i`` taken from voice ``perm[i]``."""

		return Realization(self.chord, tuple(self.tones[perm[i]] for i in range(4)))


	def transposed (self, steps: int) -> "Realization":

		"""Shift every voice ``steps`` positions along the line of fifths."""

		chord = dataclasses.replace(self.chord, root_pc=self.chord.root_pc + 7 * steps)

		return Realization(chord, tuple(tone.transposed(steps) for tone in self.tones))


	def structural_inverse (self) -> "Realization":

		"""Mirror the realization around D, reversing the voice order."""

		return Realization(
			self.chord.structural_inversion(),
			tuple(self.tones[3 - i].structural_inversion() for i in range(4))
		)


	def lof_point_distance (self, z: int) -> float:

		"""Return the distance from the tonal center ``z`` on the line of fifths."""

		return math.sqrt(sum((tone.lof - z) ** 2 for tone in self.tone_set())) / 2.0


	def check_fifths (self) -> bool:

		"""Return True if every generic fifth between two voices is perfect or diminished."""

		for a, b in itertools.permutations(self.tones, 2):

			generic, specific = a.interval(b)

			if generic == 4 and specific not in (6, 7):
				return False

		return True


	def name (self) -> str:

		"""Return the tones joined by dashes, e.g. ``"Bb-C-G-E"``."""

		return "-".join(tone.name() for tone in self.tones)


	def to_lily (self, notes: typing.Optional[typing.Sequence[int]] = None, marked_voice: typing.Optional[int] = None) -> str:

		"""Return the realization as a LilyPond chord, e.g. ``"<bes c g e>"``.

		Parameters:
			notes: One MIDI note per voice; adds octave marks to every pitch.
			marked_voice: Voice drawn with a filled note head.
		"""

		pitches = []

		for voice, tone in enumerate(self.tones):

			pitch = tone.to_lily()

			if notes is not None:
				pitch += tone.lily_octave_marks(notes[voice])

			if voice == marked_voice:
				pitch = "\\tweak duration-log #2 " + pitch

			pitches.append(pitch)

		return "<" + " ".join(pitches) + ">"


	def __str__ (self) -> str:

		return self.name()


def tonal_realizations (
	chord: chordwalk.chords.Chord,
	domain: chordwalk.tones.Domain,
	allow_augmented: bool = False
) -> typing.List[Realization]:

	"""Return every tonal spelling of ``chord`` whose tones lie in ``domain``.

	Parameters:
		chord: The chord to spell.
		domain: Admissible line-of-fifths positions.
		allow_augmented: Also spell dominant sevenths as German sixths and
			half-diminished sevenths as Tristan chords.

	Returns:
		Realizations ordered by their base position on the line of fifths.

	Example:
		```python
		domain = chordwalk.tones.Domain.usual()
		tonal_realizations(Chord.parse("0:d7"), domain)[0].name()
		```
	"""

	if len(domain) == 0:
		return []

	structures = [LOF_STRUCTURES[chord.quality]]

	if allow_augmented and chord.quality in AUGMENTED_SIXTHS:
		structures.append(LOF_STRUCTURES[AUGMENTED_SIXTHS[chord.quality]])

	result: typing.List[Realization] = []

	for base in range(domain.lbound(), domain.ubound() + 1):

		for structure in structures:

			candidate = Realization.from_lofs(chord, (base + offset for offset in structure))

			if domain.contains(candidate.tones) and candidate.spells(chord):
				result.append(candidate)

	return result
