"""Tones and domains on the line of fifths.

A tone is identified by its position on the line of fifths, an integer axis on
which neighbouring positions are a perfect fifth apart. Position 0 is D, so
that the natural notes occupy the symmetric range ``-3..3`` (F C G D A E B).

Example:
	```python
	Tone(0).name()    # "D"
	Tone(4).name()    # "F#"
	Tone(-4).name()   # "Bb"
	Tone(-2).interval(Tone(2))  # (2, 4) - a major third from C to E
	```
"""

import dataclasses
import typing


NOTE_LETTERS: str = "CDEFGAB"
LILY_LETTERS: str = "cdefgab"

# Semitones above C of each natural note letter.
DIATONIC_SEMITONES: typing.Tuple[int, ...] = (0, 2, 4, 5, 7, 9, 11)


def modd (k: int, b: int) -> int:

	"""Return the shortest distance from 0 to ``k mod b`` on a cycle of length ``b``."""

	n = k % b

	if n > b // 2:
		return abs(n - b)

	return n


@dataclasses.dataclass(frozen=True, order=True)
class Tone:

	"""
	A spelled pitch class, stored as its position on the line of fifths.
	"""

	lof: int


	def note_name (self) -> int:

		"""Return the letter index (0 = C, 1 = D, ..., 6 = B)."""

		return (4 * self.lof + 1) % 7


	def pitch_class (self) -> int:

		"""Return the pitch class (0-11)."""

		return (7 * self.lof + 2) % 12


	def accidental (self) -> int:

		"""Return the number of sharps (positive) or flats (negative)."""

		return (self.lof + 3) // 7


	def interval (self, other: "Tone") -> typing.Tuple[int, int]:

		"""Return the ascending interval to ``other`` as ``(generic, specific)``.

		The generic size counts letter steps (0-6), the specific size counts
		semitones (0-11).
		"""

		generic = (other.note_name() - self.note_name()) % 7
		specific = (other.pitch_class() - self.pitch_class()) % 12

		return generic, specific


	def structural_inversion (self) -> "Tone":

		"""Mirror the tone around D."""

		return Tone(-self.lof)


	def transposed (self, steps: int) -> "Tone":

		"""Return the tone shifted by ``steps`` positions on the line of fifths."""

		return Tone(self.lof + steps)


	def name (self) -> str:

		"""Return the note name, e.g. ``"C#"``, ``"Bb"`` or ``"F##"``."""

		acc = self.accidental()
		sign = "#" if acc > 0 else "b"

		return NOTE_LETTERS[self.note_name()] + sign * abs(acc)


	def to_lily (self) -> str:

		"""Return the LilyPond note name, e.g. ``"cis"`` or ``"beses"``."""

		acc = self.accidental()
		suffix = "is" if acc > 0 else "es"

		return LILY_LETTERS[self.note_name()] + suffix * abs(acc)


	def lily_octave_marks (self, note: int) -> str:

		"""Return the LilyPond octave marks that place this tone at MIDI ``note``.

		LilyPond's unmarked octave starts at MIDI 48, so ``"e''"`` is MIDI 76.
		"""

		written = DIATONIC_SEMITONES[self.note_name()] + self.accidental()
		octave = (note - written) // 12 - 4

		return ("'" if octave > 0 else ",") * abs(octave)


	def __str__ (self) -> str:

		return self.name()


def lof_distance (a: Tone, b: Tone) -> int:

	"""Return the distance between two tones on the line of fifths."""

	return abs(a.lof - b.lof)


def interval_abs (a: Tone, b: Tone) -> typing.Tuple[int, int]:

	"""Return the smaller of the two intervals between ``a`` and ``b``."""

	ascending = a.interval(b)

	if ascending[1] <= 6:
		return ascending

	return b.interval(a)


def pitch_class_to_lof (pc: int) -> int:

	"""Return the position closest to D on the line of fifths with pitch class ``pc``.

	Ties are resolved in favour of the sharp side.
	"""

	pc = pc % 12
	k = 0

	while True:

		if Tone(k).pitch_class() == pc:
			return k

		if Tone(-k).pitch_class() == pc:
			return -k

		k += 1


class Domain:

	"""
	A finite set of positions on the line of fifths in which realizations may be spelled.
	"""

	def __init__ (self, positions: typing.Iterable[int] = ()) -> None:

		"""Create a domain from an iterable of line-of-fifths positions."""

		self._positions: typing.Set[int] = set(positions)


	@classmethod
	def usual (cls) -> "Domain":

		"""Return the domain from Gbb (-15) to A## (15)."""

		domain = cls()
		domain.insert_range(-15, 15)

		return domain


	@classmethod
	def parse (cls, text: str) -> "Domain":

		"""Parse a domain from text such as ``"-15:15"`` or ``"-7:-6,-4:-1;2"``.

		Items are separated by commas or semicolons; an item is either a single
		position or an inclusive ``lower:upper`` range.

		Raises:
			ValueError: If an item is not an integer or a range of integers.
		"""

		domain = cls()

		for item in text.replace(";", ",").split(","):

			item = item.strip()

			if not item:
				continue

			lower, sep, upper = item.partition(":")

			try:
				if sep:
					domain.insert_range(int(lower), int(upper))
				else:
					domain.insert(int(item))

			except ValueError:
				raise ValueError(f"Invalid domain item: {item!r}") from None

		return domain


	def insert (self, position: int) -> None:

		"""Add a single position."""

		self._positions.add(position)


	def insert_range (self, lower: int, upper: int) -> None:

		"""Add every position from ``lower`` to ``upper`` inclusive."""

		self._positions.update(range(lower, upper + 1))


	def lbound (self) -> int:

		"""Return the smallest position."""

		if not self._positions:
			raise ValueError("Domain is empty")

		return min(self._positions)


	def ubound (self) -> int:

		"""Return the largest position."""

		if not self._positions:
			raise ValueError("Domain is empty")

		return max(self._positions)


	def diameter (self) -> int:

		"""Return the distance between the extreme positions."""

		return self.ubound() - self.lbound()


	def contains (self, tones: typing.Iterable[Tone]) -> bool:

		"""Return True if every tone lies in this domain."""

		return all(tone.lof in self._positions for tone in tones)


	def __contains__ (self, position: object) -> bool:

		if isinstance(position, Tone):
			return position.lof in self._positions

		return position in self._positions


	def __iter__ (self) -> typing.Iterator[int]:

		return iter(sorted(self._positions))


	def __len__ (self) -> int:

		return len(self._positions)


	def __eq__ (self, other: object) -> bool:

		if not isinstance(other, Domain):
			return NotImplemented

		return self._positions == other._positions


	def __repr__ (self) -> str:

		return f"Domain({sorted(self._positions)})"
