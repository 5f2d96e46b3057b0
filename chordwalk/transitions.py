"""Elementary voice-leading transitions between seventh-chord realizations.

A `Transition` joins two realizations voice by voice: voice ``i`` of the first
realization moves to voice ``i`` of the second. Elementary transitions are the
parsimonious ones: every voice moves by at most the class index on the line of
fifths and the generic motion of the voices agrees with the motion of the
roots.

Transitions compare equal when they describe the same voice-leading map, i.e.
the same assignment of first-realization tones to second-realization tones,
regardless of voice order.
"""

import dataclasses
import enum
import itertools
import logging
import math
import typing

import chordwalk.chords
import chordwalk.realizations
import chordwalk.tones


logger = logging.getLogger(__name__)


class PreparationScheme (enum.Enum):

	"""How the seventh of the second chord must be prepared by the first."""

	NONE = "none"
	ACOUSTIC = "acoustic"
	ACOUSTIC_NO_DOMINANT = "acoustic_no_dominant"
	GENERIC = "generic"


# The symmetric group on four voices, in lexicographic order.
SYM4: typing.List[typing.Tuple[int, ...]] = list(itertools.permutations(range(4)))

# Every voice moving seven positions; excluded from the elementary transitions.
DEGENERATE_LOF_SHIFT: int = 28


@dataclasses.dataclass(frozen=True)
class GlueResult:

	"""
	How a realization connects to the start of a transition.

	Attributes:
		permutation: ``permutation[i]`` is the voice of the transition's first
			realization that voice ``i`` of the predecessor continues into.
		mandatory_cues: Number of voices whose spelling changes between the
			predecessor and the first realization, or 0 if the predecessor
			reaches the second realization within the class index.
		displacement: Sum of squared line-of-fifths distances from the
			predecessor to the second realization.
	"""

	permutation: typing.Tuple[int, ...]
	mandatory_cues: int
	displacement: int


@dataclasses.dataclass(frozen=True, eq=False)
class Transition:

	"""
	A voice leading from one realization to another.
	"""

	first: chordwalk.realizations.Realization
	second: chordwalk.realizations.Realization


	def voice_leading (self) -> typing.FrozenSet[typing.Tuple[chordwalk.tones.Tone, chordwalk.tones.Tone]]:

		"""Return the voice-leading map as a set of ``(from, to)`` tone pairs."""

		return frozenset(zip(self.first.tones, self.second.tones))


	def __eq__ (self, other: object) -> bool:

		if not isinstance(other, Transition):
			return NotImplemented

		return self.voice_leading() == other.voice_leading()


	def __hash__ (self) -> int:

		return hash(self.voice_leading())


	def __lt__ (self, other: "Transition") -> bool:

		return self.sort_key() < other.sort_key()


	def tone_set (self) -> typing.FrozenSet[chordwalk.tones.Tone]:

		"""Return the union of the tones of both realizations."""

		return self.first.tone_set() | self.second.tone_set()


	def _voice_distances (self) -> typing.List[int]:

		return [chordwalk.tones.lof_distance(a, b) for a, b in zip(self.first.tones, self.second.tones)]


	def mad (self, z: int) -> float:

		"""Return the mean absolute distance of the tones from ``z`` on the line of fifths."""

		tones = self.tone_set()

		return sum(abs(tone.lof - z) for tone in tones) / len(tones)


	def lof_distance (self, z: int, maximum: bool = True) -> int:

		"""Return the largest (or smallest) distance of a tone from ``z`` on the line of fifths."""

		distances = [abs(tone.lof - z) for tone in self.tone_set()]

		return max(distances) if maximum else min(distances)


	def diameter (self) -> int:

		lofs = [tone.lof for tone in self.tone_set()]

		return max(lofs) - min(lofs)


	def lof_spread (self) -> float:

		"""Return the standard deviation of the line-of-fifths positions of all tones."""

		lofs = [tone.lof for tone in self.tone_set()]
		mean = sum(lofs) / len(lofs)

		return math.sqrt(sum((mean - lof) ** 2 for lof in lofs) / len(lofs))


	def vl_lof_spread (self) -> float:

		"""Return the root mean square of the voice midpoints on the line of fifths."""

		midpoints = [(a.lof + b.lof) / 2.0 for a, b in zip(self.first.tones, self.second.tones)]

		return math.sqrt(sum(m * m for m in midpoints) / 4.0)


	def vl_shift (self) -> int:

		"""Return the total voice-leading shift in semitones."""

		return sum(
			chordwalk.tones.modd(a.pitch_class() - b.pitch_class(), 12)
			for a, b in zip(self.first.tones, self.second.tones)
		)


	def lof_shift (self) -> int:

		"""Return the total voice-leading shift on the line of fifths."""

		return sum(self._voice_distances())


	def directional_vl_shift (self) -> int:

		"""Return the absolute value of the signed total voice-leading shift."""

		total = 0

		for a, b in zip(self.first.tones, self.second.tones):

			d = (b.pitch_class() - a.pitch_class()) % 12

			if d > 6:
				d -= 12

			total += d

		return abs(total)


	def degree (self) -> int:

		"""Return the smallest class index admitting this transition."""

		return max(self._voice_distances())


	def common_pc_count (self) -> int:

		"""Return the number of tones shared by both realizations."""

		return 8 - len(self.tone_set())


	def augmented_count (self, tristan: bool = False) -> int:

		return int(self.first.is_augmented_sixth(tristan)) + int(self.second.is_augmented_sixth(tristan))


	def is_smooth (self) -> bool:

		"""Return True if every voice moves by at most a whole tone."""

		return all(
			chordwalk.tones.interval_abs(a, b)[1] <= 2
			for a, b in zip(self.first.tones, self.second.tones)
		)


	def is_efficient (self) -> bool:

		"""Return True if the voice-leading shift is the smallest possible between the two chords."""

		return self.vl_shift() <= self.first.chord.vl_efficiency_metric(self.second.chord)


	def is_prepared_generic (self) -> bool:

		"""Return True if the generic seventh of the second realization is held from the first."""

		voice = self.second.generic_seventh_voice()

		return self.first.tones[voice] == self.second.tones[voice]


	def is_closer_than (self, other: "Transition", z: int) -> bool:

		"""Return True if this transition lies closer to ``z`` on the line of fifths than ``other``."""

		mad_self = self.mad(z)
		mad_other = other.mad(z)

		if mad_self != mad_other:
			return mad_self < mad_other

		def midpoint_distance (t: "Transition") -> int:
			return sum(abs(a.lof + b.lof - 2 * z) for a, b in zip(t.first.tones, t.second.tones))

		return midpoint_distance(self) < midpoint_distance(other)


	def sort_key (self) -> typing.Tuple[typing.Any, ...]:

		"""Return the parsimony ordering key.

		More common tones come first, then smaller voice-leading shift,
		directional shift, line-of-fifths spread and voice-leading spread,
		and finally the spelling of both realizations.
		"""

		return (
			-self.common_pc_count(),
			self.vl_shift(),
			self.directional_vl_shift(),
			self.lof_spread(),
			self.vl_lof_spread(),
			sorted(self.first.lofs()),
			sorted(self.second.lofs()),
		)


	def glue (self, pred: chordwalk.realizations.Realization, class_index: int = 7) -> typing.Optional[GlueResult]:

		"""Connect a preceding realization to the start of this transition.

		Parameters:
			pred: Realization that precedes the transition; it must sound the
				same pitch classes as the first realization.
			class_index: Largest line-of-fifths move that needs no cue.

		Returns:
			The voice mapping and its costs, or ``None`` if ``pred`` is not
			enharmonically equal to the first realization.
		"""

		if not pred.is_enharmonically_equal(self.first):
			return None

		permutation: typing.List[int] = []

		for tone in pred.tones:
			permutation.append(next(
				j for j in range(4) if self.first.tones[j].pitch_class() == tone.pitch_class()
			))

		cues = 0
		displacement = 0
		within_class = True

		for i, tone in enumerate(pred.tones):

			d = chordwalk.tones.lof_distance(tone, self.second.tones[permutation[i]])

			if d > class_index:
				within_class = False

			displacement += d * d

			if tone.note_name() != self.first.tones[permutation[i]].note_name():
				cues += 1

		if within_class:
			cues = 0

		return GlueResult(tuple(permutation), cues, displacement)


	def is_enharmonically_equal (self, other: "Transition") -> bool:

		"""Return True if both transitions map the same pitch classes to the same pitch classes."""

		def pc_map (t: "Transition") -> typing.Dict[int, int]:
			return {a.pitch_class(): b.pitch_class() for a, b in zip(t.first.tones, t.second.tones)}

		return pc_map(self) == pc_map(other)


	def is_structurally_equal (self, other: "Transition", enharmonic: bool = False) -> bool:

		"""Return True if ``other`` transposed along the line of fifths equals this transition.

		With ``enharmonic`` the transposition must preserve pitch classes (a
		multiple of twelve positions), which makes the two transitions congruent.
		"""

		d = min(self.tone_set()).lof - min(other.tone_set()).lof

		if enharmonic and d % 12 != 0:
			return False

		return other.transposed(d) == self


	def is_congruent (self, other: "Transition") -> bool:

		return self.is_structurally_equal(other, enharmonic=True)


	def structural_inversion (self) -> "Transition":

		return Transition(self.first.structural_inverse(), self.second.structural_inverse())


	def retrograde (self) -> "Transition":

		return Transition(self.second, self.first)


	def transposed (self, steps: int) -> "Transition":

		return Transition(self.first.transposed(steps), self.second.transposed(steps))


	def __str__ (self) -> str:

		return f"{self.first.name()} -> {self.second.name()}"


def _is_prepared (
	r1: chordwalk.realizations.Realization,
	r2: chordwalk.realizations.Realization,
	c2: chordwalk.chords.Chord,
	preparation: PreparationScheme
) -> bool:

	"""Return True if the seventh of ``r2`` is prepared in ``r1`` under the given scheme."""

	if preparation == PreparationScheme.GENERIC:
		voice = r2.generic_seventh_voice()
		return r1.tones[voice] == r2.tones[voice]

	voice = r2.acoustic_seventh_voice()

	if preparation == PreparationScheme.NONE or voice < 0:
		return True

	if preparation == PreparationScheme.ACOUSTIC_NO_DOMINANT and c2.quality == chordwalk.chords.DOMINANT:
		return True

	return r1.tones[voice].pitch_class() == r2.tones[voice].pitch_class()


def elementary_transitions (
	c1: chordwalk.chords.Chord,
	c2: chordwalk.chords.Chord,
	class_index: int,
	domain: chordwalk.tones.Domain,
	preparation: PreparationScheme = PreparationScheme.NONE,
	allow_augmented: bool = False
) -> typing.Tuple[Transition, ...]:

	"""Return the elementary transitions of a class from ``c1`` to ``c2``.

	Every pairing of tonal realizations of the two chords within ``domain`` is
	tried under each of the 24 voice assignments. An assignment is admitted if
	no voice moves further than ``class_index`` on the line of fifths and the
	generic step of the voices matches the generic step of the roots.

	Parameters:
		c1: First chord.
		c2: Second chord.
		class_index: Largest admissible line-of-fifths move of a single voice.
		domain: Admissible line-of-fifths positions.
		preparation: Requirement on the seventh of the second chord.
		allow_augmented: Include augmented-sixth spellings.

	Returns:
		Distinct transitions in parsimony order.
	"""

	first_realizations = chordwalk.realizations.tonal_realizations(c1, domain, allow_augmented)
	second_realizations = chordwalk.realizations.tonal_realizations(c2, domain, allow_augmented)

	found: typing.Set[Transition] = set()

	for r1 in first_realizations:

		root1 = r1.tones[r1.generic_root_voice()]

		for r2 in second_realizations:

			root2 = r2.tones[r2.generic_root_voice()]
			root_step = chordwalk.tones.modd(2 * chordwalk.tones.lof_distance(root1, root2), 7)

			for perm in SYM4:

				distances = [chordwalk.tones.lof_distance(r1.tones[j], r2.tones[perm[j]]) for j in range(4)]

				if max(distances) > class_index:
					continue

				if sum(chordwalk.tones.modd(3 * d, 7) for d in distances) != root_step:
					continue

				arranged = r2.arranged(perm)
				transition = Transition(r1, arranged)

				if transition.lof_shift() == DEGENERATE_LOF_SHIFT:
					continue

				if _is_prepared(r1, arranged, c2, preparation):
					found.add(transition)

	logger.debug(f"{c1.symbol()} -> {c2.symbol()}: {len(found)} elementary transitions of class {class_index}")

	return tuple(sorted(found, key=Transition.sort_key))


def elementary_classes (
	c1: chordwalk.chords.Chord,
	c2: chordwalk.chords.Chord,
	class_index: int,
	preparation: PreparationScheme = PreparationScheme.NONE,
	z: int = 0,
	allow_augmented: bool = False
) -> typing.List[Transition]:

	"""Return one representative of each congruence class of elementary transitions.

	Transitions are generated in a window around ``z`` wide enough to contain
	every class; of congruent transitions the one closer to ``z`` is kept.
	"""

	radius = 11 + class_index // 2
	domain = chordwalk.tones.Domain(range(z - radius, z + radius + 1))

	representatives: typing.List[Transition] = []

	for transition in elementary_transitions(c1, c2, class_index, domain, preparation, allow_augmented):

		match = next((i for i, rep in enumerate(representatives) if transition.is_congruent(rep)), None)

		if match is None:
			representatives.append(transition)

		elif transition.is_closer_than(representatives[match], z):
			del representatives[match]
			representatives.append(transition)

	return sorted(representatives, key=Transition.sort_key)


def elementary_types (
	chords: typing.Sequence[chordwalk.chords.Chord],
	class_index: int,
	preparation: PreparationScheme = PreparationScheme.NONE,
	z: int = 0,
	allow_augmented: bool = False
) -> typing.List[Transition]:

	"""Return one representative of each structural type among the classes between any two of ``chords``.

	Two classes share a type when they are structurally equal; without a
	preparation requirement a transition and its retrograde share a type too.
	Of transitions of the same type the one closer to D is kept.
	"""

	types: typing.List[Transition] = []

	for c1 in chords:
		for c2 in chords:

			if c1 == c2:
				continue

			for transition in elementary_classes(c1, c2, class_index, preparation, z, allow_augmented):

				match = next(
					(
						i for i, rep in enumerate(types)
						if transition.is_structurally_equal(rep)
						or (preparation == PreparationScheme.NONE and transition.is_structurally_equal(rep.retrograde()))
					),
					None
				)

				if match is None:
					types.append(transition)

				elif transition.is_closer_than(types[match], 0):
					del types[match]
					types.append(transition)

	return sorted(types, key=Transition.sort_key)
