"""Optimal spellings of a chord progression through a layered transition network.

For a walk ``c0, c1, ..., cL`` in a `chordwalk.chord_graph.ChordGraph`, a fixed
starting realization ``X0`` of ``c0`` and a tonal center ``z``, the network has
one level per progression step. Level ``l`` holds one vertex per elementary
transition on the chord-graph arc from ``c(l-1)`` to ``cl``, and every vertex
of level ``l`` is joined to every vertex of level ``l + 1``. A source-to-sink
path picks one transition per step; gluing consecutive transitions yields a
voicing of the whole progression.

Arc weights combine three criteria:

- distance of the reached realization from ``z`` on the line of fifths,
- voice-leading displacement of the glue,
- use of augmented-sixth spellings.

The module-level helpers search all starting realizations and tonal centers
for the globally optimal voicing(s) and bring them into a canonical voice order.
"""

import itertools
import logging
import math
import typing

import chordwalk.digraph
import chordwalk.realizations
import chordwalk.tones
import chordwalk.transitions

if typing.TYPE_CHECKING:
	import chordwalk.chord_graph


logger = logging.getLogger(__name__)

DEFAULT_WEIGHTS: typing.Tuple[float, float, float] = (1.0, 1.75, 0.25)

# Line-of-fifths distances are measured in units of this many positions.
LOF_UNIT: int = 7

COST_TOLERANCE: float = 1e-9

Voicing = typing.List[typing.Tuple[chordwalk.realizations.Realization, bool]]


class InvalidWalkError (Exception):

	"""Raised when a chord sequence or starting realization does not fit the chord graph."""

	pass


class TransitionNetwork (chordwalk.digraph.WeightedDigraph):

	"""
	A strictly layered network of transitions for one walk, start and tonal center.
	"""

	def __init__ (
		self,
		graph: "chordwalk.chord_graph.ChordGraph",
		walk: typing.Sequence[int],
		start: chordwalk.realizations.Realization,
		weights: typing.Sequence[float] = DEFAULT_WEIGHTS,
		z: int = 0
	) -> None:

		"""Build the network.

		Parameters:
			graph: The chord graph the walk lives in.
			walk: Vertex ids of the progression, at least two.
			start: Realization of the first chord the voicing starts from.
			weights: Weights of the spread, voice-leading and augmented-sixth terms.
			z: Tonal center on the line of fifths.

		Raises:
			ValueError: If ``weights`` does not have three entries.
			InvalidWalkError: If the walk is too short, is not a walk in the
				graph, or ``start`` does not connect to its first step.
		"""

		super().__init__(weighted=True)

		if len(weights) != 3:
			raise ValueError(f"Expected three weights, got {len(weights)}")

		if len(walk) < 2:
			raise InvalidWalkError("A walk needs at least two chords")

		first_chord = graph.vertex_chord(walk[0])

		if not start.spells(first_chord):
			raise InvalidWalkError(f"{start.name()} does not spell {first_chord.symbol()}")

		self.start = start
		self.z = z
		self.weights = tuple(float(w) for w in weights)
		self.class_index = graph.class_index

		self._transitions: typing.List[chordwalk.transitions.Transition] = []
		self._levels: typing.List[typing.List[int]] = []

		for i, j in zip(walk, walk[1:]):

			if graph.arc(i, j) is None:
				raise InvalidWalkError(
					f"No elementary transition from {graph.vertex_chord(i).symbol()} to {graph.vertex_chord(j).symbol()}"
				)

			level_transitions = graph.transitions(i, j)
			first = self.add_vertices(len(level_transitions), [str(t) for t in level_transitions])
			self._transitions.extend(level_transitions)
			self._levels.append(list(range(first, first + len(level_transitions))))

		self._entry_glue: typing.Dict[int, chordwalk.transitions.GlueResult] = {}
		self._entry_cost: typing.Dict[int, float] = {}

		for v in self._levels[0]:

			t = self.transition(v)
			glue = t.glue(start, self.class_index)

			if glue is None:
				raise InvalidWalkError(f"{start.name()} does not connect to {t}")

			self._entry_glue[v] = glue
			self._entry_cost[v] = (
				self._spread_cost(start)
				+ self._augmented_cost(start)
				+ self._step_cost(t.second, glue.displacement)
			)

		for level, (lower, upper) in enumerate(zip(self._levels, self._levels[1:])):
			for v in lower:

				t1 = self.transition(v)

				for w in upper:

					t2 = self.transition(w)
					glue = t2.glue(t1.second, self.class_index)

					if glue is None:
						raise InvalidWalkError(f"{t1} does not connect to {t2}")

					weight = self._step_cost(t2.second, glue.displacement)

					if level == 0:
						weight += self._entry_cost[v]

					self.add_arc(v, w, weight, data=glue)

		logger.debug(f"Transition network: {self.num_levels()} levels, {self.vertex_count()} vertices, {self.num_paths()} paths")


	def _spread_cost (self, realization: chordwalk.realizations.Realization) -> float:

		return self.weights[0] * realization.lof_point_distance(self.z) / LOF_UNIT


	def _augmented_cost (self, realization: chordwalk.realizations.Realization) -> float:

		return self.weights[2] if realization.is_augmented_sixth() else 0.0


	def _step_cost (self, realization: chordwalk.realizations.Realization, displacement: int) -> float:

		"""Return the cost of reaching ``realization`` with the given squared displacement."""

		return (
			self._spread_cost(realization)
			+ self.weights[1] * math.sqrt(displacement / 4.0) / self.class_index
			+ self._augmented_cost(realization)
		)


	def transition (self, v: int) -> chordwalk.transitions.Transition:

		self.check_vertex(v)

		return self._transitions[v - 1]


	def num_levels (self) -> int:

		return len(self._levels)


	def num_paths (self) -> int:

		"""Return the number of source-to-sink paths."""

		return math.prod(len(level) for level in self._levels)


	def levels (self) -> typing.List[typing.List[int]]:

		return [list(level) for level in self._levels]


	def sources (self) -> typing.List[int]:

		return list(self._levels[0])


	def sinks (self) -> typing.List[int]:

		return list(self._levels[-1])


	def entry_cost (self, v: int) -> float:

		"""Return the cost of gluing the starting realization to the level-1 vertex ``v``."""

		return self._entry_cost[v]


	def total_weight (self, path: typing.Sequence[int]) -> float:

		"""Return the cost of a source-to-sink path.

		The entry cost is folded into the level-1 arcs, so for networks with
		more than one level this is the arc-weight sum. A one-level path has
		no arcs and costs its entry.
		"""

		if len(path) == 1:
			return self._entry_cost[path[0]]

		return self.path_weight(path)


	def _extreme_path (self, maximize: bool) -> typing.List[int]:

		"""Return the cheapest source-to-sink path, or with ``maximize`` the dearest.

		Maximizing expects the arc weights to be negated already and searches
		with Bellman-Ford.
		"""

		if self.num_levels() == 1:
			choose = max if maximize else min
			return [choose(self.sources(), key=lambda v: self._entry_cost[v])]

		best: typing.Optional[typing.List[int]] = None
		best_weight: typing.Optional[float] = None

		with self.masked():

			self.enable_all_vertices()
			self.enable_all_arcs()

			for source in self.sources():

				if maximize:
					self.bellman_ford(source)
				else:
					self.dijkstra(source)

				for sink in self.sinks():

					path = self.get_path(sink)

					if path is None:
						continue

					weight = self.path_weight(path)

					if best_weight is None or weight < best_weight:
						best = path
						best_weight = weight

		if best is None:
			raise InvalidWalkError("The transition network has no source-to-sink path")

		return best


	def best_path (self) -> typing.List[int]:

		"""Return a cheapest source-to-sink path."""

		return self._extreme_path(maximize=False)


	def worst_path (self) -> typing.List[int]:

		"""Return a dearest source-to-sink path.

		Weights are negated for a Bellman-Ford search and restored afterwards.
		"""

		self.negate_weights()

		try:
			return self._extreme_path(maximize=True)

		finally:
			self.negate_weights()


	def best_paths (self) -> typing.Tuple[float, typing.List[typing.List[int]]]:

		"""Return ``(theta, paths)``: the optimal cost and every path attaining it."""

		theta = self.total_weight(self.best_path())

		if self.num_levels() == 1:
			tolerance = COST_TOLERANCE * max(1.0, abs(theta))
			return theta, [[v] for v in self.sources() if self._entry_cost[v] <= theta + tolerance]

		paths: typing.List[typing.List[int]] = []

		for source in self.sources():
			for sink in self.sinks():
				paths.extend(self.yen(source, sink, 0, theta, theta))

		return theta, paths


	def realize_path (self, path: typing.Sequence[int]) -> Voicing:

		"""Turn a source-to-sink path into a voicing.

		The voicing starts with the starting realization. Each step contributes
		the second realization of its transition, with voices reordered so that
		voice ``i`` always continues voice ``i`` of the start. Where a glue
		respells tones, the respelled realization is inserted as a cue.
		"""

		if not path:
			raise ValueError("Cannot realize an empty path")

		glue = self._entry_glue[path[0]]
		f: typing.Tuple[int, ...] = glue.permutation

		voicing: Voicing = [(self.start, False)]

		if glue.mandatory_cues:
			voicing.append((self.transition(path[0]).first.arranged(f), True))

		for index, v in enumerate(path):

			voicing.append((self.transition(v).second.arranged(f), False))

			if index + 1 < len(path):

				w = path[index + 1]
				arc_glue: chordwalk.transitions.GlueResult = self.arc_data(v, w)
				f = compose(f, arc_glue.permutation)

				if arc_glue.mandatory_cues:
					voicing.append((self.transition(w).first.arranged(f), True))

		return voicing


def compose (f1: typing.Sequence[int], f2: typing.Sequence[int]) -> typing.Tuple[int, ...]:

	"""Return the voice mapping ``i -> f2[f1[i]]``."""

	return tuple(f2[f1[i]] for i in range(len(f1)))


def _is_fifth (a: chordwalk.tones.Tone, b: chordwalk.tones.Tone) -> bool:

	generic, specific = a.interval(b)

	return generic == 4 and specific in (6, 7)


def count_parallel_fifths (voicing: Voicing) -> int:

	"""Count pairs of voices moving in parallel perfect or diminished fifths.

	Two voices ``l < u`` form a parallel fifth between consecutive entries when
	voice ``l`` changes pitch class and both entries have a fifth from voice
	``l`` up to voice ``u``.
	"""

	count = 0

	for (pred, _), (current, _) in zip(voicing, voicing[1:]):
		for lower, upper in itertools.combinations(range(4), 2):

			if pred.tones[lower].pitch_class() == current.tones[lower].pitch_class():
				continue

			if _is_fifth(pred.tones[lower], pred.tones[upper]) and _is_fifth(current.tones[lower], current.tones[upper]):
				count += 1

	return count


def _arrangement_key (voicing: Voicing) -> typing.Tuple[int, int, int, typing.Tuple[int, ...]]:

	generic_total = 0
	specific_total = 0

	for realization, cue in voicing:

		if cue:
			continue

		for i in range(3):
			generic, specific = realization.tones[i].interval(realization.tones[i + 1])
			generic_total += generic
			specific_total += specific

	lofs = tuple(lof for realization, _ in voicing for lof in realization.lofs())

	return count_parallel_fifths(voicing), generic_total, specific_total, lofs


def arrange_voices (voicing: Voicing) -> Voicing:

	"""Return the voicing with its voices put in canonical order.

	All 24 orders are tried, the same order being applied to every entry. The
	order with the fewest parallel fifths wins; ties go to the smallest total
	generic and then specific interval between adjacent voices (cues
	excluded), and finally to the smallest line-of-fifths sequence. Arranging
	an arranged voicing leaves it unchanged.

	Example:
		```python
		canonical = arrange_voices(voicing)
		arrange_voices(canonical) == canonical  # True
		```
	"""

	candidates = [
		[(realization.arranged(perm), cue) for realization, cue in voicing]
		for perm in chordwalk.transitions.SYM4
	]

	return min(candidates, key=_arrangement_key)


def are_voicings_equivalent (v1: Voicing, v2: Voicing) -> bool:

	"""Return True if ``v2`` shifted by a multiple of twelve on the line of fifths matches ``v1``.

	Voicings match when they have the same length and cue pattern and each
	entry of ``v1`` has the same tones as the shifted entry of ``v2``.
	"""

	if len(v1) != len(v2):
		return False

	if not v1:
		return True

	shift = min(v1[0][0].lofs()) - min(v2[0][0].lofs())

	if shift % 12 != 0:
		return False

	for (r1, cue1), (r2, cue2) in zip(v1, v2):

		if cue1 != cue2:
			return False

		if r1.tone_set() != r2.transposed(shift).tone_set():
			return False

	return True


def find_optimal_voicing (
	graph: "chordwalk.chord_graph.ChordGraph",
	walk: typing.Sequence[int],
	weights: typing.Sequence[float] = DEFAULT_WEIGHTS,
	worst: bool = False
) -> typing.Tuple[int, Voicing]:

	"""Return ``(z, voicing)`` optimal over every starting realization and tonal center.

	Every tonal realization of the first chord in the graph's support is tried
	as a start, with every position of the support as tonal center.

	Parameters:
		graph: The chord graph.
		walk: Vertex ids of the progression.
		weights: Cost weights (see `TransitionNetwork`).
		worst: Maximize the cost instead of minimizing it.

	Raises:
		InvalidWalkError: If the walk does not fit the graph.
	"""

	best: typing.Optional[typing.Tuple[float, int, Voicing]] = None

	for start in graph.realizations(walk[0]):
		for z in graph.support:

			network = TransitionNetwork(graph, walk, start, weights, z)
			path = network.worst_path() if worst else network.best_path()
			cost = network.total_weight(path)

			if best is None or (cost > best[0] if worst else cost < best[0]):
				best = (cost, z, network.realize_path(path))

	if best is None:
		raise InvalidWalkError("The first chord has no realization in the support")

	cost, z, voicing = best
	logger.info(f"{'Worst' if worst else 'Best'} voicing: cost {cost:.4f} at z = {z}")

	return z, arrange_voices(voicing)


def find_all_optimal_voicings (
	graph: "chordwalk.chord_graph.ChordGraph",
	walk: typing.Sequence[int],
	weights: typing.Sequence[float] = DEFAULT_WEIGHTS
) -> typing.List[typing.Tuple[int, Voicing]]:

	"""Return every inequivalent optimal voicing as ``(z, voicing)`` pairs.

	Of equivalent voicings (see `are_voicings_equivalent`) the one found with
	the tonal center nearest 0 is kept. Voicings come back arranged and
	ordered by ``|z|``.

	Raises:
		InvalidWalkError: If the walk does not fit the graph.
	"""

	found: typing.List[typing.Tuple[float, int, Voicing]] = []

	for start in graph.realizations(walk[0]):
		for z in graph.support:

			network = TransitionNetwork(graph, walk, start, weights, z)
			theta, paths = network.best_paths()

			found.extend((theta, z, network.realize_path(path)) for path in paths)

	if not found:
		return []

	theta0 = min(theta for theta, _, _ in found)
	limit = theta0 + COST_TOLERANCE * max(1.0, abs(theta0))

	optimal = sorted(
		((z, voicing) for theta, z, voicing in found if theta <= limit),
		key=lambda item: (abs(item[0]), item[0])
	)

	kept: typing.List[typing.Tuple[int, Voicing]] = []

	for z, voicing in optimal:
		if not any(are_voicings_equivalent(voicing, other) for _, other in kept):
			kept.append((z, voicing))

	logger.info(f"Optimal voicings: {len(kept)} inequivalent of {len(optimal)} at cost {theta0:.4f}")

	return [(z, arrange_voices(voicing)) for z, voicing in kept]


def format_voicing (voicing: Voicing) -> str:

	"""Render one realization per line, cues in parentheses."""

	lines = []

	for realization, cue in voicing:
		lines.append(f"({realization.name()})" if cue else realization.name())

	return "\n".join(lines)
