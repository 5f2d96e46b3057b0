"""The graph of seventh chords connected by elementary transitions.

Each vertex of a `ChordGraph` carries a chord; an arc from one chord to another
exists when at least one elementary transition of the graph's class joins them,
and it carries those transitions (in parsimony order) as its payload.

Besides voicing searches, the graph offers shortest-path enumeration, four
centrality measures and a sampler for paths of a fixed length.
"""

import heapq
import logging
import math
import random
import typing

import numpy

import chordwalk.chords
import chordwalk.digraph
import chordwalk.matrix
import chordwalk.realizations
import chordwalk.tones
import chordwalk.transition_network
import chordwalk.transitions


logger = logging.getLogger(__name__)

DEFAULT_CLASS_INDEX: int = 7

# Orientations admitting more walks than this are too expensive to enumerate with Yen.
MAX_ORIENTED_WALKS: float = 2.5e5

DEFAULT_MAX_ORIENTATIONS: int = 1000

PathMap = typing.Dict[typing.Tuple[int, int], typing.List[typing.List[int]]]


class CentralityError (Exception):

	"""Raised when a centrality measure is undefined for the graph or vertex."""

	pass


class ChordGraph (chordwalk.digraph.WeightedDigraph):

	"""
	A digraph of chords whose arcs carry elementary transitions.
	"""

	def __init__ (
		self,
		chords: typing.Iterable[chordwalk.chords.Chord],
		class_index: int = DEFAULT_CLASS_INDEX,
		support: typing.Optional[chordwalk.tones.Domain] = None,
		preparation: chordwalk.transitions.PreparationScheme = chordwalk.transitions.PreparationScheme.NONE,
		allow_augmented: bool = False,
		use_labels: bool = True,
		weighted: bool = False
	) -> None:

		"""Build the graph over ``chords``.

		Parameters:
			chords: Chords to use as vertices, in order. Chords with no tonal
				realization in the support are skipped.
			class_index: Largest line-of-fifths move of a voice in a transition.
			support: Admissible line-of-fifths positions (default ``-15..15``).
			preparation: Requirement on the seventh of the second chord.
			allow_augmented: Spell dominant and half-diminished sevenths as
				augmented sixths too.
			use_labels: Label vertices with chord symbols instead of ids.
			weighted: Treat arc weights (default 1) as path costs.

		Example:
			```python
			graph = ChordGraph(chordwalk.chords.all_seventh_chords())
			graph.vertex_count()  # 51
			```
		"""

		super().__init__(weighted=weighted)

		if class_index < 1:
			raise ValueError(f"Class index must be positive, got {class_index}")

		self.class_index = class_index
		self.support = support if support is not None else chordwalk.tones.Domain.usual()
		self.preparation = preparation
		self.allow_augmented = allow_augmented

		self._chords: typing.List[chordwalk.chords.Chord] = []
		self._realizations: typing.List[typing.List[chordwalk.realizations.Realization]] = []

		for chord in chords:

			if chord in self._chords:
				continue

			realizations = chordwalk.realizations.tonal_realizations(chord, self.support, allow_augmented)

			if not realizations:
				logger.debug(f"Skipping {chord.symbol()}: no realization in the support")
				continue

			self.add_vertices(1, [chord.symbol()] if use_labels else None)
			self._chords.append(chord)
			self._realizations.append(realizations)

		for i, c1 in enumerate(self._chords, start=1):
			for j, c2 in enumerate(self._chords, start=1):

				if i == j:
					continue

				found = chordwalk.transitions.elementary_transitions(
					c1, c2, class_index, self.support, preparation, allow_augmented
				)

				if found:
					self.add_arc(i, j, data=found)

		logger.info(f"Chord graph: {self.vertex_count()} chords, {self.arc_count()} arcs, class {class_index}")


	def chords (self) -> typing.List[chordwalk.chords.Chord]:

		return list(self._chords)


	def vertex_chord (self, i: int) -> chordwalk.chords.Chord:

		self.check_vertex(i)

		return self._chords[i - 1]


	def find_vertex_by_chord (self, chord: chordwalk.chords.Chord) -> int:

		"""Return the vertex id of ``chord``, or 0 if it is not in the graph."""

		try:
			return self._chords.index(chord) + 1
		except ValueError:
			return 0


	def realizations (self, i: int) -> typing.List[chordwalk.realizations.Realization]:

		"""Return the tonal realizations of the chord at vertex ``i`` within the support."""

		self.check_vertex(i)

		return list(self._realizations[i - 1])


	def transitions (self, i: int, j: int) -> typing.Tuple[chordwalk.transitions.Transition, ...]:

		"""Return the elementary transitions on the arc from ``i`` to ``j``.

		Raises:
			ValueError: If there is no such arc.
		"""

		return typing.cast(typing.Tuple[chordwalk.transitions.Transition, ...], self.arc_data(i, j))


	def walk (self, chords: typing.Sequence[chordwalk.chords.Chord]) -> typing.List[int]:

		"""Return the vertex ids of a chord sequence.

		Raises:
			InvalidWalkError: If a chord is missing from the graph or two
				consecutive chords are not joined by an arc.
		"""

		if len(chords) < 2:
			raise chordwalk.transition_network.InvalidWalkError("A walk needs at least two chords")

		ids: typing.List[int] = []

		for chord in chords:

			i = self.find_vertex_by_chord(chord)

			if i == 0:
				raise chordwalk.transition_network.InvalidWalkError(f"{chord.symbol()} is not in the graph")

			if ids and self.arc(ids[-1], i) is None:
				raise chordwalk.transition_network.InvalidWalkError(
					f"No elementary transition from {self.vertex_chord(ids[-1]).symbol()} to {chord.symbol()}"
				)

			ids.append(i)

		return ids


	# Voicings

	def find_voicing (
		self,
		chords: typing.Sequence[chordwalk.chords.Chord],
		weights: typing.Sequence[float] = chordwalk.transition_network.DEFAULT_WEIGHTS,
		worst: bool = False
	) -> typing.Tuple[int, chordwalk.transition_network.Voicing]:

		"""Return ``(z, voicing)`` for the cheapest (or, with ``worst``, dearest) spelling of a progression.

		Raises:
			InvalidWalkError: If the chords do not form a walk in this graph.
		"""

		walk = self.walk(chords)

		return chordwalk.transition_network.find_optimal_voicing(self, walk, weights, worst=worst)


	def find_voicings (
		self,
		chords: typing.Sequence[chordwalk.chords.Chord],
		weights: typing.Sequence[float] = chordwalk.transition_network.DEFAULT_WEIGHTS
	) -> typing.List[typing.Tuple[int, chordwalk.transition_network.Voicing]]:

		"""Return every inequivalent optimal spelling of a progression as ``(z, voicing)`` pairs.

		Raises:
			InvalidWalkError: If the chords do not form a walk in this graph.
		"""

		walk = self.walk(chords)

		return chordwalk.transition_network.find_all_optimal_voicings(self, walk, weights)


	# Shortest paths

	def shortest_paths (self, src: int, dest: int) -> typing.List[typing.List[int]]:

		"""Return every shortest path from ``src`` to ``dest``, or [] if there is none.

		Raises:
			ValueError: If ``src == dest`` or either is not an active vertex.
		"""

		if src == dest:
			raise ValueError(f"Source and destination must differ, both are {src}")

		with self.masked():
			cheapest = self.cheapest_path(src, dest)

		if cheapest is None:
			return []

		cost = self.path_cost(cheapest)

		return self.yen(src, dest, 0, cost, cost)


	def all_shortest_paths (self) -> PathMap:

		"""Return the shortest paths between every ordered pair of distinct vertices."""

		path_map: PathMap = {}

		for j in self.vertex_ids():
			for k in self.vertex_ids():
				if j != k:
					path_map[(j, k)] = self.shortest_paths(j, k)

		return path_map


	# Centrality

	def closeness_centrality (self, i: int) -> float:

		"""Return ``(n - 1)`` divided by the sum of hop distances from ``i`` to every other vertex.

		Raises:
			CentralityError: If some vertex is unreachable from ``i`` or the graph has one vertex.
		"""

		self.check_vertex(i)

		n = self.vertex_count()

		with self.masked():
			self.bfs(i)
			distances = [self.distance(j) for j in self.vertex_ids() if j != i]

		if not distances:
			raise CentralityError("Closeness is undefined for a single vertex")

		if any(math.isinf(d) for d in distances):
			raise CentralityError(f"Not every vertex is reachable from {self.vertex(i).label}")

		return (n - 1) / sum(distances)


	def betweenness_centrality (self, i: int, path_map: typing.Optional[PathMap] = None) -> float:

		"""Return the mean, over ordered pairs of other vertices, of the fraction of their shortest paths through ``i``.

		A pair with no path between them contributes zero.

		Parameters:
			i: Vertex id.
			path_map: Precomputed `all_shortest_paths`; computed if omitted.

		Raises:
			CentralityError: If the graph has fewer than three vertices.
		"""

		self.check_vertex(i)

		n = self.vertex_count()

		if n < 3:
			raise CentralityError("Betweenness needs at least three vertices")

		if path_map is None:
			path_map = self.all_shortest_paths()

		fraction = 0.0

		for j in self.vertex_ids():
			for k in self.vertex_ids():

				if j == k or i in (j, k):
					continue

				paths = path_map.get((j, k), [])

				if paths:
					fraction += sum(1 for path in paths if i in path) / len(paths)

		return fraction / ((n - 1) * (n - 2))


	def communicability_betweenness_centrality (self, k: int) -> float:

		"""Return the mean relative loss of communicability between other vertices when ``k`` is blocked.

		Communicability is read from the exponential of the adjacency matrix;
		blocking ``k`` zeroes its column. Pairs that do not communicate at all
		contribute nothing.

		Raises:
			CentralityError: If the graph has fewer than three vertices.
		"""

		self.check_vertex(k)

		n = self.vertex_count()

		if n < 3:
			raise CentralityError("Communicability betweenness needs at least three vertices")

		adjacency = self.adjacency_matrix()
		blocked = adjacency.copy()

		for i in range(1, n + 1):
			blocked.set_element(i, k, 0.0)

		full = adjacency.exponential().to_array()
		reduced = blocked.exponential().to_array()

		total = 0.0

		for i in range(n):
			for j in range(n):

				if i == k - 1 or j == k - 1 or i == j:
					continue

				if full[i, j] == 0:
					continue

				total += 1.0 - reduced[i, j] / full[i, j]

		return total / ((n - 1) * (n - 2))


	def katz_centrality (self, k: int, reversed: bool = False, q: float = 0.9) -> float:

		"""Return the Katz centrality of ``k`` with attenuation ``q / max|eigenvalue|``.

		Parameters:
			k: Vertex id.
			reversed: Count walks ending at ``k`` instead of walks starting there.
			q: Fraction of the largest admissible attenuation, in ``(0, 1)``.

		Raises:
			ValueError: If ``q`` is outside ``(0, 1)``.
			CentralityError: If the adjacency matrix has no non-zero eigenvalue.
		"""

		self.check_vertex(k)

		if not 0 < q < 1:
			raise ValueError(f"q must lie strictly between 0 and 1, got {q}")

		adjacency = self.adjacency_matrix()
		eigenvalues = adjacency.eigenvalues()
		spectral_radius = abs(eigenvalues[0]) if eigenvalues else 0.0

		if spectral_radius == 0:
			raise CentralityError("Katz centrality is undefined when every eigenvalue is zero")

		adjacency.scale(-q / spectral_radius)

		resolvent = chordwalk.matrix.Matrix.identity(adjacency.size())
		resolvent.add(adjacency)
		inverse = resolvent.inverse().to_array()

		if reversed:
			return float(numpy.sum(inverse[:, k - 1]))

		return float(numpy.sum(inverse[k - 1, :]))


	# Fixed-length paths

	def _orient (self, ranks: typing.Sequence[int]) -> None:

		"""Disable every arc leading from a higher-ranked vertex to a lower-ranked one."""

		for arc in self.arcs():
			if ranks[arc.tail - 1] > ranks[arc.head - 1]:
				arc.active = False


	def _count_walks (self, src: int, dest: int, length: int) -> typing.Tuple[float, float]:

		"""Return ``(exact, total)``: walks of exactly ``length`` arcs and of 1 to ``length`` arcs."""

		adjacency = self.adjacency_matrix()
		power = adjacency.copy()
		total = power.element(src, dest)

		for step in range(2, length + 1):
			power.mul(adjacency, row=src, col=dest if step == length else 0)
			total += power.element(src, dest)

		return power.element(src, dest), total


	def find_fixed_length_paths (
		self,
		src: int,
		dest: int,
		length: int,
		limit: int,
		rng: typing.Optional[random.Random] = None,
		max_orientations: int = DEFAULT_MAX_ORIENTATIONS
	) -> typing.List[typing.List[int]]:

		"""Sample up to ``limit`` simple paths of exactly ``length`` arcs.

		This is a Monte-Carlo heuristic. Random vertex rankings orient the graph
		acyclically (arcs against the ranking are disabled), so that walks in
		the oriented graph are simple paths and can be counted with restricted
		matrix products. Orientations in which a large share of the walks from
		``src`` to ``dest`` have exactly ``length`` arcs are enumerated first,
		with Yen's algorithm bounded to ``length``. Sampling stops after
		``max_orientations`` rankings or when all rankings are used, so fewer
		than ``limit`` paths may be returned.

		Parameters:
			src: Source vertex id.
			dest: Destination vertex id, different from ``src``.
			length: Number of arcs per path.
			limit: Largest number of paths to return.
			rng: Random number generator (a fresh one if omitted).
			max_orientations: Upper bound on the number of sampled rankings.

		Returns:
			Distinct paths in lexicographic order.

		Raises:
			ValueError: If the endpoints are equal or invalid, or ``length`` or
				``limit`` is not positive.
		"""

		self.check_vertex(src)
		self.check_vertex(dest)

		if src == dest:
			raise ValueError(f"Source and destination must differ, both are {src}")

		if length < 1:
			raise ValueError(f"Path length must be positive, got {length}")

		if limit < 1:
			raise ValueError(f"Limit must be positive, got {limit}")

		if rng is None:
			rng = random.Random()

		n = self.vertex_count()
		ranking_count = math.factorial(n)

		found: typing.Set[typing.Tuple[int, ...]] = set()
		used: typing.Set[typing.Tuple[int, ...]] = set()
		pending: typing.List[typing.Tuple[float, typing.Tuple[int, ...], float]] = []
		expected = 0.0

		with self.masked():

			while len(found) < limit:

				while expected <= limit and len(used) < min(ranking_count, max_orientations):

					ranks = tuple(rng.sample(range(1, n + 1), n))

					if ranks in used:
						continue

					used.add(ranks)

					with self.masked():
						self._orient(ranks)
						exact, total = self._count_walks(src, dest, length)

					if exact > 0 and total <= MAX_ORIENTED_WALKS:
						heapq.heappush(pending, (total / exact, ranks, exact))
						expected += exact

				if not pending:
					break

				_, ranks, exact = heapq.heappop(pending)
				expected -= exact

				with self.masked():
					self._orient(ranks)
					paths = self.yen(src, dest, 0, length, length)

				for path in paths:

					found.add(tuple(path))

					if len(found) >= limit:
						break

		logger.info(f"Fixed-length paths {src} -> {dest} ({length} arcs): {len(found)} found from {len(used)} orientations")

		return [list(path) for path in sorted(found)[:limit]]
