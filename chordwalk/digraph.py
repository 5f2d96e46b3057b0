"""A directed graph with optionally weighted arcs and reversible masking.

Vertices are addressed by contiguous 1-based integer ids and arcs by the ordered
pair of their endpoints. Every vertex and arc carries an ``active`` flag;
searches ignore inactive elements. Algorithms that deactivate elements do so
inside `WeightedDigraph.masked`, which restores every flag on exit.

Example:
	```python
	graph = WeightedDigraph(weighted=True)
	graph.add_vertices(3)
	graph.add_arc(1, 2, 1.5)
	graph.add_arc(2, 3, 2.0)
	graph.dijkstra(1)
	graph.get_path(3)    # [1, 2, 3]
	graph.distance(3)    # 3.5
	```
"""

import collections
import contextlib
import dataclasses
import heapq
import logging
import math
import typing

import chordwalk.matrix
import chordwalk.yen


logger = logging.getLogger(__name__)

Path = typing.List[int]


@dataclasses.dataclass
class Vertex:

	"""
	A vertex and the scratch state of the most recent search.
	"""

	label: str
	active: bool = True
	parent: int = 0
	discovered: bool = False
	dist: float = math.inf


@dataclasses.dataclass
class Arc:

	"""
	An arc from ``tail`` to ``head`` with an optional payload.
	"""

	tail: int
	head: int
	weight: float = 1.0
	active: bool = True
	data: typing.Any = None


class WeightedDigraph:

	"""
	Directed graph supporting BFS, Dijkstra, Bellman-Ford and K shortest simple paths.
	"""

	def __init__ (self, weighted: bool = False) -> None:

		"""Create an empty graph.

		Parameters:
			weighted: If True, path costs are arc-weight sums; otherwise they
				are arc counts.
		"""

		self.weighted = weighted

		self._vertices: typing.List[Vertex] = []
		self._arcs: typing.List[Arc] = []
		self._out: typing.List[typing.List[int]] = []
		self._in: typing.List[typing.List[int]] = []
		self._arc_index: typing.Dict[typing.Tuple[int, int], int] = {}


	# Construction and lookup

	def add_vertices (self, count: int, labels: typing.Optional[typing.Sequence[str]] = None) -> int:

		"""Append ``count`` vertices and return the id of the first one.

		Vertices are labelled with their ids unless ``labels`` is given.
		"""

		if count < 0:
			raise ValueError(f"Vertex count must be non-negative, got {count}")

		if labels is not None and len(labels) != count:
			raise ValueError(f"Expected {count} labels, got {len(labels)}")

		first = len(self._vertices) + 1

		for offset in range(count):
			label = labels[offset] if labels is not None else str(first + offset)
			self._vertices.append(Vertex(label))
			self._out.append([])
			self._in.append([])

		return first


	def vertex_count (self) -> int:

		return len(self._vertices)


	def arc_count (self) -> int:

		return len(self._arcs)


	def vertex_ids (self) -> typing.List[int]:

		return list(range(1, len(self._vertices) + 1))


	def check_vertex (self, i: int) -> None:

		"""Raise ValueError unless ``i`` is a vertex id."""

		if not (1 <= i <= len(self._vertices)):
			raise ValueError(f"Vertex {i} out of range 1..{len(self._vertices)}")


	def vertex (self, i: int) -> Vertex:

		self.check_vertex(i)

		return self._vertices[i - 1]


	def add_arc (self, i: int, j: int, weight: float = 1.0, data: typing.Any = None) -> Arc:

		"""Add an arc from ``i`` to ``j``, or return the existing one unchanged."""

		self.check_vertex(i)
		self.check_vertex(j)

		if (i, j) in self._arc_index:
			return self._arcs[self._arc_index[(i, j)]]

		index = len(self._arcs)
		self._arcs.append(Arc(i, j, float(weight), True, data))
		self._arc_index[(i, j)] = index
		self._out[i - 1].append(index)
		self._in[j - 1].append(index)

		return self._arcs[index]


	def arc (self, i: int, j: int) -> typing.Optional[Arc]:

		"""Return the arc from ``i`` to ``j``, or None."""

		index = self._arc_index.get((i, j))

		return None if index is None else self._arcs[index]


	def arcs (self) -> typing.List[Arc]:

		return list(self._arcs)


	def arc_data (self, i: int, j: int) -> typing.Any:

		"""Return the payload of the arc from ``i`` to ``j``.

		Raises:
			ValueError: If there is no such arc.
		"""

		return self._require_arc(i, j).data


	def _require_arc (self, i: int, j: int) -> Arc:

		found = self.arc(i, j)

		if found is None:
			raise ValueError(f"No arc from {i} to {j}")

		return found


	def out_arcs (self, i: int) -> typing.List[Arc]:

		"""Return the active arcs leaving ``i``."""

		self.check_vertex(i)

		return [self._arcs[k] for k in self._out[i - 1] if self._arcs[k].active]


	def in_arcs (self, i: int) -> typing.List[Arc]:

		"""Return the active arcs entering ``i``."""

		self.check_vertex(i)

		return [self._arcs[k] for k in self._in[i - 1] if self._arcs[k].active]


	def out_degree (self, i: int) -> int:

		return len(self.out_arcs(i))


	def in_degree (self, i: int) -> int:

		return len(self.in_arcs(i))


	def set_weight (self, i: int, j: int, weight: float) -> None:

		self._require_arc(i, j).weight = float(weight)


	def negate_weights (self) -> None:

		"""Multiply every arc weight by -1."""

		for arc in self._arcs:
			arc.weight = -arc.weight


	# Masking

	def set_vertex_active (self, i: int, active: bool) -> None:

		self.vertex(i).active = active


	def set_arc_active (self, i: int, j: int, active: bool) -> None:

		self._require_arc(i, j).active = active


	def enable_all_vertices (self, enable: bool = True) -> None:

		for vertex in self._vertices:
			vertex.active = enable


	def enable_all_arcs (self, enable: bool = True) -> None:

		for arc in self._arcs:
			arc.active = enable


	@contextlib.contextmanager
	def masked (self) -> typing.Iterator["WeightedDigraph"]:

		"""Snapshot every active flag and restore it when the block exits.

		Restoration happens on normal exit, early return and exceptions alike,
		so masking changes made inside the block never leak out of it.

		Example:
			```python
			with graph.masked():
				graph.set_vertex_active(2, False)
				path = graph.bfs(1, 3)
			# vertex 2 is active again here
			```
		"""

		vertex_flags = [vertex.active for vertex in self._vertices]
		arc_flags = [arc.active for arc in self._arcs]

		try:
			yield self

		finally:
			for vertex, flag in zip(self._vertices, vertex_flags):
				vertex.active = flag
			for arc, flag in zip(self._arcs, arc_flags):
				arc.active = flag


	# Searches

	def _reset_search (self) -> None:

		for vertex in self._vertices:
			vertex.parent = 0
			vertex.discovered = False
			vertex.dist = math.inf


	def _check_endpoint (self, i: int, role: str) -> None:

		self.check_vertex(i)

		if not self._vertices[i - 1].active:
			raise ValueError(f"{role} vertex {i} is inactive")


	def _usable_arcs (self, i: int) -> typing.Iterator[Arc]:

		"""Yield active arcs leaving ``i`` whose head is active."""

		for k in self._out[i - 1]:

			arc = self._arcs[k]

			if arc.active and self._vertices[arc.head - 1].active:
				yield arc


	def bfs (self, src: int, dest: int = 0) -> typing.Optional[Path]:

		"""Breadth-first search from ``src``.

		With a destination, stops once it is dequeued and returns the path to
		it, or None if it is unreachable. Without one (``dest == 0``) visits
		every reachable vertex and returns None; hop counts are then available
		through `distance` and paths through `get_path`.

		Raises:
			ValueError: If ``src`` or ``dest`` is not an active vertex.
		"""

		self._check_endpoint(src, "Source")

		if dest:
			self._check_endpoint(dest, "Destination")

		self._reset_search()

		source = self._vertices[src - 1]
		source.discovered = True
		source.dist = 0

		queue = collections.deque([src])

		while queue:

			v = queue.popleft()

			if v == dest:
				return self.get_path(dest)

			for arc in self._usable_arcs(v):

				w = self._vertices[arc.head - 1]

				if not w.discovered:
					w.discovered = True
					w.parent = v
					w.dist = self._vertices[v - 1].dist + 1
					queue.append(arc.head)

		return None


	def dijkstra (self, src: int, dest: int = 0) -> None:

		"""Compute shortest distances from ``src`` over non-negative arc weights.

		If ``dest`` is given the search stops once it is settled. Results are
		read with `distance` and `get_path`.

		Raises:
			ValueError: If an endpoint is not an active vertex, or a usable arc
				has a negative weight.
		"""

		self._check_endpoint(src, "Source")

		if dest:
			self._check_endpoint(dest, "Destination")

		self._reset_search()
		self._vertices[src - 1].dist = 0.0

		heap: typing.List[typing.Tuple[float, int]] = [(0.0, src)]

		while heap:

			d, v = heapq.heappop(heap)
			vertex = self._vertices[v - 1]

			if vertex.discovered:
				continue

			vertex.discovered = True

			if v == dest:
				break

			for arc in self._usable_arcs(v):

				if arc.weight < 0:
					raise ValueError(f"Dijkstra requires non-negative weights, arc {arc.tail}->{arc.head} has {arc.weight}")

				w = self._vertices[arc.head - 1]
				candidate = d + arc.weight

				if not w.discovered and candidate < w.dist:
					w.dist = candidate
					w.parent = v
					heapq.heappush(heap, (candidate, arc.head))


	def bellman_ford (self, src: int) -> None:

		"""Compute shortest distances from ``src``, allowing negative arc weights.

		Raises:
			ValueError: If ``src`` is not an active vertex, or a negative cycle
				is reachable from it.
		"""

		self._check_endpoint(src, "Source")
		self._reset_search()
		self._vertices[src - 1].dist = 0.0

		usable = [
			arc for arc in self._arcs
			if arc.active and self._vertices[arc.tail - 1].active and self._vertices[arc.head - 1].active
		]

		for _ in range(len(self._vertices) - 1):

			changed = False

			for arc in usable:

				tail = self._vertices[arc.tail - 1]
				head = self._vertices[arc.head - 1]

				if tail.dist + arc.weight < head.dist:
					head.dist = tail.dist + arc.weight
					head.parent = arc.tail
					changed = True

			if not changed:
				break

		for arc in usable:
			if self._vertices[arc.tail - 1].dist + arc.weight < self._vertices[arc.head - 1].dist:
				raise ValueError(f"Negative cycle reachable from vertex {src}")


	def distance (self, i: int) -> float:

		"""Return the distance to ``i`` found by the last single-source search."""

		return self.vertex(i).dist


	def get_path (self, dest: int) -> typing.Optional[Path]:

		"""Reconstruct the path to ``dest`` from the last single-source search, or None."""

		vertex = self.vertex(dest)

		if math.isinf(vertex.dist):
			return None

		path = [dest]

		while vertex.parent:
			path.append(vertex.parent)
			vertex = self._vertices[vertex.parent - 1]

		path.reverse()

		return path


	def cheapest_path (self, src: int, dest: int) -> typing.Optional[Path]:

		"""Return a cheapest path: BFS when unweighted, Dijkstra when weighted."""

		if not self.weighted:
			return self.bfs(src, dest)

		self.dijkstra(src, dest)

		return self.get_path(dest)


	def path_weight (self, path: typing.Sequence[int]) -> float:

		"""Return the sum of arc weights along ``path``.

		Raises:
			ValueError: If two consecutive vertices are not joined by an arc.
		"""

		return sum(self._require_arc(a, b).weight for a, b in zip(path, path[1:]))


	def path_cost (self, path: typing.Sequence[int]) -> float:

		"""Return the weight of ``path`` if weighted, else its number of arcs."""

		if self.weighted:
			return self.path_weight(path)

		for a, b in zip(path, path[1:]):
			self._require_arc(a, b)

		return float(len(path) - 1)


	def yen (self, src: int, dest: int, k: int = 0, lower: float = 0.0, upper: float = math.inf) -> typing.List[Path]:

		"""Return up to ``k`` simple paths with cost in ``[lower, upper]``, cheapest first.

		See `chordwalk.yen.k_shortest_paths`.
		"""

		return chordwalk.yen.k_shortest_paths(self, src, dest, k, lower, upper)


	def adjacency_matrix (self) -> chordwalk.matrix.Matrix:

		"""Return the 0/1 matrix of active arcs, indexed by vertex id."""

		matrix = chordwalk.matrix.Matrix(len(self._vertices))

		for arc in self._arcs:
			if arc.active:
				matrix.set_element(arc.tail, arc.head, 1.0)

		return matrix
