"""K shortest simple paths (Yen's algorithm) with cost bounds.

Paths already found are kept in a prefix tree (`PathStore`) so that paths
sharing a prefix share nodes. For each spur vertex along the most recently
accepted path, the arcs that selected paths with the same prefix take out of
the spur vertex are disabled, as are the prefix vertices before it, and the
cheapest remaining path from the spur vertex to the destination becomes a
candidate. The cheapest candidate is accepted next.

All masking happens inside `WeightedDigraph.masked`, so the graph is left
exactly as it was found.
"""

import heapq
import logging
import math
import typing

if typing.TYPE_CHECKING:
	import chordwalk.digraph


logger = logging.getLogger(__name__)

# Relative tolerance for comparing floating-point path costs with the bounds.
COST_TOLERANCE: float = 1e-9


class PathStore:

	"""
	A prefix tree of paths from a common source.

	Node 0 is the root and stands for the source vertex. Every other node
	stands for the real vertex on its incoming tree edge; a node's children
	denote distinct real vertices.
	"""

	def __init__ (self, source: int) -> None:

		self._real: typing.List[int] = [source]
		self._parent: typing.List[int] = [-1]
		self._selected: typing.List[bool] = [True]
		self._children: typing.List[typing.Dict[int, int]] = [{}]


	def __len__ (self) -> int:

		return len(self._real)


	def insert (self, path: typing.Sequence[int], node: int = 0) -> int:

		"""Hang ``path[1:]`` below ``node`` and return the node of its last vertex.

		``path[0]`` must be the vertex that ``node`` stands for.
		"""

		if path[0] != self._real[node]:
			raise ValueError(f"Path starts at {path[0]}, node stands for {self._real[node]}")

		for vertex in path[1:]:

			child = self._children[node].get(vertex)

			if child is None:
				child = len(self._real)
				self._real.append(vertex)
				self._parent.append(node)
				self._selected.append(False)
				self._children.append({})
				self._children[node][vertex] = child

			node = child

		return node


	def select (self, node: int) -> None:

		"""Mark the tree edges from the root to ``node`` as selected."""

		while node > 0 and not self._selected[node]:
			self._selected[node] = True
			node = self._parent[node]


	def is_selected (self, node: int) -> bool:

		return self._selected[node]


	def child (self, node: int, vertex: int) -> typing.Optional[int]:

		return self._children[node].get(vertex)


	def selected_children (self, node: int) -> typing.List[int]:

		"""Return the real vertices of the selected children of ``node``."""

		return [vertex for vertex, child in self._children[node].items() if self._selected[child]]


	def path (self, node: int) -> typing.List[int]:

		"""Return the real vertex sequence from the root to ``node``."""

		vertices: typing.List[int] = []

		while node >= 0:
			vertices.append(self._real[node])
			node = self._parent[node]

		vertices.reverse()

		return vertices


def _above (cost: float, bound: float) -> bool:

	return cost > bound + COST_TOLERANCE * max(1.0, abs(bound))


def _below (cost: float, bound: float) -> bool:

	return cost < bound - COST_TOLERANCE * max(1.0, abs(bound))


def k_shortest_paths (
	graph: "chordwalk.digraph.WeightedDigraph",
	src: int,
	dest: int,
	k: int = 0,
	lower: float = 0.0,
	upper: float = math.inf
) -> typing.List[typing.List[int]]:

	"""Return simple paths from ``src`` to ``dest`` in order of increasing cost.

	The cost of a path is its arc count in an unweighted graph and its weight
	sum in a weighted one. Candidates of equal cost are ordered by their
	vertex sequence.

	Parameters:
		graph: The graph to search; only active vertices and arcs are used.
		src: Source vertex id.
		dest: Destination vertex id, different from ``src``.
		k: Maximum number of paths to return; 0 means no limit.
		lower: Paths cheaper than this are skipped but still explored.
		upper: The search stops at the first path dearer than this.

	Returns:
		The accepted paths, each a list of vertex ids from ``src`` to ``dest``.

	Raises:
		ValueError: If ``src == dest``, ``lower > upper``, ``k < 0``, or an
			endpoint is not an active vertex.

	Example:
		```python
		# Every path of exactly three arcs from 1 to 5.
		k_shortest_paths(graph, 1, 5, lower=3, upper=3)
		```
	"""

	if src == dest:
		raise ValueError(f"Source and destination must differ, both are {src}")

	if lower > upper:
		raise ValueError(f"Lower bound {lower} exceeds upper bound {upper}")

	if k < 0:
		raise ValueError(f"k must be non-negative, got {k}")

	with graph.masked():

		first = graph.cheapest_path(src, dest)

		if first is None:
			return []

		first_cost = graph.path_cost(first)

		if _above(first_cost, upper):
			return []

		store = PathStore(src)
		accepted_node = store.insert(first)
		store.select(accepted_node)

		accepted: typing.List[int] = []

		if not _below(first_cost, lower):
			accepted.append(accepted_node)

		candidates: typing.List[typing.Tuple[float, typing.Tuple[int, ...], int]] = []
		queued: typing.Set[int] = {accepted_node}
		last_path = first

		while k == 0 or len(accepted) < k:

			with graph.masked():

				prefix_node = 0

				for i in range(len(last_path) - 1):

					spur = last_path[i]

					for vertex in store.selected_children(prefix_node):
						graph.set_arc_active(spur, vertex, False)

					spur_path = graph.cheapest_path(spur, dest)

					if spur_path is not None:

						node = store.insert(spur_path, prefix_node)

						if node not in queued:
							full_path = last_path[:i] + spur_path
							queued.add(node)
							heapq.heappush(candidates, (graph.path_cost(full_path), tuple(full_path), node))

					graph.set_vertex_active(spur, False)
					prefix_node = typing.cast(int, store.child(prefix_node, last_path[i + 1]))

			if not candidates:
				break

			cost, path, node = heapq.heappop(candidates)

			if _above(cost, upper):
				break

			store.select(node)

			if not _below(cost, lower):
				accepted.append(node)

			last_path = list(path)

	logger.debug(f"Yen {src} -> {dest}: {len(accepted)} paths, {len(store)} path-store nodes")

	return [store.path(node) for node in accepted]
