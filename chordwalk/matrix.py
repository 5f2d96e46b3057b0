"""Dense square matrices with 1-based element access.

Indices match the 1-based vertex ids of `chordwalk.digraph.WeightedDigraph`,
so an adjacency matrix can be read with the same ids as the graph. Numerical
work (exponential, inverse, eigenvalues) is delegated to numpy and scipy.
"""

import typing

import numpy
import scipy.linalg


class Matrix:

	"""
	A square matrix of floats.
	"""

	def __init__ (self, size: int, data: typing.Optional[numpy.ndarray] = None) -> None:

		"""Create a zero matrix of the given size, or wrap an existing square array."""

		if size < 0:
			raise ValueError(f"Matrix size must be non-negative, got {size}")

		if data is None:
			self._data = numpy.zeros((size, size), dtype=float)

		else:
			if data.shape != (size, size):
				raise ValueError(f"Expected a {size}x{size} array, got shape {data.shape}")
			self._data = numpy.array(data, dtype=float)


	@classmethod
	def identity (cls, size: int) -> "Matrix":

		return cls(size, numpy.identity(size))


	def size (self) -> int:

		return self._data.shape[0]


	def _check (self, i: int, j: int) -> None:

		n = self.size()

		if not (1 <= i <= n and 1 <= j <= n):
			raise ValueError(f"Index ({i}, {j}) out of range for a {n}x{n} matrix")


	def element (self, i: int, j: int) -> float:

		self._check(i, j)

		return float(self._data[i - 1, j - 1])


	def set_element (self, i: int, j: int, value: float) -> None:

		self._check(i, j)
		self._data[i - 1, j - 1] = value


	def to_array (self) -> numpy.ndarray:

		"""Return a copy of the underlying array (0-based)."""

		return self._data.copy()


	def copy (self) -> "Matrix":

		return Matrix(self.size(), self._data)


	def scale (self, factor: float) -> None:

		"""Multiply every element by ``factor`` in place."""

		self._data *= factor


	def add (self, other: "Matrix") -> None:

		"""Add ``other`` element-wise in place."""

		if other.size() != self.size():
			raise ValueError(f"Cannot add a {other.size()}x{other.size()} matrix to a {self.size()}x{self.size()} matrix")

		self._data += other._data


	def mul (self, other: "Matrix", row: int = 0, col: int = 0) -> None:

		"""Multiply by ``other`` on the right, in place.

		When ``row`` (or ``col``) is non-zero only that row (or column) of the
		product is computed and stored; every other element keeps its value.
		Restricting both updates the single element ``(row, col)``.

		Example:
			```python
			# Count walks of length 3 from vertex 1 to vertex 4 without forming A^3.
			m = a.copy()
			m.mul(a, row=1)
			m.mul(a, row=1)
			m.element(1, 4)
			```
		"""

		if other.size() != self.size():
			raise ValueError(f"Cannot multiply a {self.size()}x{self.size()} matrix by a {other.size()}x{other.size()} matrix")

		if row:
			self._check(row, 1)

		if col:
			self._check(1, col)

		if row and col:
			self._data[row - 1, col - 1] = self._data[row - 1, :] @ other._data[:, col - 1]

		elif row:
			self._data[row - 1, :] = self._data[row - 1, :] @ other._data

		elif col:
			self._data[:, col - 1] = self._data @ other._data[:, col - 1]

		else:
			self._data = self._data @ other._data


	def exponential (self) -> "Matrix":

		return Matrix(self.size(), scipy.linalg.expm(self._data))


	def inverse (self) -> "Matrix":

		"""Return the inverse.

		Raises:
			ValueError: If the matrix is singular.
		"""

		try:
			return Matrix(self.size(), numpy.linalg.inv(self._data))

		except numpy.linalg.LinAlgError as exc:
			raise ValueError(f"Matrix is not invertible: {exc}") from exc


	def eigenvalues (self) -> typing.List[complex]:

		"""Return the eigenvalues sorted by decreasing magnitude."""

		if self.size() == 0:
			return []

		values = numpy.linalg.eigvals(self._data)

		return sorted((complex(v) for v in values), key=abs, reverse=True)


	def __eq__ (self, other: object) -> bool:

		if not isinstance(other, Matrix):
			return NotImplemented

		return self._data.shape == other._data.shape and bool(numpy.array_equal(self._data, other._data))


	def __repr__ (self) -> str:

		return f"Matrix({self.size()}, {self._data.tolist()})"
