import ctypes
from typing import Generic, Protocol, TypeVar

import numpy as np

from sliceable import SliceView


E = TypeVar("E")


class SliceBackend(Generic[E], Protocol):
    """
    The three accessors a backing sequence supplies to its views

    On the native side this is a pointer and an element count. Neither raw
    accessor may fail for an in-range index; range checks belong to the view.
    """

    def raw_count(self) -> int:
        ...

    def raw_element_at(self, index: int) -> E:
        ...

    def derive_slice(self, start_index: int, length: int, step: int) -> SliceView[E]:
        ...


class Backing:
    view_class = SliceView

    def __init__(self, view_class=None):
        if view_class is not None:
            self.view_class = view_class

    def derive_slice(self, start_index: int, length: int, step: int):
        return self.view_class(self, start_index, length, step)

    def view(self):
        """
        Return a view over every element of the backing
        """
        return self.view_class.full(self)


class SequenceBacking(Backing):
    def __init__(self, items, view_class=None):
        super().__init__(view_class)
        self.items = items

    def __repr__(self):
        return f"SequenceBacking({type(self.items).__name__}, count={len(self.items)})"

    def raw_count(self) -> int:
        return len(self.items)

    def raw_element_at(self, index: int):
        return self.items[index]


class NumpyView(SliceView):
    def to_numpy(self) -> np.ndarray:
        """
        Return the strided NumPy array sharing memory with this view
        """
        return self.backing.as_array(self)


class NumpyBacking(Backing):
    """
    A one-dimensional NumPy array, yielding elements as Python scalars
    """

    view_class = NumpyView

    def __init__(self, array, view_class=None):
        super().__init__(view_class)
        array = np.asarray(array)
        if array.ndim != 1:
            raise ValueError(f"expected a one-dimensional array, got {array.ndim} dims")
        self.array = array

    def __repr__(self):
        return f"NumpyBacking(dtype={self.array.dtype}, count={self.array.shape[0]})"

    def raw_count(self) -> int:
        return self.array.shape[0]

    def raw_element_at(self, index: int):
        return self.array[index].item()

    def as_array(self, view: SliceView) -> np.ndarray:
        if view.backing is not self:
            raise ValueError("view does not belong to this backing")
        if view.length == 0:
            return self.array[0:0]
        stop = view.start_index + view.length * view.step
        return self.array[view.start_index : stop if stop >= 0 else None : view.step]


class CTypesBacking(Backing):
    """
    Native memory, given either as a ctypes array or as a pointer and count
    """

    def __init__(self, data, count: int | None = None, view_class=None):
        super().__init__(view_class)
        if count is None:
            if not isinstance(data, ctypes.Array):
                raise TypeError("a count is required unless data is a ctypes array")
            count = len(data)
        if count < 0:
            raise ValueError(f"expected a non-negative count, got {count}")
        self.data = data
        self.count = count

    def __repr__(self):
        return f"CTypesBacking({type(self.data).__name__}, count={self.count})"

    def raw_count(self) -> int:
        return self.count

    def raw_element_at(self, index: int):
        return self.data[index]
