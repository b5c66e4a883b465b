"""
Read-only, strided views with Python sequence semantics

A ``SliceView`` is a window ``(start_index, length, step)`` over a backing
sequence that supplies ``raw_count``, ``raw_element_at`` and ``derive_slice``
(see ``backing.SliceBackend``). Integer subscripts return elements, slices
return new views of the same backing, and nothing is ever copied except by
``concat``.
"""
import operator
from collections.abc import Sequence
from typing import TYPE_CHECKING, Generic, TypeVar

import config
from errors import SliceIndexError, SubscriptTypeError, contract_violation

if TYPE_CHECKING:
    from backing import SliceBackend


E = TypeVar("E")


class ErrorSignal:
    """
    An error reported by value instead of being raised

    Only this module creates these, so no element of a backing can be
    mistaken for one.
    """

    __slots__ = ("error",)

    def __init__(self, error: Exception):
        self.error = error

    def __repr__(self):
        return f"ErrorSignal({self.error!r})"


def _clamp(index, default, lower, upper, length):
    if index is None:
        return default
    if index < 0:
        return max(index + length, lower)
    return min(index, upper)


def normalize_slice(start, stop, step, length: int) -> tuple[int, int, int, int]:
    """
    Resolve slice fields against a sequence of ``length`` elements

    Returns ``(start, stop, step, slicelength)`` with the same meaning as
    ``slice.indices`` plus the number of selected elements. Raises
    SubscriptTypeError for non-integer fields or a zero step.
    """
    try:
        step = 1 if step is None else operator.index(step)
        start = None if start is None else operator.index(start)
        stop = None if stop is None else operator.index(stop)
    except TypeError:
        raise SubscriptTypeError("slice indices must be integers or None") from None
    if step == 0:
        raise SubscriptTypeError("slice step cannot be zero")

    if step > 0:
        start = _clamp(start, 0, 0, length, length)
        stop = _clamp(stop, length, 0, length, length)
        slicelength = (stop - start + step - 1) // step if stop > start else 0
    else:
        start = _clamp(start, length - 1, -1, length - 1, length)
        stop = _clamp(stop, -1, -1, length - 1, length)
        slicelength = (start - stop - step - 1) // -step if start > stop else 0
    return start, stop, step, slicelength


class SliceView(Sequence, Generic[E]):
    """
    A strided window over a backing sequence

    Subclasses may add methods of their own; backings derive new views
    through their ``view_class`` so slicing preserves the subclass.
    """

    def __init__(
        self, backing: "SliceBackend[E]", start_index: int, length: int, step: int
    ):
        if length < 0:
            raise contract_violation(f"expected non-negative slice length, got {length}")
        if step == 0:
            raise contract_violation("slice step must be nonzero")
        self.backing = backing
        self.start_index = start_index
        self.length = length
        self.step = step

    @classmethod
    def full(cls, backing: "SliceBackend[E]") -> "SliceView[E]":
        return cls(backing, 0, backing.raw_count(), 1)

    def __repr__(self):
        return (
            f"{type(self).__name__}(start_index={self.start_index}, "
            f"length={self.length}, step={self.step}, backing={self.backing!r})"
        )

    def wrap_index(self, index: int) -> int:
        """
        Resolve a possibly negative index, returning -1 when out of range
        """
        if index < 0:
            index += self.length
        if index < 0 or index >= self.length:
            return -1
        return index

    def linearize_index(self, index: int) -> int:
        linear_index = self.start_index + index * self.step
        if __debug__ and config.settings.debug_checks:
            if not 0 <= linear_index < self.backing.raw_count():
                raise contract_violation(
                    f"linear index {linear_index} out of bounds, the slice is ill-formed"
                )
        return linear_index

    def size(self) -> int:
        return self.length

    def __len__(self):
        return self.length

    def item_at(self, index: int):
        """
        Return the element at ``index``, or an ErrorSignal holding a
        SliceIndexError when the index is out of range
        """
        index = self.wrap_index(index)
        if index < 0:
            return ErrorSignal(SliceIndexError("index out of range"))
        return self.backing.raw_element_at(self.linearize_index(index))

    def element_at(self, index: int) -> E:
        index = self.wrap_index(index)
        if index < 0:
            raise SliceIndexError("index out of range")
        return self.backing.raw_element_at(self.linearize_index(index))

    def sub_slice(self, subscript):
        """
        Apply an integer or slice subscript, returning errors as an
        ErrorSignal instead of raising them
        """
        match subscript:
            case slice(start=start, stop=stop, step=step):
                try:
                    start, _, step, length = normalize_slice(
                        start, stop, step, self.length
                    )
                except SubscriptTypeError as e:
                    return ErrorSignal(e)
                return self.backing.derive_slice(
                    self.start_index + start * self.step, length, self.step * step
                )
        try:
            index = operator.index(subscript)
        except TypeError:
            return ErrorSignal(
                SubscriptTypeError(
                    f"expected integer or slice, got {type(subscript).__name__}"
                )
            )
        return self.item_at(index)

    def __getitem__(self, subscript):
        result = self.sub_slice(subscript)
        if isinstance(result, ErrorSignal):
            raise result.error
        return result

    def __iter__(self):
        index = 0
        while True:
            item = self.item_at(index)
            if isinstance(item, ErrorSignal):
                return
            yield item
            index += 1

    def concat(self, other: "SliceView") -> list:
        """
        Copy the elements of both views into a new list

        Copying is unavoidable since the two views may be strided differently
        or come from different backings.
        """
        elements = []
        for i in range(self.length):
            elements.append(self.element_at(i))
        for i in range(other.length):
            elements.append(other.element_at(i))
        return elements

    def __add__(self, other):
        if not isinstance(other, SliceView):
            return NotImplemented
        return self.concat(other)

    def tolist(self) -> list:
        return list(self)

    def __eq__(self, other):
        if isinstance(other, SliceView):
            return self.tolist() == other.tolist()
        if isinstance(other, (list, tuple)):
            return self.tolist() == list(other)
        return NotImplemented

    __hash__ = None
