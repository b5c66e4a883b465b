"""
Arguments that may be passed as None and resolved against a current default

A ``DefaultContext`` keeps a stack of current defaults for one type. Functions
decorated with ``defaulting`` accept None for the named parameters and receive
a ``Defaulting`` handle in its place, which behaves like the referent itself.
"""
import logging
from contextlib import contextmanager
from contextvars import ContextVar
from dataclasses import dataclass
from functools import update_wrapper
from inspect import signature
from types import MethodType
from typing import ClassVar, Generic, TypeVar

from errors import DefaultingTypeError, ResolutionError, contract_violation


logger = logging.getLogger(__name__)

T = TypeVar("T")


class DefaultContext(Generic[T]):
    """
    A scoped stack of current defaults for values of ``referent_type``

    The stack lives in a context variable, so every thread and task starts
    with its own empty stack. Context variables are never freed, so create
    one DefaultContext per type at module level and share it.
    """

    def __init__(self, referent_type: type[T], description: str | None = None):
        self.referent_type = referent_type
        self.description = description or referent_type.__name__
        self._stack: ContextVar[tuple[T, ...]] = ContextVar(
            f"stridebin_default_{self.description}", default=()
        )

    def __repr__(self):
        return f"DefaultContext({self.description}, depth={len(self._stack.get())})"

    def current(self) -> T:
        stack = self._stack.get()
        if not stack:
            raise ResolutionError(f"no current {self.description} has been set")
        return stack[-1]

    def push(self, value: T) -> None:
        if not isinstance(value, self.referent_type):
            raise DefaultingTypeError(
                f"expected {self.description}, got {type(value).__name__}"
            )
        stack = self._stack.get()
        self._stack.set(stack + (value,))
        logger.debug("pushed default %s (depth %d)", self.description, len(stack) + 1)

    def pop(self) -> T:
        stack = self._stack.get()
        if not stack:
            raise contract_violation(f"pop from empty {self.description} defaults")
        self._stack.set(stack[:-1])
        logger.debug("popped default %s (depth %d)", self.description, len(stack) - 1)
        return stack[-1]

    @contextmanager
    def bind(self, value: T):
        self.push(value)
        try:
            yield value
        finally:
            self.pop()


@dataclass(frozen=True)
class Defaulting(Generic[T]):
    """
    A non-null reference to a referent owned elsewhere

    Only the ``Explicit`` and ``Resolved`` variants are ever constructed.
    Plain attribute access reaches the referent; special methods such as
    ``len()``, ``==`` and ``iter()`` do not, so use ``get()`` for those.
    """

    referent: T
    is_explicit: ClassVar[bool]

    def get(self) -> T:
        return self.referent

    def __getattr__(self, name):
        if name == "referent":
            raise AttributeError(name)
        return getattr(self.referent, name)


@dataclass(frozen=True)
class Explicit(Defaulting[T]):
    is_explicit: ClassVar[bool] = True


@dataclass(frozen=True)
class Resolved(Defaulting[T]):
    is_explicit: ClassVar[bool] = False


def resolve(value, context: DefaultContext[T]) -> Defaulting[T]:
    """
    Bind ``value``, or the context's current default when ``value`` is None

    Raises ResolutionError when there is no current default and
    DefaultingTypeError when ``value`` is of the wrong type.
    """
    if isinstance(value, Defaulting):
        value = value.get()
    if value is None:
        referent = context.current()
        logger.debug("resolved %s from the current default", context.description)
        return Resolved(referent)
    if not isinstance(value, context.referent_type):
        raise DefaultingTypeError(
            f"expected {context.description}, got {type(value).__name__}"
        )
    return Explicit(value)


class DefaultingCaster(Generic[T]):
    """
    Loads arguments at a call boundary, reporting type mismatches softly

    ``load`` returns None instead of raising for a wrong type, so the caller
    can try other interpretations. Resolution failures still propagate since
    they are the more informative error.
    """

    def __init__(self, context: DefaultContext[T]):
        self.context = context

    @property
    def type_description(self) -> str:
        return self.context.description

    def load(self, value) -> Defaulting[T] | None:
        try:
            return resolve(value, self.context)
        except DefaultingTypeError:
            return None


class DefaultingFunction:
    def __init__(self, func, casters: dict[str, DefaultingCaster]):
        self.func = func
        self.casters = casters
        self.signature = signature(func)
        unknown = set(casters) - set(self.signature.parameters)
        if unknown:
            raise TypeError(
                f"{func.__name__}() has no parameters named {', '.join(sorted(unknown))}"
            )
        update_wrapper(self, func)

    def __call__(self, *args, **kwargs):
        bound = self.signature.bind(*args, **kwargs)
        bound.apply_defaults()
        for name, caster in self.casters.items():
            value = bound.arguments.get(name)
            loaded = caster.load(value)
            if loaded is None:
                raise DefaultingTypeError(
                    f"{self.func.__name__}(): argument '{name}' must be "
                    f"{caster.type_description} or None, got {type(value).__name__}"
                )
            bound.arguments[name] = loaded
        return self.func(*bound.args, **bound.kwargs)

    def __get__(self, instance, owner=None):
        if instance is None:
            return self
        return MethodType(self, instance)


def defaulting(**contexts: DefaultContext):
    """
    A decorator resolving the named parameters against their contexts

        @defaulting(context=current_context)
        def parse(source, context=None):
            ...
    """
    casters = {name: DefaultingCaster(ctx) for name, ctx in contexts.items()}

    def decorator(func):
        return DefaultingFunction(func, casters)

    return decorator
