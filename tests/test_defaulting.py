import threading

import pytest

from defaulting import (
    DefaultContext,
    Defaulting,
    DefaultingCaster,
    Explicit,
    Resolved,
    defaulting,
    resolve,
)
from errors import ContractViolation, DefaultingTypeError, ResolutionError


class Context:
    def __init__(self, name):
        self.name = name

    def describe(self):
        return f"context {self.name}"


@pytest.fixture
def contexts():
    return DefaultContext(Context, "Context")


def test_explicit_value_never_consults_the_context(contexts, monkeypatch):
    def fail():
        raise AssertionError("resolver should not run")

    monkeypatch.setattr(contexts, "current", fail)
    ctx = Context("a")
    ref = resolve(ctx, contexts)
    assert isinstance(ref, Explicit)
    assert ref.is_explicit
    assert ref.get() is ctx


def test_absent_value_without_default_fails(contexts):
    with pytest.raises(ResolutionError, match="no current Context"):
        resolve(None, contexts)


def test_absent_value_resolves_to_current_default(contexts):
    ctx = Context("default")
    with contexts.bind(ctx):
        ref = resolve(None, contexts)
    assert isinstance(ref, Resolved)
    assert not ref.is_explicit
    assert ref.get() is ctx


def test_resolved_reference_is_fixed(contexts):
    first, second = Context("first"), Context("second")
    with contexts.bind(first):
        ref = resolve(None, contexts)
        with contexts.bind(second):
            assert ref.get() is first
            assert resolve(None, contexts).get() is second
    assert ref.get() is first


def test_wrong_type_is_a_type_mismatch(contexts):
    with pytest.raises(DefaultingTypeError, match="expected Context, got str"):
        resolve("nope", contexts)


def test_existing_handle_is_unwrapped(contexts):
    ctx = Context("a")
    ref = resolve(Explicit(ctx), contexts)
    assert ref.get() is ctx


def test_member_access_forwards_to_referent(contexts):
    ref = resolve(Context("a"), contexts)
    assert ref.name == "a"
    assert ref.describe() == "context a"
    with pytest.raises(AttributeError):
        ref.missing


def test_handle_has_no_unresolved_state():
    with pytest.raises(TypeError):
        Defaulting()


def test_bind_pops_on_error(contexts):
    with pytest.raises(RuntimeError):
        with contexts.bind(Context("a")):
            raise RuntimeError("boom")
    with pytest.raises(ResolutionError):
        contexts.current()


def test_push_checks_type(contexts):
    with pytest.raises(DefaultingTypeError):
        contexts.push(object())


def test_pop_from_empty_stack_is_a_contract_violation(contexts):
    with pytest.raises(ContractViolation):
        contexts.pop()


def test_push_and_pop(contexts):
    a, b = Context("a"), Context("b")
    contexts.push(a)
    contexts.push(b)
    assert contexts.current() is b
    assert contexts.pop() is b
    assert contexts.current() is a
    assert contexts.pop() is a


def test_defaults_are_per_thread(contexts):
    seen = []

    def worker():
        try:
            contexts.current()
        except ResolutionError:
            seen.append("unset")

    with contexts.bind(Context("main")):
        thread = threading.Thread(target=worker)
        thread.start()
        thread.join()
    assert seen == ["unset"]


def test_caster_reports_mismatch_softly(contexts):
    caster = DefaultingCaster(contexts)
    assert caster.type_description == "Context"
    assert caster.load(42) is None
    ctx = Context("a")
    assert caster.load(ctx).get() is ctx


def test_caster_propagates_resolution_errors(contexts):
    with pytest.raises(ResolutionError):
        DefaultingCaster(contexts).load(None)


def test_decorator_resolves_absent_argument(contexts):
    @defaulting(context=contexts)
    def parse(source, context=None):
        return source, context

    ctx = Context("a")
    with contexts.bind(ctx):
        source, handle = parse("x")
    assert source == "x"
    assert isinstance(handle, Resolved)
    assert handle.get() is ctx

    other = Context("b")
    _, handle = parse("y", context=other)
    assert isinstance(handle, Explicit)
    assert handle.get() is other


def test_decorator_reports_argument_and_type(contexts):
    @defaulting(context=contexts)
    def parse(source, context=None):
        return context

    with pytest.raises(TypeError, match="argument 'context' must be Context or None, got int"):
        parse("x", 3)
    with pytest.raises(ResolutionError):
        parse("x")


def test_decorator_keeps_metadata(contexts):
    @defaulting(context=contexts)
    def parse(source, context=None):
        """Parse some source."""

    assert parse.__name__ == "parse"
    assert parse.__doc__ == "Parse some source."


def test_decorator_rejects_unknown_parameters(contexts):
    with pytest.raises(TypeError, match="no parameters named loc"):

        @defaulting(loc=contexts)
        def parse(source, context=None):
            pass


def test_decorator_on_methods(contexts):
    class Module:
        @defaulting(context=contexts)
        def build(self, context=None):
            return self, context.get()

    module = Module()
    ctx = Context("a")
    with contexts.bind(ctx):
        assert module.build() == (module, ctx)


def test_special_methods_need_get(contexts):
    class Sized(Context):
        def __len__(self):
            return 3

    ref = resolve(Sized("a"), contexts)
    with pytest.raises(TypeError):
        len(ref)
    assert len(ref.get()) == 3
    assert ref.__len__() == 3
