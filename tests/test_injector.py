import pytest

from umbrella.errors import InjectionArityError, ResolutionError
from umbrella.injector import Injector, InjectedCallable, current_context
from umbrella.registry import DependencyRegistry, InternalSlots
from umbrella.signature import parameter_names, declares


class Context:
    pass


@pytest.fixture
def context():
    return Context()


@pytest.fixture
def inject(context):
    return Injector(context, {"dep1": "dep1", "dep2": "dep2"})


def test_injects_nothing_and_invokes_in_context(context):
    inject = Injector(context, {})

    assert inject(lambda: current_context()) is context


def test_injects_all_dependencies(inject, context):
    def unit(dep1, dep2):
        return current_context(), dep1, dep2

    assert inject(unit) == (context, "dep1", "dep2")


def test_fully_resolved_unit_is_invoked_when_invocation_is_required(inject):
    assert inject(lambda dep1: dep1.upper(), True) == "DEP1"


def test_unresolved_parameters_produce_a_wrapper_taking_all_of_them(inject, context):
    def unit(param1, param2):
        return current_context(), param1, param2

    wrapper = inject(unit)

    assert isinstance(wrapper, InjectedCallable)
    assert wrapper.residual_count == 2
    assert wrapper("a", "b") == (context, "a", "b")


def test_wrapper_binds_dependencies_before_additional_arguments(inject, context):
    def unit(dep1, dep2, param1, param2):
        return current_context(), dep1, dep2, param1, param2

    wrapper = inject(unit)

    assert wrapper.residual_parameters == ("param1", "param2")
    assert wrapper("a", "b") == (context, "dep1", "dep2", "a", "b")


def test_wrapper_behaves_like_the_original_with_dependencies_supplied():
    def unit(a, b, c):
        return [a, b, c]

    wrapper = Injector(None, {"a": 1, "b": 2}).inject(unit)

    assert wrapper.residual_count == 1
    assert wrapper("x") == unit(1, 2, "x")


def test_matching_stops_at_first_unresolved_name(inject):
    def unit(x, dep1, y):
        return x, dep1, y

    wrapper = inject(unit)

    assert wrapper.residual_count == 3
    assert wrapper(1, 2, 3) == (1, 2, 3)


def test_must_invoke_rejects_unresolved_parameters(inject):
    calls = []

    def unit(dep1, param):
        calls.append(param)

    with pytest.raises(InjectionArityError, match="must invoke"):
        inject(unit, True)
    assert calls == []


def test_resolve_does_not_invoke(inject):
    calls = []

    def unit(dep1, dep2):
        calls.append(True)

    resolution = inject.resolve(unit)

    assert resolution.dependencies == ("dep1", "dep2")
    assert resolution.residual_count == 0
    assert calls == []


def test_wrapper_reports_residual_parameter_names(inject):
    wrapper = inject(lambda dep1, request, response: None)

    assert parameter_names(wrapper) == ["request", "response"]


def test_explicit_declarations_resolve_internal_names(context):
    slots = InternalSlots(["app"], app="the app")
    inject = Injector(context, DependencyRegistry({}, slots, prefix="$"))

    @declares("$app", "request")
    def unit(app, request):
        return app, request

    assert inject(unit)("req") == ("the app", "req")


def test_internal_component_read_too_early_propagates(context):
    slots = InternalSlots(["routes"])
    inject = Injector(context, DependencyRegistry({}, slots))

    with pytest.raises(ResolutionError):
        inject(lambda _routes: None)


def test_current_context_outside_injection_raises():
    with pytest.raises(LookupError):
        current_context()


def test_context_is_restored_after_nested_injection():
    outer, inner = Context(), Context()
    inner_inject = Injector(inner, {})

    def unit():
        seen = [current_context()]
        seen.append(inner_inject(lambda: current_context()))
        seen.append(current_context())
        return seen

    assert Injector(outer, {})(unit) == [outer, inner, outer]
