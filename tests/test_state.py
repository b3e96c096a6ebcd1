from hypothesis import given
from hypothesis import strategies as st

from tacsynth.core.state import (
    TacticState,
    add_recursion_penalty,
    fresh_unique,
    initial,
    mark_structural_recursion,
    pop_recursion,
    push_recursion,
    use_name,
)


@given(st.integers(min_value=0, max_value=1000), st.integers(min_value=1, max_value=50))
def test_fresh_unique_never_repeats(seed: int, count: int) -> None:
    state = initial(seed)
    seen = set()
    for _ in range(count):
        unique, state = fresh_unique(state)
        seen.add(unique)
    assert len(seen) == count


def test_fresh_unique_is_deterministic_per_seed() -> None:
    first, _ = fresh_unique(initial(7))
    again, _ = fresh_unique(initial(7))
    other, _ = fresh_unique(initial(8))
    assert first == again
    assert first != other


def test_transitions_do_not_mutate() -> None:
    state = initial()
    pushed = push_recursion(state)
    assert state.recursion_stack == ()
    assert pushed.recursion_stack == (False,)
    marked = mark_structural_recursion(push_recursion(pushed))
    assert marked.recursion_stack == (True, False)
    top, popped = pop_recursion(marked)
    assert top is True
    assert popped.recursion_stack == (False,)
    assert add_recursion_penalty(2, state).recursion_penalty == 2
    assert state.recursion_penalty == 0


def test_mark_structural_recursion_without_open_call() -> None:
    assert mark_structural_recursion(initial()).recursion_stack == ()
    top, state = pop_recursion(initial())
    assert top is False
    assert state == initial()


def test_use_name_counts_only_locals() -> None:
    state = TacticState(unused_top_vals=frozenset({"xs", "g"}))
    used_local = use_name("xs", True, state)
    assert used_local.used_vals == frozenset({"xs"})
    assert used_local.unused_top_vals == frozenset({"g"})
    used_ambient = use_name("g", False, state)
    assert used_ambient.used_vals == frozenset()
    assert used_ambient.unused_top_vals == frozenset({"xs"})


def test_state_json_is_sorted() -> None:
    state = use_name("b", True, use_name("a", True, initial(3)))
    data = state.to_json()
    assert data["used_vals"] == ["a", "b"]
    assert data["unique_counter"] == 0
