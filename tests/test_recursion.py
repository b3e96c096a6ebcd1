from tacsynth.config import Settings
from tacsynth.core.context import make_context
from tacsynth.core.ctype import CType, TyVar, con, fun
from tacsynth.core.errors import RecursionOnWrongParam
from tacsynth.core.fragment import app, case, var
from tacsynth.core.judgment import Judgment, first_judgment
from tacsynth.core.state import TacticState
from tacsynth.engine.budget import Budget
from tacsynth.engine.machinery import Failure, Progress, SearchEnv, then_each
from tacsynth.engine.runner import NoSolution, RunTacticResults, run_tactic
from tacsynth.tactics.auto import auto
from tacsynth.tactics.core import assumption, destruct, intros
from tacsynth.tactics.recursion import positional_assumption, recursive_call

A = TyVar("a")
INT = con("Int")
LIST_A = con("List", A)
LENGTH = fun(LIST_A, INT)


def _branch() -> Judgment[CType]:
    top = first_judgment({"xs": LIST_A}, LIST_A, defining=[("f", ["xs"])])
    return top.mark_destructed("xs").introduce_pattern_vals("xs", {"y": A, "ys": LIST_A})


def _env() -> SearchEnv:
    context = make_context(defining_funcs=[("f", fun(LIST_A, LIST_A))])
    return SearchEnv(context, Settings(), Budget())


def test_smaller_argument_marks_call_productive() -> None:
    state = TacticState(skolems=(A,), recursion_stack=(False,))
    outcomes = list(positional_assumption("f", 0, 1, only="ys").run(_branch(), state, _env()))
    assert len(outcomes) == 1
    progress = outcomes[0]
    assert isinstance(progress, Progress)
    assert progress.state.recursion_stack == (True,)
    assert progress.state.used_vals == frozenset({"ys"})


def test_same_argument_on_last_position_is_rejected() -> None:
    state = TacticState(skolems=(A,), recursion_stack=(False,))
    outcomes = list(positional_assumption("f", 0, 1, only="xs").run(_branch(), state, _env()))
    assert outcomes == [Failure(RecursionOnWrongParam("f", 0, "xs"))]
    assert str(outcomes[0].error) == "Recursion on wrong param (f) on arg 0: xs"


def test_unrelated_argument_is_rejected() -> None:
    judgment = _branch().introduce_local({"zs": LIST_A})
    state = TacticState(skolems=(A,), recursion_stack=(False,))
    outcomes = list(positional_assumption("f", 0, 1, only="zs").run(judgment, state, _env()))
    assert outcomes == [Failure(RecursionOnWrongParam("f", 0, "zs"))]


def test_recursive_call_on_tail() -> None:
    judgment = first_judgment(
        {"xs": LIST_A}, INT, ambient={"zero": INT}, defining=[("length", ["xs"])]
    )
    context = make_context(defining_funcs=[("length", LENGTH)])
    tactic = then_each(destruct("xs"), assumption, recursive_call("length"))
    result = run_tactic(tactic, judgment, context)
    assert isinstance(result, RunTacticResults)
    assert result.extract == case(
        "xs",
        [
            ("Nil", [], var("zero")),
            ("Cons", ["a", "as"], app(var("length"), [var("as")])),
        ],
    )
    assert result.state.recursion_penalty == 1
    assert result.state.recursion_stack == ()
    assert result.holes == 0
    assert "recursion length" in result.trace.labels()


def test_recursion_on_parameter_bound_by_intros() -> None:
    judgment = first_judgment({}, LENGTH, ambient={"zero": INT}, defining=[("length", [])])
    context = make_context(defining_funcs=[("length", LENGTH)])
    tactic = intros >> then_each(destruct("as"), assumption, recursive_call("length"))
    result = run_tactic(tactic, judgment, context)
    assert isinstance(result, RunTacticResults)
    assert result.extract["kind"] == "lam"
    assert result.extract["body"] == case(
        "as",
        [
            ("Nil", [], var("zero")),
            ("Cons", ["a", "as2"], app(var("length"), [var("as2")])),
        ],
    )
    assert "recursion length" in result.trace.labels()
    assert result.state.unused_top_vals == frozenset()
    assert result.state.recursion_stack == ()


def test_recursion_without_smaller_value_fails() -> None:
    judgment = first_judgment({"xs": LIST_A}, INT, defining=[("length", ["xs"])])
    context = make_context(defining_funcs=[("length", LENGTH)])
    result = run_tactic(recursive_call("length"), judgment, context)
    assert isinstance(result, NoSolution)
    atoms = {error.failure_atom for error in result.errors}
    assert "RECURSION_ON_WRONG_PARAM" in atoms


def test_recursion_penalty_weight_from_settings() -> None:
    judgment = first_judgment(
        {"xs": LIST_A}, INT, ambient={"zero": INT}, defining=[("length", ["xs"])]
    )
    context = make_context(defining_funcs=[("length", LENGTH)])
    tactic = then_each(destruct("xs"), assumption, recursive_call("length", ["as"]))
    result = run_tactic(tactic, judgment, context, settings=Settings(recursion_penalty_weight=3))
    assert isinstance(result, RunTacticResults)
    assert result.state.recursion_penalty == 3


def test_auto_finds_total_definition() -> None:
    judgment = first_judgment(
        {"xs": LIST_A},
        INT,
        ambient={"zero": INT, "succ": fun(INT, INT)},
        defining=[("length", ["xs"])],
    )
    context = make_context(
        defining_funcs=[("length", LENGTH)],
        module_funcs=[("zero", INT), ("succ", fun(INT, INT))],
    )
    result = run_tactic(auto(3), judgment, context)
    assert isinstance(result, RunTacticResults)
    assert result.holes == 0
    assert result.extract["kind"] == "case"
    assert not result.state.unused_top_vals
