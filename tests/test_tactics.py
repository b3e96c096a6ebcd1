from typing import Any, Iterator, List, Optional

from tacsynth.config import Settings
from tacsynth.core.context import Context, DataCon, DataDecl, make_context
from tacsynth.core.ctype import TyVar, con, fun
from tacsynth.core.errors import (
    AlreadyDestructed,
    GoalMismatch,
    IncorrectDataConstructor,
    NoApplicableTactic,
    TooPolymorphic,
    UndefinedHypothesis,
    UnhelpfulDestruct,
    UnhelpfulSplit,
    UnificationError,
)
from tacsynth.core.fragment import app, case, hole, lam, var
from tacsynth.core.judgment import first_judgment
from tacsynth.core.state import TacticState, initial
from tacsynth.engine.budget import Budget
from tacsynth.engine.machinery import (
    Failure,
    Outcome,
    Progress,
    SearchEnv,
    discharge,
    skip,
    then_each,
)
from tacsynth.tactics.core import apply, assumption, destruct, intro, intros, split, split_con
from tacsynth.tactics.naming import fresh_name, name_hint

INT = con("Int")
BOOL = con("Bool")
LIST_A = con("List", TyVar("a"))
NAT = con("Nat")


def _env(context: Optional[Context] = None, **overrides: Any) -> SearchEnv:
    return SearchEnv(context or make_context(), Settings(**overrides), Budget())


def _run(
    tactic: Any,
    judgment: Any,
    env: Optional[SearchEnv] = None,
    state: Optional[TacticState] = None,
) -> List[Outcome]:
    return list(tactic.run(judgment, state or initial(), env or _env()))


def _errors(outcomes: Iterator[Outcome]) -> List[Any]:
    return [outcome.error for outcome in outcomes if isinstance(outcome, Failure)]


def _nat_context() -> Context:
    decl = DataDecl("Nat", (), (DataCon("Z"), DataCon("S", (NAT,))))
    return make_context(data_decls={"Nat": decl})


def test_assumption_reports_mismatch() -> None:
    outcomes = _run(assumption, first_judgment({"b": BOOL}, INT))
    errors = _errors(outcomes)
    assert errors == [GoalMismatch("assumption", INT)]
    assert str(errors[0]) == "The tactic assumption doesn't apply to goal type Int"


def test_intros_names_and_builds_lambda() -> None:
    judgment = first_judgment({"n": INT}, fun(INT, BOOL, INT))
    outcomes = _run(intros, judgment)
    assert len(outcomes) == 1 and isinstance(outcomes[0], Progress)
    progress = outcomes[0]
    subgoal = progress.goals[0]
    assert subgoal.goal == INT
    assert not subgoal.is_top_hole
    assert set(subgoal.local_hypothesis()) == {"n", "n0", "b"}
    assert progress.state.intro_vals == frozenset({"n0", "b"})
    trace, extract = discharge(progress)
    assert extract == lam(["n0", "b"], hole())
    assert trace.label == "intros n0 b"


def test_intro_takes_one_binder() -> None:
    outcomes = _run(intro, first_judgment({}, fun(INT, BOOL, INT)))
    progress = outcomes[0]
    assert isinstance(progress, Progress)
    assert progress.goals[0].goal == fun(BOOL, INT)
    trace, extract = discharge(progress)
    assert extract == lam(["n"], hole())
    assert trace.label == "intro n"
    assert _errors(_run(intro, first_judgment({}, INT))) == [GoalMismatch("intro", INT)]


def test_intros_on_top_hole_binds_positional_params() -> None:
    judgment = first_judgment({}, fun(LIST_A, INT), defining=[("length", [])])
    progress = _run(intros, judgment)[0]
    assert isinstance(progress, Progress)
    subgoal = progress.goals[0]
    assert subgoal.position_maps == {"length": (("as",),)}
    assert progress.state.unused_top_vals == frozenset({"as"})


def test_successive_intro_keeps_binding_params() -> None:
    judgment = first_judgment({}, fun(INT, BOOL, INT), defining=[("f", [])])
    first = _run(intro, judgment)[0]
    assert isinstance(first, Progress)
    second = _run(intro, first.goals[0], state=first.state)[0]
    assert isinstance(second, Progress)
    assert second.goals[0].position_maps == {"f": (("n", "b"),)}
    assert second.state.unused_top_vals == frozenset({"n", "b"})


def test_intros_below_top_hole_leaves_params_alone() -> None:
    top = first_judgment({"x": INT}, fun(INT, INT), defining=[("f", ["x"])])
    judgment = top.with_goal(fun(INT, INT))
    progress = _run(intros, judgment)[0]
    assert isinstance(progress, Progress)
    assert progress.goals[0].position_maps == {"f": (("x",),)}
    assert progress.state.unused_top_vals == frozenset()


def test_intros_needs_function_goal() -> None:
    assert _errors(_run(intros, first_judgment({}, INT))) == [GoalMismatch("intros", INT)]


def test_apply_leaves_argument_goals() -> None:
    judgment = first_judgment({"f": fun(INT, BOOL)}, BOOL)
    outcomes = _run(apply("f"), judgment)
    progress = outcomes[0]
    assert isinstance(progress, Progress)
    assert [goal.goal for goal in progress.goals] == [INT]
    assert discharge(progress)[1] == app(var("f"), [hole()])
    assert progress.state.used_vals == frozenset({"f"})


def test_apply_instantiates_polymorphic_ambient() -> None:
    judgment = first_judgment({}, INT, ambient={"ident": fun(TyVar("t"), TyVar("t"))})
    outcomes = _run(apply("ident"), judgment)
    progress = outcomes[0]
    assert isinstance(progress, Progress)
    assert progress.state.unifier.apply(progress.goals[0].goal) == INT
    assert progress.state.used_vals == frozenset()


def test_apply_errors() -> None:
    judgment = first_judgment({"f": fun(INT, BOOL)}, INT)
    assert _errors(_run(apply("f"), judgment)) == [UnificationError(BOOL, INT)]
    assert _errors(_run(apply("g"), judgment)) == [UndefinedHypothesis("g")]


def test_split_on_bool_builds_constructors() -> None:
    outcomes = _run(split, first_judgment({}, BOOL))
    extracts = [discharge(outcome)[1] for outcome in outcomes if isinstance(outcome, Progress)]
    assert extracts == [
        {"kind": "con", "name": "False", "args": []},
        {"kind": "con", "name": "True", "args": []},
    ]


def test_split_errors() -> None:
    assert _errors(_run(split, first_judgment({}, TyVar("a")))) == [TooPolymorphic()]
    assert _errors(_run(split, first_judgment({}, INT))) == [GoalMismatch("split", INT)]
    disabled = _env(split_enabled=False)
    assert _errors(_run(split, first_judgment({}, BOOL), env=disabled)) == [NoApplicableTactic()]


def test_split_skips_constructor_without_new_goals() -> None:
    env = _env(_nat_context())
    outcomes = _run(split, first_judgment({}, NAT), env=env)
    assert _errors(outcomes) == [UnhelpfulSplit("S")]
    allowed = _run(split, first_judgment({}, NAT).allow_split(), env=env)
    assert len([outcome for outcome in allowed if isinstance(outcome, Progress)]) == 2


def test_split_con_checks_constructor() -> None:
    assert _errors(_run(split_con("Just"), first_judgment({}, BOOL))) == [
        IncorrectDataConstructor("Just")
    ]
    outcomes = _run(split_con("Cons"), first_judgment({}, con("List", INT)))
    assert [goal.goal for goal in outcomes[0].goals] == [INT, con("List", INT)]


def test_destruct_builds_case_per_constructor() -> None:
    judgment = first_judgment({"p": con("Pair", TyVar("a"), TyVar("b"))}, TyVar("b"))
    outcomes = _run(destruct("p"), judgment)
    progress = outcomes[0]
    assert isinstance(progress, Progress)
    branch = progress.goals[0]
    assert branch.destructed == frozenset({"p"})
    assert branch.pattern_vals == frozenset({"a", "b"})
    assert branch.ancestry["a"] == frozenset({"p"})
    assert discharge(progress)[1] == case("p", [("Pair", ["a", "b"], hole())])
    assert progress.state.used_vals == frozenset({"p"})


def test_destruct_errors() -> None:
    judgment = first_judgment({"b": BOOL, "n": INT, "x": TyVar("a")}, INT)
    assert _errors(_run(destruct("q"), judgment)) == [UndefinedHypothesis("q")]
    assert _errors(_run(destruct("n"), judgment)) == [GoalMismatch("destruct", INT)]
    assert _errors(_run(destruct("x"), judgment)) == [TooPolymorphic()]
    assert _errors(_run(destruct("b"), judgment.disallow_destruct())) == [NoApplicableTactic()]
    disabled = _env(destruct_enabled=False)
    assert _errors(_run(destruct("b"), judgment, env=disabled)) == [NoApplicableTactic()]
    twice = destruct("b") >> destruct("b")
    assert AlreadyDestructed("b") in _errors(_run(twice, judgment))


def test_destruct_of_pattern_val_without_new_types() -> None:
    judgment = first_judgment({"xs": LIST_A}, INT)
    tactic = then_each(destruct("xs"), skip, destruct("as"))
    assert _errors(_run(tactic, judgment)) == [UnhelpfulDestruct("as")]


def test_name_hints() -> None:
    assert name_hint(BOOL) == "b"
    assert name_hint(con("List", INT)) == "ns"
    assert name_hint(fun(INT, INT)) == "f"
    assert name_hint(TyVar("elem")) == "e"
    name, state = fresh_name("x", {"x", "x0"}, initial())
    assert name == "x1"
    assert state.unique_gen.counter == 2
