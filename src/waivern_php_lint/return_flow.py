"""Return-flow analysis of function bodies.

Walks the flow model of a body forward, collecting every reachable return
with the inferred type of its value, and decides whether control can reach
the end of the body without returning.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from waivern_php_lint.flow import (
    Block,
    Branch,
    Exit,
    FlowNode,
    Guarded,
    Halt,
    Jump,
    Loop,
    Switch,
    Unparsed,
    lower_block,
)
from waivern_php_lint.inference import InferenceContext, infer_expression
from waivern_php_lint.symbols import FunctionSymbol
from waivern_php_lint.syntax.nodes import SourcePosition
from waivern_php_lint.types import (
    INFERRED_VOID,
    NULL,
    InferredType,
    join_all,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class ReturnExit:
    """A reachable ``return`` and what it contributes."""

    position: SourcePosition
    inferred: InferredType
    has_expression: bool


@dataclass(frozen=True, slots=True)
class ReturnFlowResult:
    """Outcome of analysing one function body.

    Attributes:
        exits: Reachable returns in source order
        falls_through: Whether control can reach the end of the body
        summary: Join of every contribution, including the implicit ``null``
            of a fall-through; None when the body can neither return nor
            fall through
        has_unparsed: Whether the body contains regions the front end could
            not read, which makes ``falls_through`` unreliable

    """

    exits: tuple[ReturnExit, ...]
    falls_through: bool
    summary: InferredType | None
    has_unparsed: bool = False


@dataclass(frozen=True, slots=True)
class _Outcome:
    """How a walked region can be left besides returning or halting.

    ``breaks`` and ``continues`` hold the jump levels still to unwind,
    relative to the region.
    """

    normal: bool
    breaks: frozenset[int] = field(default_factory=frozenset)
    continues: frozenset[int] = field(default_factory=frozenset)


_TERMINATED = _Outcome(normal=False)
_COMPLETED = _Outcome(normal=True)


class ReturnFlowAnalyser:
    """Analyses one function body at a time; instances hold no state."""

    def analyse(
        self, function: FunctionSymbol, context: InferenceContext | None = None
    ) -> ReturnFlowResult:
        """Analyse the return flow of a function.

        Args:
            function: Function symbol whose body is walked
            context: Binding context for ``$this``; derived from the
                function's owner when omitted

        Returns:
            Reachable exits and fall-through information. A function without
            a body yields no exits and does not fall through.

        """
        if function.body is None:
            return ReturnFlowResult(exits=(), falls_through=False, summary=None)

        if context is None:
            owner = function.owner.name if function.owner is not None else None
            context = InferenceContext(self_class=owner)

        walk = _Walk(context)
        outcome = walk.block(lower_block(function.body))

        contributions = [exit_.inferred for exit_ in walk.exits]
        if outcome.normal:
            contributions.append(NULL)

        logger.debug(
            "%s: %d reachable returns, falls through: %s",
            function.display_name,
            len(walk.exits),
            outcome.normal,
        )
        return ReturnFlowResult(
            exits=tuple(walk.exits),
            falls_through=outcome.normal,
            summary=join_all(contributions),
            has_unparsed=walk.has_unparsed,
        )


class _Walk:
    def __init__(self, context: InferenceContext) -> None:
        self._context = context
        self.exits: list[ReturnExit] = []
        self.has_unparsed = False

    def block(self, nodes: Block) -> _Outcome:
        breaks: set[int] = set()
        continues: set[int] = set()
        for node in nodes:
            outcome = self.node(node)
            breaks |= outcome.breaks
            continues |= outcome.continues
            if not outcome.normal:
                # Whatever follows is unreachable
                return _Outcome(False, frozenset(breaks), frozenset(continues))
        return _Outcome(True, frozenset(breaks), frozenset(continues))

    def node(self, node: FlowNode) -> _Outcome:
        match node:
            case Exit(value=value, position=position):
                if value is None:
                    self.exits.append(ReturnExit(position, INFERRED_VOID, False))
                else:
                    inferred = infer_expression(value, self._context)
                    self.exits.append(ReturnExit(position, inferred, True))
                return _TERMINATED
            case Halt():
                return _TERMINATED
            case Jump(kind="break", level=level):
                return _Outcome(False, breaks=frozenset({level}))
            case Jump(level=level):
                return _Outcome(False, continues=frozenset({level}))
            case Unparsed():
                self.has_unparsed = True
                return _COMPLETED
            case Branch():
                return self._branch(node)
            case Loop():
                return self._loop(node)
            case Switch():
                return self._switch(node)
            case Guarded():
                return self._guarded(node)
        raise TypeError(f"Unhandled flow node: {node!r}")

    def _branch(self, node: Branch) -> _Outcome:
        outcomes = [self.block(arm) for arm in node.arms]
        normal = not node.exhaustive or any(outcome.normal for outcome in outcomes)
        return _merge(normal, outcomes)

    def _loop(self, node: Loop) -> _Outcome:
        body = self.block(node.body)
        iteration_can_end = body.normal or 1 in body.continues
        exits_via_break = 1 in body.breaks

        if node.unbounded:
            normal = exits_via_break
        elif node.runs_at_least_once:
            normal = iteration_can_end or exits_via_break
        else:
            normal = True
        return _Outcome(normal, _unwind(body.breaks), _unwind(body.continues))

    def _switch(self, node: Switch) -> _Outcome:
        # Every case label is reachable; a case that completes falls into the
        # next one, so only the last case can complete the switch directly
        outcomes = [self.block(arm) for arm in node.arms]
        leaves = any(
            1 in outcome.breaks or 1 in outcome.continues for outcome in outcomes
        )
        last_completes = not outcomes or outcomes[-1].normal
        normal = not node.has_default or last_completes or leaves

        breaks: set[int] = set()
        continues: set[int] = set()
        for outcome in outcomes:
            breaks |= _unwind(outcome.breaks)
            continues |= _unwind(outcome.continues)
        return _Outcome(normal, frozenset(breaks), frozenset(continues))

    def _guarded(self, node: Guarded) -> _Outcome:
        outcomes = [self.block(node.body)]
        outcomes.extend(self.block(handler) for handler in node.handlers)
        normal = any(outcome.normal for outcome in outcomes)

        if node.finally_body is not None:
            finally_outcome = self.block(node.finally_body)
            outcomes.append(finally_outcome)
            normal = normal and finally_outcome.normal
        return _merge(normal, outcomes)


def _merge(normal: bool, outcomes: list[_Outcome]) -> _Outcome:
    breaks: set[int] = set()
    continues: set[int] = set()
    for outcome in outcomes:
        breaks |= outcome.breaks
        continues |= outcome.continues
    return _Outcome(normal, frozenset(breaks), frozenset(continues))


def _unwind(levels: frozenset[int]) -> frozenset[int]:
    """Drop the jumps an enclosing loop or switch absorbs."""
    return frozenset(level - 1 for level in levels if level > 1)
