"""Evaluation of metalambda expressions: metavariable expansion followed by normal-order beta reduction to full
normal form.

Basic program flow for one top-level input:
    1. Expansion: every metavariable is replaced with a copy of the value bound to its name, and every variable name
       in the result is recorded as used (so alpha-renaming never picks a name that is already visible).
    2. Reduction: the expanded tree is reduced until it contains no redexes, under binders too. Bindings met along the
       way store their reduced value in the environment.

A term without a normal form makes reduction run forever, unless the Evaluator was given a step budget.
"""

from copy import deepcopy
from types import MappingProxyType

from metalambda.lang.error import InvariantViolation, ReductionLimitExceeded, UnboundMetavariable
from metalambda.lang.lexical import parse
from metalambda.lang.prelude import definitions
from metalambda.pure.names import NameSupply
from metalambda.pure.terms import Abstraction, Application, Binding, Grouping, MetaVariable, Variable


class Evaluator:
    """Owns one environment (name: fully reduced value) and the used-name set of the current evaluation. Evaluators
    never share state, so independent sessions need independent Evaluators.
    """

    def __init__(self, prelude=True, max_steps=None, subscripts=False):
        """If prelude, the environment is seeded with the standard combinators in metalambda/lang/prelude.py.
        max_steps bounds the number of beta-reductions per evaluation (None = unbounded). If subscripts, fresh names
        continue with subscripted letters once the alphabet runs out.
        """
        self._env = {}
        self.names = NameSupply(subscripts)
        self.max_steps = max_steps
        self.steps = 0

        if prelude:
            for line in definitions():
                self.evaluate(parse(line))

    @property
    def environment(self):
        """Read-only view of the current bindings."""
        return MappingProxyType(self._env)

    def evaluate(self, expr, error_handler=None):
        """Expands and then reduces expr, returning its normal form. error_handler (optional) is sent each evaluation
        step.
        """
        self.names.reset()
        self.steps = 0

        expanded = self.expand(expr)
        if error_handler is not None:
            error_handler.register_step("δ", expanded)

        return self.reduce(expanded, error_handler)

    def expand(self, expr):
        """Returns expr with every metavariable replaced by its bound value. Records every variable name in expr (and
        in the substituted values) as used. Raises UnboundMetavariable if a name has no binding.
        """
        if isinstance(expr, Variable):
            self.names.use(expr.name)
            return expr

        elif isinstance(expr, Abstraction):
            self.names.use(expr.param)
            return Abstraction(expr.param, self.expand(expr.body))

        elif isinstance(expr, Application):
            return Application(self.expand(expr.function), self.expand(expr.argument))

        elif isinstance(expr, Grouping):
            return Grouping(self.expand(expr.inner))

        elif isinstance(expr, Binding):
            return Binding(expr.name, self.expand(expr.value))

        elif isinstance(expr, MetaVariable):
            if expr.name not in self._env:
                raise UnboundMetavariable(expr.name, expr.location)
            return self.expand(deepcopy(self._env[expr.name]))

        raise InvariantViolation("cannot expand '{}': not an Expression", repr(expr))

    def reduce(self, expr, error_handler=None):
        """Returns the beta-normal form of expr, which must already be expanded. Redexes are contracted leftmost
        outermost first, and the argument is substituted unreduced.
        """
        while True:
            if isinstance(expr, Variable):
                return expr

            elif isinstance(expr, Abstraction):
                return Abstraction(expr.param, self.reduce(expr.body, error_handler))

            elif isinstance(expr, Grouping):
                expr = expr.inner

            elif isinstance(expr, Binding):
                value = self.reduce(expr.value, error_handler)
                self._env[expr.name] = deepcopy(value)  # later bindings of the same name overwrite earlier ones
                return value

            elif isinstance(expr, Application):
                function = self._head(expr.function, error_handler)
                if not isinstance(function, Abstraction):
                    return Application(self.reduce(function, error_handler), self.reduce(expr.argument, error_handler))
                expr = self.contract(function, expr.argument, error_handler)

            elif isinstance(expr, MetaVariable):
                raise InvariantViolation("unexpanded metavariable '{}' reached reduction", expr.name)

            else:
                raise InvariantViolation("cannot reduce '{}': not an Expression", repr(expr))

    def _head(self, expr, error_handler):
        """Contracts redexes at the head of expr until it is no longer a redex (weak head normal form). Does not reduce
        under binders or in argument position.
        """
        while True:
            if isinstance(expr, Grouping):
                expr = expr.inner

            elif isinstance(expr, Application):
                function = self._head(expr.function, error_handler)
                if not isinstance(function, Abstraction):
                    return Application(function, expr.argument)
                expr = self.contract(function, expr.argument, error_handler)

            elif isinstance(expr, Binding):
                return self.reduce(expr, error_handler)  # commits the binding

            else:
                return expr

    def contract(self, abstraction, argument, error_handler=None):
        """One beta-reduction step: (λx.M) N -> M[x := N]."""
        self.steps += 1
        if self.max_steps is not None and self.steps > self.max_steps:
            raise ReductionLimitExceeded(self.max_steps)

        result = abstraction.body.sub(abstraction.param, argument, self.names)
        if error_handler is not None:
            error_handler.register_step("β", result)
        return result
