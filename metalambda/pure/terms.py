r"""Lambda calculus expression tree, extended with metavariables and bindings.

The `pure` directory contains the pure lambda calculus machinery (terms, substitution, fresh names): no knowledge of
environments or sessions lives here.

Formally, metalambda can be defined as

```
<expr> ::= <var>                    ; "variable"
                                    ; - single lowercase character, optionally subscripted (x, a₁)
         | "\" <var> "." <expr>     ; "abstraction"
                                    ; - abstraction bodies are greedy: \x.x y = \x.(x y) != (\x.x) (y)
         | <expr> " " <expr>        ; "application"
                                    ; - associating by left: a b c d = (((a b) c) d)
         | "(" <expr> ")"           ; "grouping" (transparent, gone after substitution/reduction)
         | <META> "<-" <expr>       ; "binding" (top-level assignment)
         | <META>                   ; "metavariable" (resolved against bound names before reduction)
```

Trees are never mutated once built: every operation here returns a new tree, sharing untouched subtrees with the
original. Only the term substituted for a variable is deep-copied, once per occurrence.

Sources: https://plato.stanford.edu/entries/lambda-calculus/#Com,
         http://pages.cs.wisc.edu/~horwitz/CS704-NOTES/1.LAMBDA-CALCULUS.html#NOR
"""

from abc import abstractmethod, ABC
from collections import namedtuple
from copy import deepcopy

from metalambda.lang.error import InvariantViolation


Location = namedtuple("Location", ["line", "col"])  # 1-based source position of a token


class Expression(ABC):
    """Superclass of every node in a metalambda syntax tree."""

    @property
    def _cls(self):
        return type(self).__name__

    @property
    @abstractmethod
    def expr(self):
        """Re-parseable string form of this tree, with as few parentheses as possible."""

    @property
    @abstractmethod
    def nodes(self):
        """Child expressions, left to right."""

    @abstractmethod
    def sub(self, var, term, names):
        """Capture-avoiding substitution: returns self[var := term]. names is the NameSupply that renamed binders are
        drawn from. Never modifies self or term.
        """

    @abstractmethod
    def is_free(self, var):
        """Whether or not var occurs free in self."""

    @abstractmethod
    def alpha_rename(self, old, new):
        """Returns self with every free occurrence of old renamed to new. Used on the body of an abstraction binding
        old, so those occurrences are exactly the ones that binder binds. new must be fresh.
        """

    @abstractmethod
    def _alpha_equals(self, other, mapping, other_mapping, depth):
        """Helper for alpha_equals. mapping and other_mapping map each bound name to a stack of binder depths."""

    def alpha_equals(self, other):
        """Whether or not two Expressions are alpha-equivalent. Groupings are ignored."""
        return self._alpha_equals(other, {}, {}, 0)

    def walk(self):
        """Pre-order iteration over self and all of its sub nodes."""
        yield self
        for node in self.nodes:
            yield from node.walk()

    def display(self, indents=0):
        """Recursively displays Expression tree with readable format.

        Format:
        <Expression>(expr='<expr>', nodes=[
            <Expression>(expr='<expr>', nodes=[
                ...
                <Expression>(expr='<expr>')  # <-- if nodes is empty
            ])
        ])
        """
        result = f"{'    ' * indents}{self._cls}(expr='{self.expr}'"
        if self.nodes:
            result += ", nodes=["
            for node in self.nodes:
                result += "\n" + node.display(indents + 1) + ","
            result = result[:-1] + f"\n{'    ' * indents}]"
        return result + ")"

    def __repr__(self):
        return f"{self._cls}('{self.expr}')"

    def __str__(self):
        return self.expr

    def __eq__(self, other):
        return isinstance(other, type(self)) and self._fields() == other._fields()

    def __hash__(self):
        return hash((self._cls, self.expr))

    @abstractmethod
    def _fields(self):
        """Tuple of values that define structural equality."""


def _ungroup(expr):
    while isinstance(expr, Grouping):
        expr = expr.inner
    return expr


class Variable(Expression):
    """Variable in lambda calculus: a reference to the nearest enclosing binder with the same name."""

    def __init__(self, name):
        self.name = name

    @property
    def expr(self):
        return self.name

    @property
    def nodes(self):
        return []

    def sub(self, var, term, names):
        if self.name == var:
            return deepcopy(term)  # every occurrence gets its own copy
        return self

    def is_free(self, var):
        return self.name == var

    def alpha_rename(self, old, new):
        if self.name == old:
            return Variable(new)
        return self

    def _alpha_equals(self, other, mapping, other_mapping, depth):
        other = _ungroup(other)
        if not isinstance(other, Variable):
            return False

        bound = mapping.get(self.name)
        other_bound = other_mapping.get(other.name)
        if bound and other_bound:
            return bound[-1] == other_bound[-1]
        elif not bound and not other_bound:
            return self.name == other.name  # both free
        return False

    def _fields(self):
        return (self.name,)


class Abstraction(Expression):
    """Abstraction: a single-parameter function, the basic datatype in lambda calculus."""

    def __init__(self, param, body):
        self.param = param
        self.body = body

    @property
    def expr(self):
        if isinstance(self.body, Binding):
            return f"\\{self.param}.({self.body.expr})"
        return f"\\{self.param}.{self.body.expr}"

    @property
    def nodes(self):
        return [self.body]

    def sub(self, var, term, names):
        if self.param == var:
            return self  # var is shadowed by this binder

        if not self.body.is_free(var):
            return Abstraction(self.param, self.body.sub(var, term, names))

        # var occurs in body, so self.param could capture a free variable of term
        renamed = self.alpha_convert(names.fresh())
        return Abstraction(renamed.param, renamed.body.sub(var, term, names))

    def is_free(self, var):
        return self.param != var and self.body.is_free(var)

    def alpha_rename(self, old, new):
        if self.param == old:
            return self  # occurrences below are bound here, not by the binder being renamed
        return Abstraction(self.param, self.body.alpha_rename(old, new))

    def alpha_convert(self, new):
        """Returns self with its parameter renamed to new, ex: \\x.x y -> \\z.z y."""
        return Abstraction(new, self.body.alpha_rename(self.param, new))

    def _alpha_equals(self, other, mapping, other_mapping, depth):
        other = _ungroup(other)
        if not isinstance(other, Abstraction):
            return False

        mapping.setdefault(self.param, []).append(depth)
        other_mapping.setdefault(other.param, []).append(depth)
        try:
            return self.body._alpha_equals(other.body, mapping, other_mapping, depth + 1)
        finally:
            mapping[self.param].pop()
            other_mapping[other.param].pop()

    def _fields(self):
        return self.param, self.body


class Application(Expression):
    """Application of a function to a single argument."""

    def __init__(self, function, argument):
        self.function = function
        self.argument = argument

    @property
    def expr(self):
        left, right = self.function.expr, self.argument.expr
        if isinstance(self.function, (Abstraction, Binding)):
            left = f"({left})"
        if isinstance(self.argument, (Application, Abstraction, Binding)):
            right = f"({right})"
        return f"{left} {right}"

    @property
    def nodes(self):
        return [self.function, self.argument]

    def sub(self, var, term, names):
        return Application(self.function.sub(var, term, names), self.argument.sub(var, term, names))

    def is_free(self, var):
        return self.function.is_free(var) or self.argument.is_free(var)

    def alpha_rename(self, old, new):
        return Application(self.function.alpha_rename(old, new), self.argument.alpha_rename(old, new))

    def _alpha_equals(self, other, mapping, other_mapping, depth):
        other = _ungroup(other)
        if not isinstance(other, Application):
            return False

        return (self.function._alpha_equals(other.function, mapping, other_mapping, depth)
                and self.argument._alpha_equals(other.argument, mapping, other_mapping, depth))

    def _fields(self):
        return self.function, self.argument


class Grouping(Expression):
    """Parenthesized expression. Semantically transparent: substitution and reduction both drop it."""

    def __init__(self, inner):
        self.inner = inner

    @property
    def expr(self):
        return f"({self.inner.expr})"

    @property
    def nodes(self):
        return [self.inner]

    def sub(self, var, term, names):
        return self.inner.sub(var, term, names)

    def is_free(self, var):
        return self.inner.is_free(var)

    def alpha_rename(self, old, new):
        return Grouping(self.inner.alpha_rename(old, new))

    def _alpha_equals(self, other, mapping, other_mapping, depth):
        return self.inner._alpha_equals(other, mapping, other_mapping, depth)

    def _fields(self):
        return (self.inner,)


class Binding(Expression):
    """Top-level assignment NAME <- value. Evaluating it stores the normal form of value under NAME."""

    def __init__(self, name, value):
        self.name = name
        self.value = value

    @property
    def expr(self):
        return f"{self.name} <- {self.value.expr}"

    @property
    def nodes(self):
        return [self.value]

    def sub(self, var, term, names):
        return Binding(self.name, self.value.sub(var, term, names))

    def is_free(self, var):
        return self.value.is_free(var)

    def alpha_rename(self, old, new):
        return Binding(self.name, self.value.alpha_rename(old, new))

    def _alpha_equals(self, other, mapping, other_mapping, depth):
        other = _ungroup(other)
        if not isinstance(other, Binding) or self.name != other.name:
            return False
        return self.value._alpha_equals(other.value, mapping, other_mapping, depth)

    def _fields(self):
        return self.name, self.value


class MetaVariable(Expression):
    """Unresolved reference to a bound name. Must be expanded away before any reduction happens."""

    def __init__(self, name, location=None):
        self.name = name
        self.location = location

    @property
    def expr(self):
        return self.name

    @property
    def nodes(self):
        return []

    def sub(self, var, term, names):
        raise InvariantViolation("unexpanded metavariable '{}' reached substitution", self.name)

    def is_free(self, var):
        raise InvariantViolation("unexpanded metavariable '{}' reached free variable check", self.name)

    def alpha_rename(self, old, new):
        raise InvariantViolation("unexpanded metavariable '{}' reached alpha-renaming", self.name)

    def _alpha_equals(self, other, mapping, other_mapping, depth):
        other = _ungroup(other)
        return isinstance(other, MetaVariable) and self.name == other.name

    def _fields(self):
        return (self.name,)  # location is not part of identity
