"""Fresh variable names for alpha-renaming.

A NameSupply is the set of identifiers visible in the expression currently being evaluated. Renamed binders are drawn
from it so they never collide with a name already in use. Names are handed out deterministically: the lowercase
alphabet in order, then (if enabled) the alphabet again with subscripts, ex: a₁, b₁, ..., z₁, a₂.
"""

from itertools import count
from string import ascii_lowercase

from metalambda.lang.error import InvariantViolation


class NameSupply:
    """Used-name set plus fresh-name generation. Reset at the start of every top-level evaluation."""
    ALPHABET = ascii_lowercase
    SUBS = ["₀", "₁", "₂", "₃", "₄", "₅", "₆", "₇", "₈", "₉"]

    def __init__(self, subscripts=False):
        """If subscripts, the supply continues with subscripted letters once the alphabet is exhausted instead of
        raising an InvariantViolation.
        """
        self.subscripts = subscripts
        self.used = set()

    def reset(self):
        self.used = set()

    def use(self, name):
        """Marks name as used."""
        self.used.add(name)

    @staticmethod
    def subscript(var, num):
        """Returns var with subscript of num."""
        return var + "".join(NameSupply.SUBS[int(digit)] for digit in str(num))

    def _candidates(self):
        yield from NameSupply.ALPHABET
        if self.subscripts:
            for num in count(1):
                for var in NameSupply.ALPHABET:
                    yield NameSupply.subscript(var, num)

    def fresh(self):
        """Returns the first candidate name not in use and marks it used."""
        for name in self._candidates():
            if name not in self.used:
                self.used.add(name)
                return name
        raise InvariantViolation("ran out of fresh variable names ({} in use)", str(len(self.used)))

    def __contains__(self, name):
        return name in self.used

    def __len__(self):
        return len(self.used)

    def __repr__(self):
        return f"NameSupply({sorted(self.used)})"
