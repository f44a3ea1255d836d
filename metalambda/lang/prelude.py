"""Standard combinators every Evaluator starts with. Written in metalambda itself and evaluated line by line, so later
lines may refer to names bound by earlier ones.

Source: https://en.wikipedia.org/wiki/Combinatory_logic#Examples_of_combinators,
        https://en.wikipedia.org/wiki/Church_encoding
"""

PRELUDE = r"""
I <- \x.x
M <- \x.x x
K <- \x.\y.x
KI <- \x.\y.y
B <- \f.\g.\x.f (g x)
C <- \f.\x.\y.f y x
S <- \x.\y.\z.x z (y z)

T <- K
F <- KI
TRUE <- T
FALSE <- F
NOT <- \p.p F T
AND <- \p.\q.p q p
OR <- \p.\q.p p q

PAIR <- \x.\y.\f.f x y
FST <- \p.p T
SND <- \p.p F

ZERO <- \f.\x.x
SUCC <- \n.\f.\x.f (n f x)
ONE <- \f.\x.f x
TWO <- \f.\x.f (f x)
THREE <- \f.\x.f (f (f x))
PLUS <- \m.\n.\f.\x.m f (n f x)
MULT <- \m.\n.\f.m (n f)
ISZERO <- \n.n (\x.F) T
"""


def definitions():
    """Yields each non-empty line of PRELUDE."""
    for line in PRELUDE.splitlines():
        if line.strip():
            yield line.strip()
