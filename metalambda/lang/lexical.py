"""Lexical analysis and parsing for the metalambda language. Turns a source string into an Expression tree (see
metalambda/pure/terms.py for the tree itself).

All grammar can be loosely defined as follows:

```
<binding>     ::= <META> "<-" <binding> | <abstraction>    ; spaces around "<-" are optional
<abstraction> ::= <lambda> <var> "." <abstraction>         ; <lambda> is "\" or "λ"
                | <application>
<application> ::= <primary> { " " <primary> } [ " " <abstraction> ]
<primary>     ::= "(" <binding> ")" | <var> | <META>

<var>         ::= [a-z] <subscript digit>*                  ; ex: x, a₁
<META>        ::= ( "$" | [A-Z] ) [A-Za-z0-9_]*             ; ex: I, KI, $tmp
```

Spaces separate applications, so they are significant; runs of spaces count as one, and spaces next to parentheses,
after "." and at either end of a line are ignored.
"""

from enum import Enum

from metalambda.lang.error import LexicalError, ParseError
from metalambda.pure.names import NameSupply
from metalambda.pure.terms import Abstraction, Application, Binding, Grouping, Location, MetaVariable, Variable


class TokenType(Enum):
    LAMBDA = "lambda"
    VAR = "variable"
    SPACE = "space"
    DOT = "'.'"
    LPAREN = "'('"
    RPAREN = "')'"
    META = "metavariable"
    ARROW = "'<-'"
    EOF = "end of input"


class Token:
    """Lexeme plus its type and 1-based source position."""

    def __init__(self, ttype, lexeme, line, col):
        self.ttype = ttype
        self.lexeme = lexeme
        self.line = line
        self.col = col

    @property
    def location(self):
        return Location(self.line, self.col)

    def __eq__(self, other):
        return isinstance(other, Token) and (self.ttype, self.lexeme) == (other.ttype, other.lexeme)

    def __repr__(self):
        return f"Token({self.ttype.name}, '{self.lexeme}', {self.line}:{self.col})"


class Lexer:
    """Splits a source string into Tokens."""
    SINGLE = {
        "(": TokenType.LPAREN,
        ")": TokenType.RPAREN,
        ".": TokenType.DOT,
        "\\": TokenType.LAMBDA,
        "λ": TokenType.LAMBDA,
    }
    SPACES = " \t"

    def __init__(self):
        self.line = 1
        self.col = 1

    @staticmethod
    def is_meta_start(char):
        return char == "$" or ("A" <= char <= "Z")

    @staticmethod
    def is_meta_char(char):
        return char == "_" or (char.isascii() and char.isalnum())

    def lex(self, source):
        """Returns list of Tokens in source, ending with an EOF Token. Raises a LexicalError on the first character
        that cannot start a token.
        """
        tokens = []
        lines = source.split("\n")
        idx = 0

        while idx < len(source):
            char = source[idx]
            start = idx

            if char == "\n":
                self.line += 1
                self.col = 1
                idx += 1
                continue
            elif char == "\r":
                idx += 1
                continue
            elif char in Lexer.SINGLE:
                tokens.append(Token(Lexer.SINGLE[char], char, self.line, self.col))
                idx += 1
            elif char in Lexer.SPACES:
                while idx < len(source) and source[idx] in Lexer.SPACES:
                    idx += 1
                tokens.append(Token(TokenType.SPACE, source[start:idx], self.line, self.col))
            elif char == "<":
                if source[idx + 1:idx + 2] != "-":
                    self._error("unexpected character '{}', did you mean '<-'?", lines, char)
                tokens.append(Token(TokenType.ARROW, "<-", self.line, self.col))
                idx += 2
            elif "a" <= char <= "z":
                idx += 1
                while idx < len(source) and source[idx] in NameSupply.SUBS:
                    idx += 1
                tokens.append(Token(TokenType.VAR, source[start:idx], self.line, self.col))
            elif Lexer.is_meta_start(char):
                idx += 1
                while idx < len(source) and Lexer.is_meta_char(source[idx]):
                    idx += 1
                tokens.append(Token(TokenType.META, source[start:idx], self.line, self.col))
            else:
                self._error("unexpected character '{}'", lines, char)

            self.col += idx - start

        tokens.append(Token(TokenType.EOF, "", self.line, self.col))
        return tokens

    def _error(self, msg, lines, char):
        line = lines[self.line - 1]
        start = self.col - 1
        raise LexicalError("'{}': " + msg, (line, char), start=start, end=start + len(char))


class Parser:
    """Recursive descent parser over a list of Tokens. See module docstring for the grammar."""
    PRIMARY_START = (TokenType.LPAREN, TokenType.VAR, TokenType.META)

    def __init__(self, tokens, source=""):
        """source is only used for error messages."""
        self.tokens = tokens
        self.source = source
        self.idx = 0

    def parse(self):
        """Returns the Expression represented by self.tokens. Raises a ParseError if the tokens are not valid
        metalambda grammar.
        """
        self._skip_space()
        expr = self._binding()
        self._skip_space()
        self._expect(TokenType.EOF)
        return expr

    def _binding(self):
        if self._check(TokenType.META) and self._peek_past_space(1).ttype is TokenType.ARROW:
            name = self._advance().lexeme
            self._skip_space()
            self._expect(TokenType.ARROW)
            self._skip_space()
            return Binding(name, self._binding())
        return self._abstraction()

    def _abstraction(self):
        if self._match(TokenType.LAMBDA):
            param = self._expect(TokenType.VAR).lexeme
            self._expect(TokenType.DOT)
            self._skip_space()
            return Abstraction(param, self._abstraction())
        return self._application()

    def _application(self):
        expr = self._primary()
        while self._check(TokenType.SPACE):
            following = self._peek_past_space(0)
            if following.ttype in Parser.PRIMARY_START:
                self._skip_space()
                expr = Application(expr, self._primary())
            elif following.ttype is TokenType.LAMBDA:
                self._skip_space()
                return Application(expr, self._abstraction())  # trailing abstraction takes the rest
            else:
                break
        return expr

    def _primary(self):
        if self._match(TokenType.LPAREN):
            self._skip_space()
            expr = self._binding()
            self._skip_space()
            self._expect(TokenType.RPAREN)
            return Grouping(expr)
        elif self._check(TokenType.VAR):
            return Variable(self._advance().lexeme)
        elif self._check(TokenType.META):
            token = self._advance()
            return MetaVariable(token.lexeme, token.location)
        self._error("expected a λ-term, found {}".format(self._current().ttype.value))

    def _current(self):
        return self.tokens[self.idx]

    def _advance(self):
        token = self.tokens[self.idx]
        if token.ttype is not TokenType.EOF:
            self.idx += 1
        return token

    def _check(self, ttype):
        return self._current().ttype is ttype

    def _match(self, ttype):
        if self._check(ttype):
            self._advance()
            return True
        return False

    def _expect(self, ttype):
        if not self._check(ttype):
            self._error(f"expected {ttype.value}, found {self._current().ttype.value}")
        return self._advance()

    def _skip_space(self):
        while self._check(TokenType.SPACE):
            self._advance()

    def _peek_past_space(self, offset):
        """Returns the first non-space token at least offset tokens ahead."""
        idx = self.idx + offset
        while self.tokens[idx].ttype is TokenType.SPACE:
            idx += 1
        return self.tokens[idx]

    def _error(self, msg):
        token = self._current()
        start = token.col - 1
        end = start + max(len(token.lexeme), 1)
        raise ParseError("'{}': " + msg.replace("{", "{{").replace("}", "}}"), self.source, start=start, end=end)


def parse(source):
    """Lexes and parses source in one go."""
    return Parser(Lexer().lex(source), source).parse()
