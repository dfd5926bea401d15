"""Text -> tokens -> expression tree.

>>> tokenize("1 + 2*3.5")
[Number(value=1.0), Operator(kind=<Kind.PLUS: 'plus'>), Number(value=2.0), Operator(kind=<Kind.TIMES: 'times'>), Number(value=3.5)]
>>> to_ast("1+2*3")
Plus(left=Constant(value=1.0), right=Times(left=Constant(value=2.0), right=Constant(value=3.0)))
>>> render_or_error("1 + 2"), render_or_error("1 +")
('1+2', 'error')
"""
import logging
import math
import re
from typing import NamedTuple, Optional, Type

from mathnode import (
    Constant,
    ExpressionError,
    InvalidInputError,
    Kind,
    ParseError,
    Plus,
    Times,
    UnreachableError,
    render,
)

logger = logging.getLogger(__name__)


class Op(NamedTuple):
    kind: Kind
    prec: int
    node: Type  # Plus or Times

    @property
    def symbol(self):
        return self.node.symbol

    def __repr__(self):
        return f"op({self.symbol!r})"

    def left_first(self, other):
        # All operators are left-associative.
        return self.prec >= other.prec

    def apply(self, stack):
        stack[-2:] = [self.node(*stack[-2:])]


OPS = {op.kind: op for op in (Op(Kind.PLUS, 0, Plus), Op(Kind.TIMES, 1, Times))}


def _build_operator_table():
    table = [None] * 256
    for op in OPS.values():
        table[ord(op.symbol)] = op.kind
    return tuple(table)


OPERATOR_TABLE = _build_operator_table()


def lookup_operator(char) -> Optional[Kind]:
    """The operator `char` denotes, or None.

    >>> lookup_operator("*"), lookup_operator("-")
    (<Kind.TIMES: 'times'>, None)
    """
    code = ord(char)
    return OPERATOR_TABLE[code] if code < len(OPERATOR_TABLE) else None


class Number(NamedTuple):
    value: float


class Operator(NamedTuple):
    kind: Kind


# A literal is the whole run of digits and points, so "1..2" is one bad literal
# rather than "1." followed by ".2". No exponents.
number_rex = re.compile(r"[0-9.]+")


def tokenize(text):
    tokens = []
    i = 0
    while i < len(text):
        c = text[i]
        if c.isspace():
            i += 1
        elif "0" <= c <= "9" or c == ".":
            literal = number_rex.match(text, i).group()
            try:
                value = float(literal)
            except ValueError:
                raise InvalidInputError(text, i, literal) from None
            # Too large for a double; "inf" would not read back either.
            if not math.isfinite(value):
                raise InvalidInputError(text, i, literal)
            tokens.append(Number(value))
            i += len(literal)
        elif kind := lookup_operator(c):
            tokens.append(Operator(kind))
            i += 1
        else:
            raise InvalidInputError(text, i, c)
    logger.debug("tokenized %r into %d tokens", text, len(tokens))
    return tokens


def _describe(token):
    if isinstance(token, Number):
        return f"number {token.value!r}"
    if isinstance(token, Operator) and token.kind in OPS:
        return f"operator {OPS[token.kind].symbol!r}"
    return repr(token)


def parse(tokens):
    """Build a tree from `tokens`; `*` binds tighter than `+`, both group left.

    The whole token sequence must form one expression, anything else is a
    `ParseError`. Any iterable of tokens is accepted.
    """
    exprs = []
    ops = []
    last_was_op = True
    pos = -1
    for pos, tok in enumerate(tokens):
        if isinstance(tok, Number):
            if not last_was_op:
                raise ParseError("operator", _describe(tok), pos)
            exprs.append(Constant(tok.value))
            last_was_op = False
        elif isinstance(tok, Operator) and (o := OPS.get(tok.kind)):
            if last_was_op:
                raise ParseError("number", _describe(tok), pos)
            while ops and ops[-1].left_first(o):
                ops.pop().apply(exprs)
            ops.append(o)
            last_was_op = True
        else:
            raise ParseError("number or operator", _describe(tok), pos)
    if last_was_op:
        raise ParseError("number", "end of input", pos + 1)
    while ops:
        ops.pop().apply(exprs)
    if len(exprs) != 1:
        raise UnreachableError(f"parse left {len(exprs)} operands on the stack")
    (ans,) = exprs
    logger.debug("parsed %d tokens into a %s tree", pos + 1, type(ans).__name__)
    return ans


def to_ast(text):
    return parse(tokenize(text))


def render_or_error(text):
    """Parse and re-render `text`, or return ``"error"`` if that fails."""
    try:
        return render(to_ast(text))
    except (ExpressionError, UnreachableError, NotImplementedError) as e:
        logger.debug("could not handle %r: %s", text, e)
        return "error"
