"""Immutable expression trees for small arithmetic expressions.

A tree is made of four node kinds: `Constant`, `Variable`, `Plus` and `Times`.
Nodes never change after construction, so the same subtree may be shared
by any number of parents:

>>> one = constant(1)
>>> shared = plus(one, variable("x"))
>>> tree = times(shared, shared)
>>> tree.left is tree.right
True
>>> render(tree)
'1+x*1+x'

Note that `render` never emits parentheses, so its output is not a faithful
text form for trees that mix `Plus` under `Times` (see `render`).
"""
import decimal
import enum
import math
import numbers
from dataclasses import dataclass
from typing import ClassVar, Tuple


class ExpressionError(ValueError):
    """Base class for problems with user supplied expressions."""


class InvalidInputError(ExpressionError):
    def __init__(self, text, position, fragment):
        super().__init__(
            f"invalid input {text!r}: unexpected {fragment!r} at position {position}"
        )
        self.text = text
        self.position = position
        self.fragment = fragment


class ParseError(ExpressionError):
    def __init__(self, expected, found, position):
        super().__init__(f"expected {expected}, found {found} at token {position}")
        self.expected = expected
        self.found = found
        self.position = position


class UnreachableError(AssertionError):
    """An internal invariant was violated; this is a bug, not bad input."""


class Kind(enum.Enum):
    CONSTANT = "constant"
    VARIABLE = "variable"
    PLUS = "plus"
    TIMES = "times"


def operand_count(kind):
    """Number of operands a node of `kind` holds.

    >>> operand_count(Kind.VARIABLE), operand_count(Kind.TIMES)
    (0, 2)
    """
    if kind is Kind.CONSTANT or kind is Kind.VARIABLE:
        return 0
    if kind is Kind.PLUS or kind is Kind.TIMES:
        return 2
    raise UnreachableError(f"no operand count for {kind!r}")


class Expr:
    kind: ClassVar[Kind]

    @property
    def operands(self) -> Tuple["Expr", ...]:
        return ()

    def render(self):
        return render(self)

    def __str__(self):
        return render(self)


@dataclass(frozen=True)
class Constant(Expr):
    value: float
    kind: ClassVar[Kind] = Kind.CONSTANT

    def __post_init__(self):
        if isinstance(self.value, bool) or not isinstance(self.value, numbers.Real):
            raise TypeError(f"constant needs a real number, not {self.value!r}")
        object.__setattr__(self, "value", float(self.value))


@dataclass(frozen=True)
class Variable(Expr):
    name: str
    kind: ClassVar[Kind] = Kind.VARIABLE

    def __post_init__(self):
        if not isinstance(self.name, str):
            raise TypeError(f"variable name must be a str, not {self.name!r}")
        if not self.name:
            raise ValueError("variable name must not be empty")


@dataclass(frozen=True)
class _Binary(Expr):
    left: Expr
    right: Expr
    symbol: ClassVar[str]

    def __post_init__(self):
        for operand in (self.left, self.right):
            if not isinstance(operand, Expr):
                raise TypeError(
                    f"{type(self).__name__} operands must be expressions, not {operand!r}"
                )

    @property
    def operands(self):
        return (self.left, self.right)


@dataclass(frozen=True)
class Plus(_Binary):
    kind: ClassVar[Kind] = Kind.PLUS
    symbol: ClassVar[str] = "+"


@dataclass(frozen=True)
class Times(_Binary):
    kind: ClassVar[Kind] = Kind.TIMES
    symbol: ClassVar[str] = "*"


def constant(value):
    return Constant(value)


def variable(name):
    return Variable(name)


def plus(a, b):
    return Plus(a, b)


def times(a, b):
    return Times(a, b)


NODE_TYPES = {cls.kind: cls for cls in (Constant, Variable, Plus, Times)}


def make(kind, *args):
    """Build a node of `kind`; operand nodes must match its arity exactly.

    >>> make(Kind.PLUS, constant(1), constant(2))
    Plus(left=Constant(value=1.0), right=Constant(value=2.0))
    >>> make(Kind.PLUS, constant(1))
    Traceback (most recent call last):
    ...
    TypeError: plus takes 2 operands, got 1
    """
    n = operand_count(kind)
    if n == 0:
        if len(args) != 1:
            raise TypeError(f"{kind.value} takes exactly one payload, got {len(args)}")
    elif len(args) != n:
        raise TypeError(f"{kind.value} takes {n} operands, got {len(args)}")
    return NODE_TYPES[kind](*args)


def eq(a, b):
    # Equations have no agreed arity or rendering yet.
    raise NotImplementedError("equations are not supported yet")


def canonicalize_num(num):
    """Shortest positional decimal text for `num`, dropping a zero fractional part.

    Never uses exponent notation, which the tokenizer does not read.

    >>> canonicalize_num(2.0), canonicalize_num(3.5), canonicalize_num(1e-05)
    ('2', '3.5', '0.00001')
    >>> canonicalize_num(float("inf"))
    'inf'
    """
    if not math.isfinite(num):
        return repr(num)
    if (integer := int(num)) == num:
        return repr(integer)
    return format(decimal.Decimal(repr(num)), "f")


def render(node):
    """Render `node` as infix text, e.g. ``Plus(Constant(1), Constant(2))`` -> ``1+2``.

    No parentheses are ever written, so the text is a one-way form: a
    `Plus` under a `Times` renders the same as the differently shaped tree
    that parsing the text would give back. Constants that are not finite,
    which only direct construction can produce, render as `inf` or `nan`
    and do not read back either.

    >>> render(times(plus(constant(1), constant(2)), constant(3)))
    '1+2*3'
    """
    if not isinstance(node, Expr):
        raise TypeError(f"cannot render {node!r}")
    # Explicit work stack instead of recursion, so arbitrarily deep trees render.
    parts = []
    todo = [node]
    while todo:
        x = todo.pop()
        if type(x) is str:
            parts.append(x)
        elif isinstance(x, Constant):
            parts.append(canonicalize_num(x.value))
        elif isinstance(x, Variable):
            parts.append(x.name)
        elif isinstance(x, _Binary):
            todo += [x.right, x.symbol, x.left]
        else:
            raise UnreachableError(f"cannot render {x!r}")
    return "".join(parts)
