import re
from functools import lru_cache
from typing import TYPE_CHECKING, Any, Tuple, Union

from physunits.core.errors import UnitParseError
from physunits.core.unit import Unit
from physunits.core.utils import exact, exact_div, is_number, parse_decimal, simplify_fraction

if TYPE_CHECKING:
    from physunits.units.registry import UnitsRegistry

# --- Plan node types ------------------------------------------------
# ("num", <number>)
# ("name", <str>)
# ("neg", <plan>)
# ("func", <str>, <plan>)
# ("pow", <plan>, <number>)
# ("mul" | "div" | "add" | "sub", <plan>, <plan>)
Plan = Tuple[Any, ...]

_NUMBER_RE = re.compile(r"(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?")
_NAME_RE = re.compile(r"(?:[^\W\d]|[%°$])[\w%°$]*")
_POWER_SUFFIX_RE = re.compile(r"^(.*\D)(\d+)$")

# Functions of a dimensionless argument, applied with `Unit.func`
FUNCTIONS = frozenset({
    "sqrt", "cbrt", "exp", "ln", "log", "log2", "log10",
    "sin", "cos", "tan", "asin", "acos", "atan", "sinh", "cosh", "tanh",
})


# ---------------- Parser that builds a PLAN (no registry lookups!) ----------------
class _UnitExprParser:
    """
    Grammar:
      sum     := product (('+' | '-') product)*
      product := ['/'] term (('*' | '/') term)*
      term    := unary unary*             juxtaposition, binds tighter than * and /
      unary   := ('-' | '+') unary | power
      power   := primary [('^' | '**') exponent]
      primary := number | FUNC '(' sum ')' | NAME | '(' sum ')'
      number  := DECIMAL ['|' DECIMAL]     '|' divides numbers only
      exponent:= ['+' | '-'] (number | '(' exponent ')')
      FUNC    := one of FUNCTIONS, immediately followed by '('
    """
    def __init__(self, text: str):
        self.s = text
        self.n = len(text)
        self.i = 0

    def parse(self) -> Plan:
        self._skip_ws()
        if self.i == self.n:
            raise UnitParseError("empty unit expression")
        plan = self._parse_sum()
        self._skip_ws()
        if self.i != self.n:
            raise UnitParseError(f"Unexpected trailing input at {self.i}: {self.s[self.i:self.i+10]!r}")
        return plan

    # sum := product (('+' | '-') product)*
    def _parse_sum(self) -> Plan:
        left = self._parse_product()
        while True:
            if self._peek('+'):
                self._eat('+')
                left = ("add", left, self._parse_product())
            elif self._peek('-'):
                self._eat('-')
                left = ("sub", left, self._parse_product())
            else:
                return left

    # product := ['/'] term (('*' | '/') term)*
    def _parse_product(self) -> Plan:
        if self._peek('/'):
            self._eat('/')
            left: Plan = ("div", ("num", 1), self._parse_term())
        else:
            left = self._parse_term()
        while True:
            if self._peek('*') and not self._peek('**'):
                self._eat('*')
                left = ("mul", left, self._parse_term())
            elif self._peek('/'):
                self._eat('/')
                left = ("div", left, self._parse_term())
            else:
                return left

    # term := unary unary*
    def _parse_term(self) -> Plan:
        left = self._parse_unary()
        while self._starts_primary():
            left = ("mul", left, self._parse_unary())
        return left

    # unary := ('-' | '+') unary | power
    def _parse_unary(self) -> Plan:
        if self._peek('-'):
            self._eat('-')
            return ("neg", self._parse_unary())
        if self._peek('+'):
            self._eat('+')
            return self._parse_unary()
        return self._parse_power()

    # power := primary [('^' | '**') exponent]
    def _parse_power(self) -> Plan:
        base = self._parse_primary()
        if self._peek('**'):
            self._eat('**')
            return ("pow", base, self._parse_exponent())
        if self._peek('^'):
            self._eat('^')
            return ("pow", base, self._parse_exponent())
        return base

    # primary := number | FUNC '(' sum ')' | NAME | '(' sum ')'
    def _parse_primary(self) -> Plan:
        self._skip_ws()
        if self._peek('('):
            self._eat('(')
            val = self._parse_sum()
            self._eat(')')
            return val
        num = self._parse_number()
        if num is not None:
            return ("num", num)
        name = self._parse_name()
        if name is None:
            ch = self.s[self.i:self.i+1]
            raise UnitParseError(f"Expected unit name, number or '(' at {self.i}, got {ch!r}")
        # "tan(x)" is a call only with no space before '('
        if name in FUNCTIONS and self.s.startswith('(', self.i):
            self._eat('(')
            arg = self._parse_sum()
            self._eat(')')
            return ("func", name, arg)
        return ("name", name)

    # exponent := ['+' | '-'] (number | '(' exponent ')')
    def _parse_exponent(self) -> Any:
        sign = 1
        if self._peek('-'):
            self._eat('-')
            sign = -1
        elif self._peek('+'):
            self._eat('+')
        if self._peek('('):
            self._eat('(')
            value = self._parse_exponent()
            self._eat(')')
            return sign * value
        value = self._parse_number()
        if value is None:
            raise UnitParseError(f"Expected numeric exponent at {self.i}")
        return sign * value

    # ---- token helpers ----
    def _parse_number(self) -> Any:
        self._skip_ws()
        m = _NUMBER_RE.match(self.s, self.i)
        if not m:
            return None
        self.i = m.end()
        value = parse_decimal(m.group())
        if self._peek('|'):
            self._eat('|')
            self._skip_ws()
            m = _NUMBER_RE.match(self.s, self.i)
            if not m:
                raise UnitParseError(f"Expected number after '|' at {self.i}")
            self.i = m.end()
            denominator = parse_decimal(m.group())
            if denominator == 0:
                raise UnitParseError(f"Division by zero in {self.s!r}")
            value = exact_div(value, denominator)
        return value

    def _parse_name(self):
        self._skip_ws()
        m = _NAME_RE.match(self.s, self.i)
        if not m:
            return None
        self.i = m.end()
        return m.group()

    def _starts_primary(self) -> bool:
        self._skip_ws()
        if self.i >= self.n:
            return False
        if self.s[self.i] == '(':
            return True
        return bool(_NUMBER_RE.match(self.s, self.i) or _NAME_RE.match(self.s, self.i))

    def _skip_ws(self):
        s, n, i = self.s, self.n, self.i
        while i < n and s[i].isspace():
            i += 1
        self.i = i

    def _peek(self, tok: str) -> bool:
        self._skip_ws()
        return self.s.startswith(tok, self.i)

    def _eat(self, tok: str):
        if not self._peek(tok):
            got = self.s[self.i:self.i+len(tok)]
            raise UnitParseError(f"Expected {tok!r} at {self.i}, got {got!r}")
        self.i += len(tok)


# ---------------- Evaluation of a plan against a given registry ----------------
def _lookup(name: str, reg: "UnitsRegistry") -> Unit:
    unit = reg.find_unit(name)
    if unit is not None:
        return unit
    # "m2", "cm3": trailing digits are a power of the named unit
    m = _POWER_SUFFIX_RE.match(name)
    if m:
        unit = reg.find_unit(m.group(1))
        if unit is not None:
            return unit ** int(m.group(2))
    raise UnitParseError(f"Unknown unit '{name}'")


def _eval_plan(plan: Plan, reg: "UnitsRegistry") -> Union[Unit, Any]:
    kind = plan[0]
    if kind == "num":
        return plan[1]
    elif kind == "name":
        return _lookup(plan[1], reg)
    elif kind == "neg":
        return -_eval_plan(plan[1], reg)
    elif kind == "func":
        return Unit.func(plan[1], _eval_plan(plan[2], reg), registry=reg)
    elif kind == "pow":
        base = _eval_plan(plan[1], reg)
        exp = plan[2]
        if is_number(base):
            return simplify_fraction(exact(base) ** exp)
        return base ** exp
    left = _eval_plan(plan[1], reg)
    right = _eval_plan(plan[2], reg)
    if is_number(left) and is_number(right):
        if kind == "mul":
            return left * right
        elif kind == "div":
            if right == 0:
                raise UnitParseError("Division by zero in unit expression")
            return exact_div(left, right)
        elif kind == "add":
            return left + right
        elif kind == "sub":
            return left - right
    else:
        left, right = reg.cast(left), reg.cast(right)
        if kind == "mul":
            return left * right
        elif kind == "div":
            return left / right
        elif kind == "add":
            return left + right
        elif kind == "sub":
            return left - right
    raise RuntimeError(f"Invalid plan node: {plan!r}")


# ---------------- Public API with caching-safe compilation ----------------
# Cache the *compiled plan* only. Safe across registries because there's no bound objects inside.
@lru_cache(maxsize=4096)
def _compile_unit_expr(expr: str) -> Plan:
    return _UnitExprParser(expr).parse()


def extract_unit_expr(expr: str, reg: "UnitsRegistry") -> Union[Unit, Any]:
    """
    Parse a unit expression like 'kg m/s^2', '(m/s)**2', '30 min' or '1|3 ft'.

    Caching-safety:
      * We cache a compiled syntax plan keyed by `expr` only (no registry state).
      * Evaluation binds names to units from the *provided* `reg` at call time.

    Allowed syntax:
      * Products by '*' or juxtaposition, '/' division, '^' or '**' powers,
        '+' and '-' between conformable terms, parentheses.
      * Decimal numbers (kept exact) and 'a|b' numeric fractions.
      * Unit names, resolved with `reg.find_unit` (prefixes and plurals included).
      * Functions of dimensionless arguments: 'tan(1 arcsec)', 'sqrt(2)', 'ln(10)'.

    Returns:
      A `Unit`, or a bare number when the expression has no unit names.

    Raises:
      UnitParseError on syntax errors and unknown names.
    """
    if not isinstance(expr, str):
        raise UnitParseError(f"unit expression must be a string, got {expr!r}")
    plan = _compile_unit_expr(expr)
    return _eval_plan(plan, reg)


__all__ = ["extract_unit_expr"]
