"""Expression parsing for the Vela parser.

Precedence, lowest first:

    a if b else c
    or
    and
    not
    == != < <= > >= in, not in   (chainable)
    ~
    + -
    * / // %
    unary - +
    **                           (right-associative)
    | filter, is test
    .attr [key] call()

A filter after a sign applies to the signed operand, so ``-3 | abs`` is 3.
"""

from __future__ import annotations

from vela._types import Token, TokenType
from vela.environment.exceptions import ErrorCode
from vela.nodes import (
    BinOp,
    BoolOp,
    Compare,
    CondExpr,
    Const,
    Dict,
    Expr,
    Filter,
    FuncCall,
    Getattr,
    Getitem,
    List,
    Name,
    Test,
    UnaryOp,
)
from vela.parser.tokens import TokenNavigationMixin, describe

_COMPARE_OPS = {
    TokenType.EQ: "==",
    TokenType.NE: "!=",
    TokenType.LT: "<",
    TokenType.LE: "<=",
    TokenType.GT: ">",
    TokenType.GE: ">=",
}

_ADDITIVE_OPS = {TokenType.ADD: "+", TokenType.SUB: "-"}

_MULTIPLICATIVE_OPS = {
    TokenType.MUL: "*",
    TokenType.DIV: "/",
    TokenType.FLOORDIV: "//",
    TokenType.MOD: "%",
}

_CONSTANTS: dict[str, bool | None] = {
    "true": True,
    "True": True,
    "false": False,
    "False": False,
    "none": None,
    "None": None,
}

# Words with grammatical meaning; never variable names
RESERVED_WORDS = frozenset({"and", "or", "not", "in", "is", "if", "else"})

_LITERAL_TOKENS = frozenset({TokenType.STRING, TokenType.INTEGER, TokenType.FLOAT})


class ExpressionParsingMixin(TokenNavigationMixin):
    """Recursive-descent expression parser."""

    def _parse_expression(self) -> Expr:
        return self._parse_condexpr()

    def _parse_condexpr(self) -> Expr:
        expr = self._parse_or()
        while self._match_keyword("if"):
            start = self._advance()
            test = self._parse_or()
            if_false = None
            if self._match_keyword("else"):
                self._advance()
                if_false = self._parse_condexpr()
            expr = CondExpr(start.lineno, start.col_offset, test, expr, if_false)
        return expr

    def _parse_or(self) -> Expr:
        left = self._parse_and()
        if not self._match_keyword("or"):
            return left
        values = [left]
        while self._match_keyword("or"):
            self._advance()
            values.append(self._parse_and())
        return BoolOp(left.lineno, left.col_offset, "or", tuple(values))

    def _parse_and(self) -> Expr:
        left = self._parse_not()
        if not self._match_keyword("and"):
            return left
        values = [left]
        while self._match_keyword("and"):
            self._advance()
            values.append(self._parse_not())
        return BoolOp(left.lineno, left.col_offset, "and", tuple(values))

    def _parse_not(self) -> Expr:
        if self._match_keyword("not"):
            start = self._advance()
            return UnaryOp(start.lineno, start.col_offset, "not", self._parse_not())
        return self._parse_compare()

    def _parse_compare(self) -> Expr:
        left = self._parse_concat()
        ops: list[str] = []
        comparators: list[Expr] = []
        while True:
            token = self._current
            if token.type in _COMPARE_OPS:
                self._advance()
                ops.append(_COMPARE_OPS[token.type])
            elif self._match_keyword("in"):
                self._advance()
                ops.append("in")
            elif (
                self._match_keyword("not")
                and self._peek().type is TokenType.NAME
                and self._peek().value == "in"
            ):
                self._advance()
                self._advance()
                ops.append("not in")
            else:
                break
            comparators.append(self._parse_concat())
        if not ops:
            return left
        return Compare(left.lineno, left.col_offset, left, tuple(ops), tuple(comparators))

    def _parse_concat(self) -> Expr:
        left = self._parse_additive()
        while self._match(TokenType.TILDE):
            self._advance()
            right = self._parse_additive()
            left = BinOp(left.lineno, left.col_offset, "~", left, right)
        return left

    def _parse_additive(self) -> Expr:
        left = self._parse_multiplicative()
        while self._current.type in _ADDITIVE_OPS:
            op = _ADDITIVE_OPS[self._advance().type]
            right = self._parse_multiplicative()
            left = BinOp(left.lineno, left.col_offset, op, left, right)
        return left

    def _parse_multiplicative(self) -> Expr:
        left = self._parse_unary()
        while self._current.type in _MULTIPLICATIVE_OPS:
            op = _MULTIPLICATIVE_OPS[self._advance().type]
            right = self._parse_unary()
            left = BinOp(left.lineno, left.col_offset, op, left, right)
        return left

    def _parse_unary(self, with_filters: bool = True) -> Expr:
        if self._current.type in _ADDITIVE_OPS:
            start = self._advance()
            op = _ADDITIVE_OPS[start.type]
            # Filters apply to the negated value: -3 | abs is (-3) | abs
            node: Expr = UnaryOp(
                start.lineno, start.col_offset, op, self._parse_unary(with_filters=False)
            )
            return self._parse_filters(node) if with_filters else node
        return self._parse_power(with_filters)

    def _parse_power(self, with_filters: bool = True) -> Expr:
        base = self._parse_postfix()
        if with_filters:
            base = self._parse_filters(base)
        if self._match(TokenType.POW):
            self._advance()
            exponent = self._parse_unary()
            return BinOp(base.lineno, base.col_offset, "**", base, exponent)
        return base

    def _parse_filters(self, expr: Expr) -> Expr:
        while True:
            if self._match(TokenType.PIPE):
                expr = self._parse_filter(expr)
            elif self._match_keyword("is"):
                expr = self._parse_test(expr)
            else:
                return expr

    def _parse_filter(self, value: Expr) -> Filter:
        self._advance()  # consume '|'
        name_token = self._expect(TokenType.NAME, "filter name")
        args: tuple[Expr, ...] = ()
        kwargs: dict[str, Expr] = {}
        if self._match(TokenType.LPAREN):
            args, kwargs = self._parse_call_args()
        return Filter(name_token.lineno, name_token.col_offset, value, name_token.value, args, kwargs)

    def _parse_test(self, value: Expr) -> Test:
        start = self._advance()  # consume 'is'
        negated = False
        if self._match_keyword("not"):
            self._advance()
            negated = True
        name_token = self._expect(TokenType.NAME, "test name")
        args: tuple[Expr, ...] = ()
        kwargs: dict[str, Expr] = {}
        if self._match(TokenType.LPAREN):
            args, kwargs = self._parse_call_args()
        elif self._current.type in _LITERAL_TOKENS:
            args = (self._parse_primary(),)
        return Test(start.lineno, start.col_offset, value, name_token.value, args, kwargs, negated)

    def _parse_postfix(self) -> Expr:
        expr = self._parse_primary()
        while True:
            if self._match(TokenType.DOT):
                self._advance()
                token = self._current
                if token.type is TokenType.NAME:
                    self._advance()
                    expr = Getattr(expr.lineno, expr.col_offset, expr, token.value)
                elif token.type is TokenType.INTEGER:
                    self._advance()
                    key = Const(token.lineno, token.col_offset, int(token.value))
                    expr = Getitem(expr.lineno, expr.col_offset, expr, key)
                else:
                    raise self._error(f"Expected attribute name after '.', got {describe(token)}")
            elif self._match(TokenType.LBRACKET):
                self._advance()
                key = self._parse_expression()
                self._expect(TokenType.RBRACKET)
                expr = Getitem(expr.lineno, expr.col_offset, expr, key)
            elif self._match(TokenType.LPAREN):
                raise self._error(
                    "Only registered functions can be called",
                    suggestion="Register the callable with env.add_function() and call it by name",
                    code=ErrorCode.INVALID_EXPRESSION,
                )
            else:
                return expr

    def _parse_primary(self) -> Expr:
        token = self._current
        if token.type is TokenType.NAME:
            return self._parse_name()
        if token.type is TokenType.STRING:
            self._advance()
            value = token.value
            # Adjacent string literals concatenate: "a" "b"
            while self._match(TokenType.STRING):
                value += self._advance().value
            return Const(token.lineno, token.col_offset, value)
        if token.type is TokenType.INTEGER:
            self._advance()
            return Const(token.lineno, token.col_offset, int(token.value))
        if token.type is TokenType.FLOAT:
            self._advance()
            return Const(token.lineno, token.col_offset, float(token.value))
        if token.type is TokenType.LPAREN:
            self._advance()
            expr = self._parse_expression()
            self._expect(TokenType.RPAREN)
            return expr
        if token.type is TokenType.LBRACKET:
            return self._parse_list()
        if token.type is TokenType.LBRACE:
            return self._parse_dict()
        raise self._error(
            f"Expected expression, got {describe(token)}",
            code=ErrorCode.INVALID_EXPRESSION,
        )

    def _parse_name(self) -> Expr:
        token = self._advance()
        if token.value in _CONSTANTS:
            return Const(token.lineno, token.col_offset, _CONSTANTS[token.value])
        if token.value in RESERVED_WORDS:
            raise self._error(
                f"Unexpected keyword '{token.value}'",
                token=token,
                code=ErrorCode.INVALID_EXPRESSION,
            )
        if self._match(TokenType.LPAREN):
            args, kwargs = self._parse_call_args()
            return FuncCall(token.lineno, token.col_offset, token.value, args, kwargs)
        return Name(token.lineno, token.col_offset, token.value)

    def _parse_list(self) -> List:
        start = self._advance()  # consume '['
        items: list[Expr] = []
        while not self._match(TokenType.RBRACKET):
            if items:
                self._expect(TokenType.COMMA, "',' or ']'")
                if self._match(TokenType.RBRACKET):
                    break
            items.append(self._parse_expression())
        self._advance()
        return List(start.lineno, start.col_offset, tuple(items))

    def _parse_dict(self) -> Dict:
        start = self._advance()  # consume '{'
        keys: list[Expr] = []
        values: list[Expr] = []
        while not self._match(TokenType.RBRACE):
            if keys:
                self._expect(TokenType.COMMA, "',' or '}'")
                if self._match(TokenType.RBRACE):
                    break
            keys.append(self._parse_expression())
            self._expect(TokenType.COLON, "':'")
            values.append(self._parse_expression())
        self._advance()
        return Dict(start.lineno, start.col_offset, tuple(keys), tuple(values))

    def _parse_call_args(self) -> tuple[tuple[Expr, ...], dict[str, Expr]]:
        """Parse ``(a, b, key=value)``; positional arguments come first."""
        self._expect(TokenType.LPAREN)
        args: list[Expr] = []
        kwargs: dict[str, Expr] = {}
        first = True
        while not self._match(TokenType.RPAREN):
            if not first:
                self._expect(TokenType.COMMA, "',' or ')'")
                if self._match(TokenType.RPAREN):
                    break
            first = False
            if self._match(TokenType.NAME) and self._peek().type is TokenType.ASSIGN:
                key: Token = self._advance()
                self._advance()  # consume '='
                if key.value in kwargs:
                    raise self._error(f"Duplicate keyword argument '{key.value}'", token=key)
                kwargs[key.value] = self._parse_expression()
            else:
                if kwargs:
                    raise self._error(
                        "Positional argument follows keyword argument",
                        code=ErrorCode.INVALID_EXPRESSION,
                    )
                args.append(self._parse_expression())
        self._advance()
        return tuple(args), kwargs
