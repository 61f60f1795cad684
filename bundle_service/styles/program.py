"""Restricted interpreter for JavaScript-like style configuration programs.

Configuration text is never handed to a JavaScript engine.  Instead it is
tokenized, lightly compiled (comments stripped, ES imports rewritten to
``require`` declarations, TypeScript annotations dropped) and evaluated by a
small tree-walking interpreter that understands only what configuration
files need:

- ``const`` / ``let`` / ``var`` declarations, including object destructuring
- ``module.exports = ...`` and ``exports.name = ...`` assignments
- object and array literals with spreads, shorthand keys and trailing commas
- strings, template strings without substitutions, numbers, booleans,
  ``null`` and ``undefined``
- member and index access, and calls of allow-listed callables

The only names in scope are ``module``, ``exports`` and an allow-listed
``require`` (see ``transforms.require``).  Function literals are rejected.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Any, Callable

from ..errors import ConfigEvalError, ConfigParseError
from .transforms import NamedTransform
from .transforms import require as registry_require

MAX_SOURCE_LENGTH = 200_000


# ---------------------------------------------------------------------------
# Tokenizer
# ---------------------------------------------------------------------------


@dataclass
class Token:
    kind: str
    value: str
    pos: int


TOKEN_RE = re.compile(
    r"""
    (?P<COMMENT>//[^\n]*|/\*[\s\S]*?\*/)
  | (?P<TEMPLATE>`(?:\\[\s\S]|[^`\\])*`)
  | (?P<STRING>"(?:\\[\s\S]|[^"\\\n])*"|'(?:\\[\s\S]|[^'\\\n])*')
  | (?P<NUMBER>0[xX][0-9a-fA-F]+|(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?)
  | (?P<PUNCT>\.\.\.|=>|===|!==|==|!=|&&|\|\||\?\?|\?\.|[{}()\[\],;:.=?!<>+\-*/%&|@])
  | (?P<ID>[A-Za-z_$][\w$]*)
  | (?P<WS>\s+)
  | (?P<MISMATCH>.)
    """,
    re.VERBOSE,
)

_FORBIDDEN_WORDS = {"function", "class", "new", "async", "await", "this", "eval", "import"}

_SIMPLE_ESCAPES = {
    "n": "\n",
    "t": "\t",
    "r": "\r",
    "b": "\b",
    "f": "\f",
    "v": "\v",
    "0": "\0",
    "\n": "",
}

_ESCAPE_RE = re.compile(r"\\(u\{[0-9a-fA-F]+\}|u[0-9a-fA-F]{4}|x[0-9a-fA-F]{2}|[\s\S])")


def tokenize(source: str, keep_whitespace: bool = False) -> list[Token]:
    """Split *source* into tokens.

    Comments are always dropped.  Whitespace tokens are kept only when
    *keep_whitespace* is set (the compile step needs them to preserve
    layout).  An ``EOF`` token terminates the list.

    Raises:
        ConfigParseError: On any character that cannot start a token.
    """
    if len(source) > MAX_SOURCE_LENGTH:
        raise ConfigParseError(f"Configuration exceeds {MAX_SOURCE_LENGTH} characters")

    tokens: list[Token] = []
    pos = 0
    while pos < len(source):
        m = TOKEN_RE.match(source, pos)
        if not m:
            raise ConfigParseError("Tokenizer stalled", pos)
        kind = m.lastgroup or "MISMATCH"
        value = m.group(0)
        if kind == "MISMATCH":
            raise ConfigParseError(f"Unexpected character {value!r}", pos)
        if kind == "COMMENT":
            if keep_whitespace:
                tokens.append(Token("WS", "\n" if "\n" in value else " ", pos))
        elif kind == "WS":
            if keep_whitespace:
                tokens.append(Token(kind, value, pos))
        else:
            tokens.append(Token(kind, value, pos))
        pos = m.end()
    tokens.append(Token("EOF", "", pos))
    return tokens


def decode_string(raw: str) -> str:
    """Decode a quoted string or template token into its value."""
    body = raw[1:-1]
    if raw[0] == "`" and "${" in body:
        raise ConfigEvalError("Template literal substitutions are not supported")

    def _replace(m: re.Match[str]) -> str:
        esc = m.group(1)
        if esc.startswith("u{"):
            return chr(int(esc[2:-1], 16))
        if esc.startswith("u") and len(esc) == 5:
            return chr(int(esc[1:], 16))
        if esc.startswith("x") and len(esc) == 3:
            return chr(int(esc[1:], 16))
        return _SIMPLE_ESCAPES.get(esc, esc)

    return _ESCAPE_RE.sub(_replace, body)


# ---------------------------------------------------------------------------
# Compile step: ES modules / TypeScript -> CommonJS subset
# ---------------------------------------------------------------------------


def as_module_source(config_text: str) -> str:
    """Return *config_text* as a program assigning ``module.exports``.

    A bare object literal is wrapped in ``module.exports = ...;``; text that
    already assigns an export is returned unchanged.

    Examples::

        as_module_source("{ darkMode: 'class' }")
            -> "module.exports = { darkMode: 'class' };\\n"
    """
    text = config_text.strip()
    if "module.exports" in text or "export default" in text:
        return text + "\n"
    return f"module.exports = {text.rstrip(';').rstrip()};\n"


def compile_source(source: str) -> str:
    """Rewrite a configuration module into the interpreter's subset.

    - comments are removed
    - ``import X from "m"`` becomes ``const X = require("m");`` (named and
      namespace imports likewise); type-only and side-effect imports vanish
    - ``export default`` becomes ``module.exports =``; ``export const``
      loses its ``export``
    - ``satisfies T`` / ``as T`` and ``: T`` after a declared name are
      dropped, as are ``type`` aliases and ``interface`` blocks

    Raises:
        ConfigParseError: If the text cannot be tokenized or an import
            statement is malformed.
    """
    tokens = tokenize(source, keep_whitespace=True)
    out: list[str] = []
    i = 0
    n = len(tokens)

    def next_sig(j: int) -> int:
        while j < n and tokens[j].kind == "WS":
            j += 1
        return min(j, n - 1)

    sig_history: list[Token] = []
    line_start = True

    while i < n:
        tok = tokens[i]
        if tok.kind == "EOF":
            break
        if tok.kind == "WS":
            out.append(tok.value)
            line_start = line_start or "\n" in tok.value
            i += 1
            continue

        prev = sig_history[-1] if sig_history else None
        at_statement_start = prev is None or prev.value in (";", "}") or line_start
        line_start = False

        if tok.kind == "ID" and tok.value == "import" and tokens[next_sig(i + 1)].value != "(":
            text, i = _compile_import(tokens, i, next_sig)
            out.append(text)
            sig_history.append(Token("PUNCT", ";", tok.pos))
            continue

        if tok.kind == "ID" and tok.value == "export":
            j = next_sig(i + 1)
            if tokens[j].value == "default":
                out.append("module.exports =")
                sig_history.append(Token("PUNCT", "=", tok.pos))
                i = j + 1
                continue
            if tokens[j].value in ("const", "let", "var"):
                i = j
                continue
            raise ConfigParseError("Unsupported export form", tok.pos)

        if (
            tok.kind == "ID"
            and tok.value in ("type", "interface")
            and at_statement_start
            and tokens[next_sig(i + 1)].kind == "ID"
        ):
            i = _skip_type_declaration(tokens, i, next_sig)
            continue

        if (
            tok.kind == "ID"
            and tok.value in ("satisfies", "as")
            and prev is not None
            and (prev.kind in ("ID", "STRING", "NUMBER", "TEMPLATE") or prev.value in ("}", "]", ")"))
            and tokens[next_sig(i + 1)].kind == "ID"
        ):
            i = _skip_type(tokens, next_sig(i + 1), next_sig)
            continue

        if (
            tok.value == ":"
            and len(sig_history) >= 2
            and sig_history[-1].kind == "ID"
            and sig_history[-2].value in ("const", "let", "var")
        ):
            j = i + 1
            depth = 0
            while j < n and tokens[j].kind != "EOF":
                if tokens[j].value in ("<", "(", "[", "{"):
                    depth += 1
                elif tokens[j].value in (">", ")", "]", "}"):
                    depth -= 1
                elif tokens[j].value == "=" and depth <= 0:
                    break
                j += 1
            out.append(" ")
            i = j
            continue

        out.append(tok.value)
        sig_history.append(tok)
        i += 1

    return "".join(out)


def _expect_string(tokens: list[Token], j: int) -> str:
    if tokens[j].kind != "STRING":
        raise ConfigParseError("Expected module name string in import", tokens[j].pos)
    return decode_string(tokens[j].value)


def _compile_import(
    tokens: list[Token], i: int, next_sig: Callable[[int], int]
) -> tuple[str, int]:
    """Translate the import statement starting at *i*; return (text, next index)."""
    start = tokens[i].pos
    j = next_sig(i + 1)

    # import "side-effect";
    if tokens[j].kind == "STRING":
        return "", _skip_semicolon(tokens, j + 1, next_sig)

    type_only = False
    if tokens[j].value == "type" and tokens[next_sig(j + 1)].value != "from":
        type_only = True
        j = next_sig(j + 1)

    default_name: str | None = None
    namespace: str | None = None
    named: list[tuple[str, str]] = []

    if tokens[j].kind == "ID" and tokens[j].value != "from":
        default_name = tokens[j].value
        j = next_sig(j + 1)
        if tokens[j].value == ",":
            j = next_sig(j + 1)

    if tokens[j].value == "*":
        j = next_sig(j + 1)
        if tokens[j].value != "as":
            raise ConfigParseError("Expected 'as' in namespace import", tokens[j].pos)
        j = next_sig(j + 1)
        namespace = tokens[j].value
        j = next_sig(j + 1)
    elif tokens[j].value == "{":
        j = next_sig(j + 1)
        while tokens[j].value != "}":
            if tokens[j].kind == "EOF":
                raise ConfigParseError("Unterminated import list", start)
            skip = False
            if tokens[j].value == "type" and tokens[next_sig(j + 1)].kind == "ID":
                skip = True
                j = next_sig(j + 1)
            imported = tokens[j].value
            local = imported
            j = next_sig(j + 1)
            if tokens[j].value == "as":
                j = next_sig(j + 1)
                local = tokens[j].value
                j = next_sig(j + 1)
            if not skip:
                named.append((imported, local))
            if tokens[j].value == ",":
                j = next_sig(j + 1)
        j = next_sig(j + 1)

    if tokens[j].value != "from":
        raise ConfigParseError("Expected 'from' in import", tokens[j].pos)
    j = next_sig(j + 1)
    module = _expect_string(tokens, j)
    end = _skip_semicolon(tokens, j + 1, next_sig)

    if type_only:
        return "", end

    spec = f"require({_quote(module)})"
    parts: list[str] = []
    if default_name:
        parts.append(f"const {default_name} = {spec};")
    if namespace:
        parts.append(f"const {namespace} = {spec};")
    if named:
        bindings = ", ".join(
            imported if imported == local else f"{imported}: {local}" for imported, local in named
        )
        parts.append(f"const {{ {bindings} }} = {spec};")
    return " ".join(parts), end


def _skip_semicolon(tokens: list[Token], j: int, next_sig: Callable[[int], int]) -> int:
    k = next_sig(j)
    return k + 1 if tokens[k].value == ";" else j


def _skip_type(tokens: list[Token], j: int, next_sig: Callable[[int], int]) -> int:
    """Skip a type expression such as ``Config``, ``Partial<Config>`` or ``X[]``."""
    j = next_sig(j)
    while True:
        if tokens[j].kind == "ID":
            j += 1
        else:
            break
        k = next_sig(j)
        if tokens[k].value == ".":
            j = next_sig(k + 1)
            continue
        if tokens[k].value == "<":
            depth = 0
            while tokens[k].kind != "EOF":
                if tokens[k].value == "<":
                    depth += 1
                elif tokens[k].value == ">":
                    depth -= 1
                    if depth == 0:
                        break
                k += 1
            j = k + 1
            k = next_sig(j)
        while tokens[k].value == "[" and tokens[next_sig(k + 1)].value == "]":
            j = next_sig(k + 1) + 1
            k = next_sig(j)
        break
    return j


def _skip_type_declaration(tokens: list[Token], i: int, next_sig: Callable[[int], int]) -> int:
    """Skip ``type X = ...;`` or ``interface X { ... }``."""
    keyword = tokens[i].value
    j = i + 1
    depth = 0
    while tokens[j].kind != "EOF":
        value = tokens[j].value
        if value in ("{", "(", "[", "<"):
            depth += 1
        elif value in ("}", ")", "]", ">"):
            depth -= 1
            if keyword == "interface" and value == "}" and depth == 0:
                return _skip_semicolon(tokens, j + 1, next_sig)
        elif value == ";" and depth == 0:
            return j + 1
        elif keyword == "type" and depth == 0 and tokens[j].kind == "WS" and "\n" in value:
            following = tokens[next_sig(j)]
            if following.kind == "ID" and following.value not in ("extends",) and _ends_type(tokens, j):
                return j
        j += 1
    return j


def _ends_type(tokens: list[Token], j: int) -> bool:
    k = j - 1
    while k >= 0 and tokens[k].kind == "WS":
        k -= 1
    return k >= 0 and tokens[k].value not in ("=", "|", "&", ",", ":")


def _quote(value: str) -> str:
    return '"' + value.replace("\\", "\\\\").replace('"', '\\"') + '"'


# ---------------------------------------------------------------------------
# Locating the exported object
# ---------------------------------------------------------------------------

_EXPORT_RE = re.compile(r"module\.exports\s*=\s*\{")


def split_export(compiled: str) -> tuple[str, str, str] | None:
    """Split compiled text around its ``module.exports = {...}`` assignment.

    Returns:
        ``(before, object_text, after)`` where ``object_text`` is the
        balanced ``{...}`` literal, or ``None`` when no such assignment of
        an object literal exists.
    """
    m = _EXPORT_RE.search(compiled)
    if not m:
        return None
    start = m.end() - 1
    depth = 0
    quote: str | None = None
    k = start
    while k < len(compiled):
        ch = compiled[k]
        if quote:
            if ch == "\\":
                k += 2
                continue
            if ch == quote:
                quote = None
        elif ch in ("'", '"', "`"):
            quote = ch
        elif ch == "{":
            depth += 1
        elif ch == "}":
            depth -= 1
            if depth == 0:
                after = compiled[k + 1 :]
                after = re.sub(r"^\s*;", "", after, count=1)
                return compiled[: m.start()], compiled[start : k + 1], after
        k += 1
    return None


# ---------------------------------------------------------------------------
# AST
# ---------------------------------------------------------------------------


@dataclass
class Node:
    pos: int


@dataclass
class Literal(Node):
    value: Any


@dataclass
class Name(Node):
    name: str


@dataclass
class ObjectLit(Node):
    # (key expression or None for a spread, value expression)
    entries: list[tuple[Node | None, Node]] = field(default_factory=list)


@dataclass
class ArrayLit(Node):
    # (is_spread, expression)
    items: list[tuple[bool, Node]] = field(default_factory=list)


@dataclass
class Member(Node):
    obj: Node
    key: Node
    optional: bool = False


@dataclass
class Call(Node):
    func: Node
    args: list[Node] = field(default_factory=list)


@dataclass
class Unary(Node):
    op: str
    operand: Node


@dataclass
class Logical(Node):
    op: str
    left: Node
    right: Node


@dataclass
class Declare(Node):
    kind: str
    # name, or list of (property, local) pairs for destructuring
    target: str | list[tuple[str, str]]
    value: Node


@dataclass
class Assign(Node):
    target: Node
    value: Node


@dataclass
class ExprStatement(Node):
    expr: Node


# ---------------------------------------------------------------------------
# Parser
# ---------------------------------------------------------------------------


class Parser:
    """Recursive-descent parser for the configuration subset."""

    def __init__(self, tokens: list[Token], source: str = "") -> None:
        self.tokens = tokens
        self.source = source
        self.i = 0

    def cur(self) -> Token:
        return self.tokens[self.i]

    def peek(self, offset: int = 1) -> Token:
        return self.tokens[min(self.i + offset, len(self.tokens) - 1)]

    def match(self, value: str) -> Token | None:
        t = self.cur()
        if t.kind in ("PUNCT", "ID") and t.value == value:
            self.i += 1
            return t
        return None

    def expect(self, value: str) -> Token:
        t = self.cur()
        if t.value != value or t.kind not in ("PUNCT", "ID"):
            raise ConfigParseError(f"Expected {value!r}, got {t.value or 'end of input'!r}", t.pos)
        self.i += 1
        return t

    def parse_program(self) -> list[Node]:
        statements: list[Node] = []
        while self.cur().kind != "EOF":
            if self.match(";"):
                continue
            statements.extend(self.parse_statement())
        return statements

    def parse_statement(self) -> list[Node]:
        t = self.cur()
        if t.kind == "ID" and t.value in ("const", "let", "var"):
            return list(self.parse_declaration())
        expr = self.parse_expr()
        if self.match("="):
            if not isinstance(expr, (Member, Name)):
                raise ConfigParseError("Invalid assignment target", t.pos)
            value = self.parse_expr()
            self._end_statement()
            return [Assign(t.pos, expr, value)]
        self._end_statement()
        return [ExprStatement(t.pos, expr)]

    def parse_declaration(self) -> list[Declare]:
        kind_tok = self.cur()
        self.i += 1
        declarations: list[Declare] = []
        while True:
            pos = self.cur().pos
            if self.match("{"):
                pairs: list[tuple[str, str]] = []
                while not self.match("}"):
                    prop = self._ident()
                    local = prop
                    if self.match(":"):
                        local = self._ident()
                    pairs.append((prop, local))
                    if not self.match(","):
                        self.expect("}")
                        break
                target: str | list[tuple[str, str]] = pairs
            else:
                target = self._ident()
            self.expect("=")
            declarations.append(Declare(pos, kind_tok.value, target, self.parse_expr()))
            if not self.match(","):
                break
        self._end_statement()
        return declarations

    def _end_statement(self) -> None:
        if self.match(";"):
            return
        t = self.cur()
        if t.kind == "EOF" or t.value == "}":
            return
        # Automatic semicolon insertion: a new statement on the next line.
        if t.pos > 0 and "\n" in self._gap_before(t):
            return
        raise ConfigParseError(f"Unexpected token {t.value!r}", t.pos)

    def _gap_before(self, t: Token) -> str:
        prev = self.tokens[self.i - 1] if self.i > 0 else None
        if prev is None:
            return ""
        return self.source[prev.pos + len(prev.value) : t.pos]

    def _ident(self) -> str:
        t = self.cur()
        if t.kind != "ID":
            raise ConfigParseError(f"Expected identifier, got {t.value!r}", t.pos)
        self._reject_forbidden(t)
        self.i += 1
        return t.value

    def _reject_forbidden(self, t: Token) -> None:
        if t.value in _FORBIDDEN_WORDS:
            raise ConfigEvalError(f"'{t.value}' is not allowed in style configurations")

    # -- Expressions -------------------------------------------------------

    def parse_expr(self) -> Node:
        left = self.parse_unary()
        while self.cur().value in ("||", "??", "&&") and self.cur().kind == "PUNCT":
            op = self.cur()
            self.i += 1
            right = self.parse_unary()
            left = Logical(op.pos, op.value, left, right)
        if self.cur().value == "=>":
            raise ConfigEvalError("Function values are not allowed in style configurations")
        return left

    def parse_unary(self) -> Node:
        t = self.cur()
        if t.kind == "PUNCT" and t.value in ("-", "+", "!"):
            self.i += 1
            return Unary(t.pos, t.value, self.parse_unary())
        return self.parse_postfix()

    def parse_postfix(self) -> Node:
        node = self.parse_primary()
        while True:
            t = self.cur()
            if t.value in (".", "?.") and t.kind == "PUNCT":
                self.i += 1
                if self.cur().value == "(" or self.cur().value == "[":
                    continue
                name_tok = self.cur()
                if name_tok.kind != "ID":
                    raise ConfigParseError("Expected property name", name_tok.pos)
                self.i += 1
                node = Member(t.pos, node, Literal(name_tok.pos, name_tok.value), t.value == "?.")
            elif t.value == "[" and t.kind == "PUNCT":
                self.i += 1
                key = self.parse_expr()
                self.expect("]")
                node = Member(t.pos, node, key)
            elif t.value == "(" and t.kind == "PUNCT":
                self.i += 1
                args: list[Node] = []
                while not self.match(")"):
                    args.append(self.parse_expr())
                    if not self.match(","):
                        self.expect(")")
                        break
                node = Call(t.pos, node, args)
            else:
                return node

    def parse_primary(self) -> Node:
        t = self.cur()
        if t.kind == "NUMBER":
            self.i += 1
            return Literal(t.pos, _parse_number(t.value))
        if t.kind in ("STRING", "TEMPLATE"):
            self.i += 1
            return Literal(t.pos, decode_string(t.value))
        if t.kind == "ID":
            self._reject_forbidden(t)
            if self.peek().value == "=>":
                raise ConfigEvalError("Function values are not allowed in style configurations")
            self.i += 1
            if t.value == "true":
                return Literal(t.pos, True)
            if t.value == "false":
                return Literal(t.pos, False)
            if t.value in ("null", "undefined"):
                return Literal(t.pos, None)
            return Name(t.pos, t.value)
        if t.value == "{":
            return self.parse_object()
        if t.value == "[":
            return self.parse_array()
        if t.value == "(":
            if self._is_arrow_params():
                raise ConfigEvalError("Function values are not allowed in style configurations")
            self.i += 1
            node = self.parse_expr()
            self.expect(")")
            return node
        raise ConfigParseError(f"Unexpected token {t.value or 'end of input'!r}", t.pos)

    def _is_arrow_params(self) -> bool:
        depth = 0
        j = self.i
        while j < len(self.tokens) and self.tokens[j].kind != "EOF":
            value = self.tokens[j].value
            if value == "(":
                depth += 1
            elif value == ")":
                depth -= 1
                if depth == 0:
                    return self.tokens[j + 1].value == "=>"
            j += 1
        return False

    def parse_object(self) -> Node:
        start = self.expect("{")
        node = ObjectLit(start.pos)
        while not self.match("}"):
            t = self.cur()
            if self.match("..."):
                node.entries.append((None, self.parse_expr()))
            else:
                if t.kind == "ID":
                    self.i += 1
                    key: Node = Literal(t.pos, t.value)
                    if self.cur().value in (",", "}"):
                        self._reject_forbidden(t)
                        node.entries.append((key, Name(t.pos, t.value)))
                        if not self.match(","):
                            self.expect("}")
                            break
                        continue
                elif t.kind in ("STRING", "TEMPLATE"):
                    self.i += 1
                    key = Literal(t.pos, decode_string(t.value))
                elif t.kind == "NUMBER":
                    self.i += 1
                    key = Literal(t.pos, _number_key(t.value))
                elif self.match("["):
                    key = self.parse_expr()
                    self.expect("]")
                else:
                    raise ConfigParseError(f"Unexpected token {t.value!r} in object", t.pos)
                if self.cur().value == "(":
                    raise ConfigEvalError("Function values are not allowed in style configurations")
                self.expect(":")
                node.entries.append((key, self.parse_expr()))
            if not self.match(","):
                self.expect("}")
                break
        return node

    def parse_array(self) -> Node:
        start = self.expect("[")
        node = ArrayLit(start.pos)
        while not self.match("]"):
            if self.match("..."):
                node.items.append((True, self.parse_expr()))
            else:
                node.items.append((False, self.parse_expr()))
            if not self.match(","):
                self.expect("]")
                break
        return node


def _parse_number(text: str) -> int | float:
    if text.lower().startswith("0x"):
        return int(text, 16)
    value = float(text)
    return int(value) if value.is_integer() and "." not in text and "e" not in text.lower() else value


def _number_key(text: str) -> str:
    value = _parse_number(text)
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def parse(source: str) -> list[Node]:
    """Tokenize and parse *source* into a list of statements."""
    return Parser(tokenize(source), source).parse_program()


# ---------------------------------------------------------------------------
# Evaluator
# ---------------------------------------------------------------------------


class _Require:
    """The only ``require`` visible to configuration programs."""

    def __call__(self, module: Any) -> Any:
        return registry_require(module)


class ConfigSandbox:
    """Evaluates configuration programs with no ambient capabilities.

    Each ``run`` starts from a fresh scope holding only ``module``,
    ``exports`` and ``require``.
    """

    def __init__(self, require: Callable[[Any], Any] | None = None) -> None:
        self.require = require or _Require()

    def run(self, source: str) -> Any:
        """Evaluate *source* and return the final ``module.exports`` value.

        Raises:
            ConfigParseError: If the text is not valid in the subset.
            ConfigEvalError: If evaluation fails (unknown names, forbidden
                constructs, calling a non-callable, ...).
        """
        statements = parse(source)
        return _Evaluation(self.require).execute(statements)

    def evaluate_module(self, config_text: str) -> dict[str, Any]:
        """Compile and evaluate a whole configuration module.

        Raises:
            ConfigEvalError: If the exported value is not an object.
        """
        exported = self.run(compile_source(as_module_source(config_text)))
        if not isinstance(exported, dict):
            raise ConfigEvalError("Configuration must export an object")
        return exported


class _Evaluation:
    def __init__(self, require: Callable[[Any], Any]) -> None:
        exports: dict[str, Any] = {}
        self.module: dict[str, Any] = {"exports": exports}
        self.scope: dict[str, Any] = {
            "module": self.module,
            "exports": exports,
            "require": require,
        }
        self.constants: set[str] = {"module", "require"}
        self.require = require

    def execute(self, statements: list[Node]) -> Any:
        for stmt in statements:
            self.exec_statement(stmt)
        return self.module["exports"]

    def exec_statement(self, stmt: Node) -> None:
        if isinstance(stmt, Declare):
            self.declare(stmt)
        elif isinstance(stmt, Assign):
            self.assign(stmt)
        elif isinstance(stmt, ExprStatement):
            self.eval(stmt.expr)
        else:
            raise ConfigEvalError(f"Unsupported statement at offset {stmt.pos}")

    def declare(self, stmt: Declare) -> None:
        value = self.eval(stmt.value)
        if isinstance(stmt.target, str):
            self._bind(stmt.target, value, stmt.kind)
            return
        for prop, local in stmt.target:
            self._bind(local, self._get_member(value, prop, stmt.pos), stmt.kind)

    def _bind(self, name: str, value: Any, kind: str) -> None:
        if name in self.constants:
            raise ConfigEvalError(f"Identifier '{name}' has already been declared")
        self.scope[name] = value
        if kind == "const":
            self.constants.add(name)

    def assign(self, stmt: Assign) -> None:
        value = self.eval(stmt.value)
        target = stmt.target
        if isinstance(target, Name):
            if target.name not in self.scope:
                raise ConfigEvalError(f"{target.name} is not defined")
            if target.name in self.constants:
                raise ConfigEvalError(f"Assignment to constant variable '{target.name}'")
            self.scope[target.name] = value
            return
        assert isinstance(target, Member)
        obj = self.eval(target.obj)
        key = self._property_key(self.eval(target.key))
        if not isinstance(obj, dict):
            raise ConfigEvalError(f"Cannot set property '{key}' at offset {stmt.pos}")
        obj[key] = value

    def eval(self, node: Node) -> Any:
        if isinstance(node, Literal):
            return node.value
        if isinstance(node, Name):
            if node.name not in self.scope:
                raise ConfigEvalError(f"{node.name} is not defined")
            return self.scope[node.name]
        if isinstance(node, ObjectLit):
            return self.eval_object(node)
        if isinstance(node, ArrayLit):
            return self.eval_array(node)
        if isinstance(node, Member):
            obj = self.eval(node.obj)
            if obj is None and node.optional:
                return None
            return self._get_member(obj, self._property_key(self.eval(node.key)), node.pos)
        if isinstance(node, Call):
            return self.eval_call(node)
        if isinstance(node, Unary):
            return self.eval_unary(node)
        if isinstance(node, Logical):
            left = self.eval(node.left)
            if node.op == "??":
                return self.eval(node.right) if left is None else left
            if node.op == "||":
                return left if _truthy(left) else self.eval(node.right)
            return self.eval(node.right) if _truthy(left) else left
        raise ConfigEvalError(f"Unsupported expression at offset {node.pos}")

    def eval_object(self, node: ObjectLit) -> dict[str, Any]:
        result: dict[str, Any] = {}
        for key_node, value_node in node.entries:
            if key_node is None:
                spread = self.eval(value_node)
                if spread is None:
                    continue
                if isinstance(spread, dict):
                    result.update(spread)
                elif isinstance(spread, list):
                    result.update({str(i): v for i, v in enumerate(spread)})
                else:
                    raise ConfigEvalError(f"Cannot spread value at offset {node.pos}")
                continue
            result[self._property_key(self.eval(key_node))] = self.eval(value_node)
        return result

    def eval_array(self, node: ArrayLit) -> list[Any]:
        result: list[Any] = []
        for is_spread, item in node.items:
            value = self.eval(item)
            if is_spread:
                if isinstance(value, (list, str)):
                    result.extend(value)
                else:
                    raise ConfigEvalError(f"Value is not iterable at offset {item.pos}")
            else:
                result.append(value)
        return result

    def eval_call(self, node: Call) -> Any:
        func = self.eval(node.func)
        args = [self.eval(arg) for arg in node.args]
        if func is self.require:
            if len(args) != 1:
                raise ConfigEvalError("require() takes exactly one argument")
            return self.require(args[0])
        if isinstance(func, NamedTransform):
            return func.configure(args[0] if args else None)
        raise ConfigEvalError(f"Value is not callable at offset {node.pos}")

    def eval_unary(self, node: Unary) -> Any:
        value = self.eval(node.operand)
        if node.op == "!":
            return not _truthy(value)
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise ConfigEvalError(f"Unary {node.op} requires a number at offset {node.pos}")
        return -value if node.op == "-" else value

    def _property_key(self, key: Any) -> str:
        if isinstance(key, bool):
            return "true" if key else "false"
        if isinstance(key, float) and key.is_integer():
            return str(int(key))
        if isinstance(key, (str, int, float)):
            return str(key)
        raise ConfigEvalError("Property keys must be strings or numbers")

    def _get_member(self, obj: Any, key: str, pos: int) -> Any:
        if obj is None:
            raise ConfigEvalError(
                f"Cannot read properties of undefined (reading '{key}') at offset {pos}"
            )
        if isinstance(obj, dict):
            return obj.get(key)
        if isinstance(obj, (list, str)):
            if key == "length":
                return len(obj)
            if key.isdigit():
                index = int(key)
                return obj[index] if index < len(obj) else None
            return None
        if isinstance(obj, NamedTransform):
            raise ConfigEvalError(f"Cannot read property '{key}' of plugin {obj.name}")
        return None


def _truthy(value: Any) -> bool:
    if isinstance(value, (dict, list, NamedTransform)):
        return True
    return bool(value)
