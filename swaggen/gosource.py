"""Read the declaration level of Go source files.

Handles:
- package clause and imports (grouped, aliased, blank and dot imports)
- type declarations, including generic type parameters and aliases
- struct fields with tags, embedded fields, doc and line comments
- const blocks with literal, iota and simple arithmetic values
- func declarations (receiver, name, doc comment); bodies are skipped

Type expressions found in declarations and in annotation strings share one
reader, so ``[]model.User`` in a comment and in a struct field produce the
same tree.
"""

from __future__ import annotations

import ast
import operator
import re
from dataclasses import dataclass, field
from typing import Any, Union

from .errors import ParseError

_TOKEN_RE = re.compile(
    r"""
    (?P<space>[ \t\r\f]+)
  | (?P<newline>\n)
  | (?P<line_comment>//[^\n]*)
  | (?P<block_comment>/\*.*?\*/)
  | (?P<raw_string>`[^`]*`)
  | (?P<string>"(?:\\.|[^"\\\n])*")
  | (?P<char>'(?:\\.|[^'\\\n])*')
  | (?P<number>(?:0[xX][0-9a-fA-F_]+|0[bB][01_]+|0[oO][0-7_]+
               |\d[\d_]*(?:\.[\d_]*)?(?:[eE][+-]?\d+)?|\.\d[\d_]*(?:[eE][+-]?\d+)?)i?)
  | (?P<ident>[^\W\d]\w*)
  | (?P<op>\.\.\.|<<=|>>=|&\^=|&&|\|\||<-|\+\+|--|==|!=|<=|>=|:=|<<|>>|&\^|[-+*/%&|^]=
           |[-+*/%&|^<>=!()\[\]{},;.:~])
    """,
    re.VERBOSE | re.DOTALL,
)

IDENT = "ident"
NUMBER = "number"
STRING = "string"
CHAR = "char"
OP = "op"
EOF = "eof"

KEYWORDS = frozenset({
    "break", "case", "chan", "const", "continue", "default", "defer", "else",
    "fallthrough", "for", "func", "go", "goto", "if", "import", "interface",
    "map", "package", "range", "return", "select", "struct", "switch", "type", "var",
})

# Keywords after which a newline still ends the statement
_TERMINATING_KEYWORDS = frozenset({"break", "continue", "fallthrough", "return"})
_TERMINATING_OPS = frozenset({")", "]", "}", "++", "--"})

_OPENERS = {"(": ")", "[": "]", "{": "}"}


@dataclass
class Token:
    kind: str
    value: str
    line: int

    def is_op(self, value: str) -> bool:
        return self.kind == OP and self.value == value

    def is_ident(self, value: str | None = None) -> bool:
        return self.kind == IDENT and (value is None or self.value == value)


@dataclass
class Comment:
    line: int
    end_line: int
    text: str
    own_line: bool


@dataclass
class CommentGroup:
    """Consecutive comment lines with nothing else on them."""

    comments: list[Comment] = field(default_factory=list)

    @property
    def line(self) -> int:
        return self.comments[0].line

    @property
    def end_line(self) -> int:
        return self.comments[-1].end_line

    @property
    def lines(self) -> list[str]:
        out: list[str] = []
        for comment in self.comments:
            out.extend(comment.text.split("\n"))
        return out

    @property
    def text(self) -> str:
        return "\n".join(line.strip() for line in self.lines).strip()


# ---------------------------------------------------------------------------
# Type expressions
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Ident:
    name: str
    package: str | None = None

    def __str__(self) -> str:
        return f"{self.package}.{self.name}" if self.package else self.name


@dataclass(frozen=True)
class Pointer:
    elem: "TypeExpr"

    def __str__(self) -> str:
        return f"*{self.elem}"


@dataclass(frozen=True)
class ArrayType:
    elem: "TypeExpr"
    length: str | None = None

    def __str__(self) -> str:
        return f"[{self.length or ''}]{self.elem}"


@dataclass(frozen=True)
class MapType:
    key: "TypeExpr"
    value: "TypeExpr"

    def __str__(self) -> str:
        return f"map[{self.key}]{self.value}"


@dataclass(frozen=True)
class ChanType:
    elem: "TypeExpr"

    def __str__(self) -> str:
        return f"chan {self.elem}"


@dataclass(frozen=True)
class FuncType:
    def __str__(self) -> str:
        return "func()"


@dataclass(frozen=True)
class InterfaceType:
    empty: bool = True

    def __str__(self) -> str:
        return "interface{}" if self.empty else "interface{...}"


@dataclass(frozen=True)
class Generic:
    base: Ident
    args: tuple["TypeExpr", ...]

    def __str__(self) -> str:
        return f"{self.base}[{', '.join(str(a) for a in self.args)}]"


@dataclass(eq=False)
class FieldSpec:
    names: list[str]
    type: "TypeExpr"
    tag: str = ""
    doc: CommentGroup | None = None
    comment: CommentGroup | None = None
    line: int = 0

    @property
    def embedded(self) -> bool:
        return not self.names

    @property
    def description(self) -> str:
        for group in (self.doc, self.comment):
            if group is not None and group.text:
                return group.text
        return ""


@dataclass(eq=False)
class StructType:
    fields: list[FieldSpec] = field(default_factory=list)

    def __str__(self) -> str:
        parts = []
        for spec in self.fields:
            names = ",".join(spec.names)
            parts.append(f"{names} {spec.type} {spec.tag}".strip())
        return "struct{" + "; ".join(parts) + "}"


TypeExpr = Union[Ident, Pointer, ArrayType, MapType, ChanType, FuncType, InterfaceType, Generic, StructType]


# ---------------------------------------------------------------------------
# Declarations
# ---------------------------------------------------------------------------


@dataclass
class ImportSpec:
    path: str
    alias: str | None = None
    line: int = 0


@dataclass(eq=False)
class TypeDecl:
    name: str
    type: TypeExpr
    type_params: list[str] = field(default_factory=list)
    is_alias: bool = False
    doc: CommentGroup | None = None
    line: int = 0
    file: "GoFile | None" = field(default=None, repr=False)


@dataclass
class FuncDecl:
    name: str
    receiver: str | None = None
    doc: CommentGroup | None = None
    line: int = 0

    @property
    def qualified_name(self) -> str:
        return f"{self.receiver}.{self.name}" if self.receiver else self.name


@dataclass
class ConstSpec:
    name: str
    type: TypeExpr | None
    value: Any
    doc: CommentGroup | None = None
    comment: CommentGroup | None = None
    line: int = 0

    @property
    def description(self) -> str:
        for group in (self.doc, self.comment):
            if group is not None and group.text:
                return group.text
        return ""


@dataclass(eq=False)
class GoFile:
    path: str
    package: str
    imports: list[ImportSpec] = field(default_factory=list)
    types: list[TypeDecl] = field(default_factory=list)
    funcs: list[FuncDecl] = field(default_factory=list)
    consts: list[ConstSpec] = field(default_factory=list)
    comment_groups: list[CommentGroup] = field(default_factory=list)


# ---------------------------------------------------------------------------
# Tokenizer
# ---------------------------------------------------------------------------


def _needs_semicolon(token: Token | None) -> bool:
    if token is None:
        return False
    if token.kind == IDENT:
        return token.value not in KEYWORDS or token.value in _TERMINATING_KEYWORDS
    if token.kind in (NUMBER, STRING, CHAR):
        return True
    return token.kind == OP and token.value in _TERMINATING_OPS


def tokenize(text: str, path: str = "") -> tuple[list[Token], list[Comment]]:
    """Split source into tokens (with inserted semicolons) and comments."""
    tokens: list[Token] = []
    comments: list[Comment] = []
    line = 1
    last: Token | None = None
    last_token_line = 0
    pos = 0
    length = len(text)

    def end_statement(at_line: int) -> None:
        nonlocal last
        if _needs_semicolon(last):
            tokens.append(Token(OP, ";", at_line))
            last = None

    while pos < length:
        match = _TOKEN_RE.match(text, pos)
        if match is None:
            raise ParseError(f"unexpected character {text[pos]!r}", path, line)
        kind = match.lastgroup
        value = match.group()
        pos = match.end()
        if kind == "space":
            continue
        if kind == "newline":
            end_statement(line)
            line += 1
            continue
        if kind == "line_comment":
            comments.append(Comment(line, line, value[2:], last_token_line != line))
            continue
        if kind == "block_comment":
            newlines = value.count("\n")
            comments.append(Comment(line, line + newlines, value[2:-2], last_token_line != line))
            if newlines:
                end_statement(line)
                line += newlines
            continue
        if kind == "raw_string":
            token = Token(STRING, value, line)
            line += value.count("\n")
        elif kind in ("string", "char", "number", "ident", "op"):
            token = Token({"string": STRING, "char": CHAR}.get(kind, kind), value, line)
        else:  # pragma: no cover
            raise ParseError(f"unknown token {value!r}", path, line)
        tokens.append(token)
        last = token
        last_token_line = line
    end_statement(line)
    tokens.append(Token(EOF, "", line))
    return tokens, comments


def group_comments(comments: list[Comment]) -> list[CommentGroup]:
    """Group own-line comments that sit on consecutive lines."""
    groups: list[CommentGroup] = []
    current: CommentGroup | None = None
    for comment in comments:
        if not comment.own_line:
            current = None
            continue
        if current is not None and comment.line == current.end_line + 1:
            current.comments.append(comment)
        else:
            current = CommentGroup([comment])
            groups.append(current)
    return groups


def unquote(literal: str) -> str:
    """Decode a Go string literal."""
    if literal.startswith("`"):
        return literal[1:-1].replace("\r", "")
    body = literal[1:-1]
    return re.sub(r"\\(u[0-9a-fA-F]{4}|x[0-9a-fA-F]{2}|.)", _unescape, body)


_ESCAPES = {"n": "\n", "t": "\t", "r": "\r", "a": "\a", "b": "\b", "f": "\f", "v": "\v"}


def _unescape(match: re.Match) -> str:
    seq = match.group(1)
    if seq[0] in "ux" and len(seq) > 1:
        return chr(int(seq[1:], 16))
    return _ESCAPES.get(seq, seq)


_STRUCT_TAG_RE = re.compile(r'([^\s:"]+):"((?:\\.|[^"\\])*)"')


def parse_struct_tag(tag: str) -> dict[str, str]:
    """Split a struct tag into its key/value pairs, first key wins."""
    values: dict[str, str] = {}
    for key, value in _STRUCT_TAG_RE.findall(tag):
        values.setdefault(key, re.sub(r'\\(.)', r"\1", value))
    return values


# ---------------------------------------------------------------------------
# Constant evaluation
# ---------------------------------------------------------------------------

_BIN_OPS = {
    ast.Add: operator.add,
    ast.Sub: operator.sub,
    ast.Mult: operator.mul,
    ast.Div: operator.truediv,
    ast.FloorDiv: operator.floordiv,
    ast.Mod: operator.mod,
    ast.LShift: operator.lshift,
    ast.RShift: operator.rshift,
    ast.BitOr: operator.or_,
    ast.BitAnd: operator.and_,
    ast.BitXor: operator.xor,
}
_UNARY_OPS = {ast.USub: operator.neg, ast.UAdd: operator.pos, ast.Invert: operator.invert}
_CONST_OPS = frozenset({"+", "-", "*", "/", "%", "(", ")", "|", "&", "^", "<<", ">>"})


def _number(value: str) -> int | float:
    value = value.replace("_", "")
    if value.endswith("i"):
        raise ValueError("imaginary literal")
    if re.fullmatch(r"0[0-7]+", value):
        return int(value, 8)
    try:
        return int(value, 0)
    except ValueError:
        return float(value)


def _eval_node(node: ast.AST) -> Any:
    if isinstance(node, ast.Expression):
        return _eval_node(node.body)
    if isinstance(node, ast.Constant) and isinstance(node.value, (int, float)):
        return node.value
    if isinstance(node, ast.BinOp) and type(node.op) in _BIN_OPS:
        left, right = _eval_node(node.left), _eval_node(node.right)
        if isinstance(node.op, ast.Div) and isinstance(left, int) and isinstance(right, int):
            return int(left / right)
        return _BIN_OPS[type(node.op)](left, right)
    if isinstance(node, ast.UnaryOp) and type(node.op) in _UNARY_OPS:
        return _UNARY_OPS[type(node.op)](_eval_node(node.operand))
    raise ValueError("unsupported constant expression")


def evaluate_const(tokens: list[Token], iota: int) -> Any:
    """Evaluate a constant expression; None when it is not a plain literal."""
    # Strip a conversion such as Status("a") or pkg.Level(iota + 1)
    while len(tokens) >= 3 and tokens[-1].is_op(")"):
        if tokens[0].kind == IDENT and tokens[1].is_op("("):
            tokens = tokens[2:-1]
        elif len(tokens) >= 5 and tokens[0].kind == IDENT and tokens[1].is_op(".") and tokens[3].is_op("("):
            tokens = tokens[4:-1]
        else:
            break
    if len(tokens) == 1:
        token = tokens[0]
        if token.kind == STRING:
            return unquote(token.value)
        if token.kind == CHAR:
            decoded = unquote('"' + token.value[1:-1] + '"')
            return ord(decoded) if len(decoded) == 1 else None
    parts = []
    for token in tokens:
        if token.is_ident("iota"):
            parts.append(str(iota))
        elif token.kind == NUMBER:
            try:
                parts.append(repr(_number(token.value)))
            except ValueError:
                return None
        elif token.kind == OP and token.value in _CONST_OPS:
            parts.append(token.value)
        else:
            return None
    if not parts:
        return None
    try:
        return _eval_node(ast.parse(" ".join(parts), mode="eval"))
    except (SyntaxError, ValueError, ZeroDivisionError, TypeError):
        return None


# ---------------------------------------------------------------------------
# Parser
# ---------------------------------------------------------------------------


class _Parser:
    def __init__(self, tokens: list[Token], comments: list[Comment], path: str) -> None:
        self.tokens = tokens
        self.pos = 0
        self.path = path
        self.groups = group_comments(comments)
        self._doc_by_end = {g.end_line: g for g in self.groups}
        self._trailing = {c.line: CommentGroup([c]) for c in comments if not c.own_line}

    # -- token helpers -----------------------------------------------------

    def peek(self, offset: int = 0) -> Token:
        index = min(self.pos + offset, len(self.tokens) - 1)
        return self.tokens[index]

    def next(self) -> Token:
        token = self.tokens[self.pos]
        if token.kind != EOF:
            self.pos += 1
        return token

    def at(self, value: str) -> bool:
        token = self.peek()
        return token.kind in (OP, IDENT) and token.value == value

    def accept(self, value: str) -> bool:
        if self.at(value):
            self.pos += 1
            return True
        return False

    def error(self, message: str) -> ParseError:
        return ParseError(message, self.path, self.peek().line)

    def expect(self, value: str) -> Token:
        if not self.at(value):
            raise self.error(f"expected {value!r}, found {self.peek().value or 'EOF'!r}")
        return self.next()

    def expect_ident(self) -> Token:
        token = self.peek()
        if token.kind != IDENT:
            raise self.error(f"expected identifier, found {token.value or 'EOF'!r}")
        return self.next()

    def skip_semis(self) -> None:
        while self.accept(";"):
            pass

    def skip_balanced(self) -> list[Token]:
        """Skip a bracketed group starting at the current opener; return its inner tokens."""
        opener = self.next()
        closer = _OPENERS[opener.value]
        stack = [closer]
        inner: list[Token] = []
        while stack:
            token = self.next()
            if token.kind == EOF:
                raise ParseError(f"unbalanced {opener.value!r}", self.path, opener.line)
            if token.kind == OP and token.value in _OPENERS:
                stack.append(_OPENERS[token.value])
            elif token.kind == OP and token.value == stack[-1]:
                stack.pop()
                if not stack:
                    break
            inner.append(token)
        return inner

    def skip_statement(self) -> None:
        while True:
            token = self.peek()
            if token.kind == EOF or token.is_op(";"):
                return
            if token.kind == OP and token.value in _OPENERS:
                self.skip_balanced()
            else:
                self.next()

    def doc_for(self, line: int) -> CommentGroup | None:
        return self._doc_by_end.get(line - 1)

    def trailing_for(self, line: int) -> CommentGroup | None:
        return self._trailing.get(line)

    # -- file --------------------------------------------------------------

    def parse_file(self) -> GoFile:
        self.skip_semis()
        self.expect("package")
        package = self.expect_ident().value
        gofile = GoFile(self.path, package, comment_groups=self.groups)
        self.skip_semis()
        while self.at("import"):
            self.next()
            gofile.imports.extend(self.parse_import_decl())
            self.skip_semis()
        while self.peek().kind != EOF:
            keyword = self.next()
            if keyword.is_ident("type"):
                for decl in self.parse_type_decl(keyword):
                    decl.file = gofile
                    gofile.types.append(decl)
            elif keyword.is_ident("const"):
                gofile.consts.extend(self.parse_const_decl(keyword))
            elif keyword.is_ident("func"):
                gofile.funcs.append(self.parse_func_decl(keyword))
            elif keyword.is_ident("var"):
                if self.at("("):
                    self.skip_balanced()
                else:
                    self.skip_statement()
            elif keyword.is_ident("import"):
                gofile.imports.extend(self.parse_import_decl())
            else:
                self.skip_statement()
            self.skip_semis()
        return gofile

    def parse_imports_only(self) -> list[ImportSpec]:
        self.skip_semis()
        self.expect("package")
        self.expect_ident()
        self.skip_semis()
        imports: list[ImportSpec] = []
        while self.accept("import"):
            imports.extend(self.parse_import_decl())
            self.skip_semis()
        return imports

    def parse_import_decl(self) -> list[ImportSpec]:
        if not self.accept("("):
            return [self.parse_import_spec()]
        specs = []
        while True:
            self.skip_semis()
            if self.accept(")"):
                return specs
            specs.append(self.parse_import_spec())

    def parse_import_spec(self) -> ImportSpec:
        alias = None
        token = self.peek()
        if token.kind == IDENT or token.is_op("."):
            alias = self.next().value
        path_token = self.next()
        if path_token.kind != STRING:
            raise ParseError("expected import path", self.path, path_token.line)
        return ImportSpec(unquote(path_token.value), alias, path_token.line)

    # -- types -------------------------------------------------------------

    def parse_type_decl(self, keyword: Token) -> list[TypeDecl]:
        group_doc = self.doc_for(keyword.line)
        if not self.accept("("):
            return [self.parse_type_spec(group_doc)]
        decls = []
        while True:
            self.skip_semis()
            if self.accept(")"):
                return decls
            decls.append(self.parse_type_spec(None))

    def parse_type_spec(self, group_doc: CommentGroup | None) -> TypeDecl:
        name = self.expect_ident()
        type_params: list[str] = []
        if self.at("[") and self._starts_type_params():
            type_params = self.parse_type_params()
        is_alias = self.accept("=")
        type_expr = self.parse_type()
        doc = self.doc_for(name.line) or group_doc or self.trailing_for(name.line)
        return TypeDecl(name.value, type_expr, type_params, is_alias, doc, name.line)

    def _starts_type_params(self) -> bool:
        first, second = self.peek(1), self.peek(2)
        if first.kind != IDENT:
            return False
        return not second.is_op("]")

    def parse_type_params(self) -> list[str]:
        inner = self.skip_balanced()
        names = []
        depth = 0
        expect_name = True
        for token in inner:
            if token.kind == OP and token.value in _OPENERS:
                depth += 1
            elif token.kind == OP and token.value in (")", "]", "}"):
                depth -= 1
            if depth == 0 and token.is_op(","):
                expect_name = True
                continue
            if expect_name and depth == 0 and token.kind == IDENT:
                names.append(token.value)
                expect_name = False
        return names

    def starts_type(self) -> bool:
        token = self.peek()
        if token.kind == IDENT:
            return token.value not in KEYWORDS or token.value in ("map", "chan", "func", "struct", "interface")
        return token.kind == OP and token.value in ("*", "[", "(", "<-")

    def parse_type(self) -> TypeExpr:
        token = self.peek()
        if token.is_op("*"):
            self.next()
            return Pointer(self.parse_type())
        if token.is_op("("):
            self.next()
            inner = self.parse_type()
            self.expect(")")
            return inner
        if token.is_op("["):
            self.next()
            if self.accept("]"):
                return ArrayType(self.parse_type())
            length = []
            depth = 0
            while True:
                part = self.next()
                if part.kind == EOF:
                    raise self.error("unterminated array length")
                if part.is_op("[") or part.is_op("("):
                    depth += 1
                elif part.is_op(")"):
                    depth -= 1
                elif part.is_op("]"):
                    if depth == 0:
                        break
                    depth -= 1
                length.append(part.value)
            return ArrayType(self.parse_type(), "".join(length))
        if token.is_op("<-"):
            self.next()
            self.expect("chan")
            return ChanType(self.parse_type())
        if token.kind != IDENT:
            raise self.error(f"expected type, found {token.value or 'EOF'!r}")
        if token.value == "map":
            self.next()
            self.expect("[")
            key = self.parse_type()
            self.expect("]")
            return MapType(key, self.parse_type())
        if token.value == "chan":
            self.next()
            self.accept("<-")
            return ChanType(self.parse_type())
        if token.value == "func":
            self.next()
            self.parse_signature()
            return FuncType()
        if token.value == "struct":
            return self.parse_struct()
        if token.value == "interface":
            self.next()
            inner = self.skip_balanced() if self.at("{") else []
            return InterfaceType(empty=not [t for t in inner if not t.is_op(";")])
        return self.parse_type_name()

    def parse_type_name(self) -> Ident | Generic:
        name = self.expect_ident().value
        ident = Ident(name)
        if self.at(".") and self.peek(1).kind == IDENT:
            self.next()
            ident = Ident(self.next().value, name)
        if self.at("[") and not self.peek(1).is_op("]"):
            self.next()
            args = [self.parse_type()]
            while self.accept(","):
                if self.at("]"):
                    break
                args.append(self.parse_type())
            self.expect("]")
            return Generic(ident, tuple(args))
        return ident

    def parse_signature(self) -> None:
        if self.at("("):
            self.skip_balanced()
        if self.at("("):
            self.skip_balanced()
        elif self.starts_type() and not self.at("("):
            self.parse_type()

    def parse_struct(self) -> StructType:
        self.expect("struct")
        self.expect("{")
        struct = StructType()
        while True:
            self.skip_semis()
            if self.accept("}"):
                return struct
            start = self.peek()
            names: list[str] = []
            if start.is_op("*"):
                self.next()
                type_expr: TypeExpr = Pointer(self.parse_type_name())
            elif start.kind == IDENT and self._is_embedded_field():
                type_expr = self.parse_type_name()
            else:
                names.append(self.expect_ident().value)
                while self.accept(","):
                    names.append(self.expect_ident().value)
                type_expr = self.parse_type()
            tag = ""
            if self.peek().kind == STRING:
                tag = unquote(self.next().value)
            end_line = self.tokens[self.pos - 1].line
            struct.fields.append(FieldSpec(
                names=names,
                type=type_expr,
                tag=tag,
                doc=self.doc_for(start.line),
                comment=self.trailing_for(end_line),
                line=start.line,
            ))
            if not self.at("}"):
                self.expect(";")

    def _is_embedded_field(self) -> bool:
        following = self.peek(1)
        if following.is_op(".") or following.is_op(";") or following.is_op("}") or following.kind == STRING:
            return True
        if not following.is_op("["):
            return False
        # Generic embedding T[int] versus field named T with an array type.
        depth = 0
        offset = 1
        while True:
            token = self.peek(offset)
            if token.kind == EOF:
                return False
            if token.is_op("["):
                depth += 1
            elif token.is_op("]"):
                depth -= 1
                if depth == 0:
                    after = self.peek(offset + 1)
                    return after.is_op(";") or after.is_op("}") or after.kind == STRING
            offset += 1

    # -- funcs and consts --------------------------------------------------

    def parse_func_decl(self, keyword: Token) -> FuncDecl:
        receiver = None
        if self.at("("):
            inner = self.skip_balanced()
            depth = 0
            for token in inner:
                if token.is_op("["):
                    depth += 1
                elif token.is_op("]"):
                    depth -= 1
                elif depth == 0 and token.kind == IDENT:
                    receiver = token.value
        name = self.expect_ident()
        if self.at("["):
            self.skip_balanced()
        self.parse_signature()
        if self.at("{"):
            self.skip_balanced()
        return FuncDecl(name.value, receiver, self.doc_for(keyword.line), keyword.line)

    def parse_const_decl(self, keyword: Token) -> list[ConstSpec]:
        if not self.accept("("):
            return self.parse_const_spec(0, None, [], self.doc_for(keyword.line))[0]
        specs: list[ConstSpec] = []
        prev_type: TypeExpr | None = None
        prev_exprs: list[list[Token]] = []
        iota = 0
        while True:
            self.skip_semis()
            if self.accept(")"):
                return specs
            parsed, prev_type, prev_exprs = self.parse_const_spec(iota, prev_type, prev_exprs, None)
            specs.extend(parsed)
            iota += 1

    def parse_const_spec(
        self,
        iota: int,
        prev_type: TypeExpr | None,
        prev_exprs: list[list[Token]],
        group_doc: CommentGroup | None,
    ) -> tuple[list[ConstSpec], TypeExpr | None, list[list[Token]]]:
        first = self.expect_ident()
        names = [first.value]
        while self.accept(","):
            names.append(self.expect_ident().value)
        type_expr: TypeExpr | None = None
        if not (self.at("=") or self.at(";") or self.at(")")):
            type_expr = self.parse_type()
        if self.accept("="):
            exprs = self._expression_list()
        else:
            type_expr, exprs = prev_type, prev_exprs
        end_line = self.tokens[self.pos - 1].line
        doc = self.doc_for(first.line) or group_doc
        comment = self.trailing_for(end_line)
        specs = []
        for index, name in enumerate(names):
            value = evaluate_const(exprs[index], iota) if index < len(exprs) else None
            specs.append(ConstSpec(name, type_expr, value, doc, comment, first.line))
        return specs, type_expr, exprs

    def _expression_list(self) -> list[list[Token]]:
        exprs: list[list[Token]] = [[]]
        depth = 0
        while True:
            token = self.peek()
            if token.kind == EOF:
                break
            if depth == 0 and (token.is_op(";") or token.is_op(")")):
                break
            self.next()
            if token.kind == OP and token.value in _OPENERS:
                depth += 1
            elif token.kind == OP and token.value in (")", "]", "}"):
                depth -= 1
            if depth == 0 and token.is_op(","):
                exprs.append([])
                continue
            exprs[-1].append(token)
        return exprs


def parse_file(text: str, path: str = "") -> GoFile:
    """Parse one Go source file into its declarations."""
    tokens, comments = tokenize(text, path)
    return _Parser(tokens, comments, path).parse_file()


def parse_imports(text: str, path: str = "") -> list[ImportSpec]:
    """Read only the import clauses of a Go source file."""
    tokens, comments = tokenize(text, path)
    return _Parser(tokens, comments, path).parse_imports_only()


def parse_type_expr(text: str) -> TypeExpr:
    """Parse a Go type expression such as ``[]model.User`` or ``web.Page[int]``."""
    tokens, _ = tokenize(text.strip())
    parser = _Parser(tokens, [], "")
    type_expr = parser.parse_type()
    parser.skip_semis()
    if parser.peek().kind != EOF:
        raise ParseError(f"unexpected {parser.peek().value!r} in type {text!r}")
    return type_expr
