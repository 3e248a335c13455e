"""Tests for the Go declaration reader."""

import pytest

from swaggen.errors import ParseError
from swaggen.gosource import (
    ArrayType,
    FuncType,
    Generic,
    Ident,
    InterfaceType,
    MapType,
    Pointer,
    StructType,
    parse_file,
    parse_imports,
    parse_struct_tag,
    parse_type_expr,
    tokenize,
)

_SOURCE = '''package model

import (
	"time"

	db "example.com/app/storage"
	_ "embed"
	. "example.com/app/shared"
)

// Level of a log line
type Level int

const (
	// Debug is verbose
	Debug Level = iota
	Info
	Warn // warnings
	Error
)

const Answer = 40 + 2

// User is an account
type User struct {
	Base
	*db.Record
	ID      int               `json:"id" example:"7"`
	Name    string            `json:"name"` // display name
	Tags    []string          `json:"tags"`
	Meta    map[string]any    `json:"meta"`
	Created time.Time         `json:"created"`
	OnSave  func(u *User) error
	private bool
}

type (
	// Page of results
	Page[T any] struct {
		Items []T `json:"items"`
	}
	UserID = int
)

// Save stores the user
// @Router /users [post]
func (u *User) Save() error {
	if u.ID == 0 {
		return nil
	}
	return nil
}

func helper[T any](v T) T { return v }
'''


@pytest.fixture(scope="module")
def gofile():
    return parse_file(_SOURCE, "model/user.go")


class TestImports:
    def test_all_forms(self, gofile):
        specs = [(s.path, s.alias) for s in gofile.imports]
        assert specs == [
            ("time", None),
            ("example.com/app/storage", "db"),
            ("embed", "_"),
            ("example.com/app/shared", "."),
        ]

    def test_imports_only(self):
        specs = parse_imports(_SOURCE)
        assert len(specs) == 4


class TestTypes:
    def test_names(self, gofile):
        assert [t.name for t in gofile.types] == ["Level", "User", "Page", "UserID"]

    def test_doc_comment(self, gofile):
        user = gofile.types[1]
        assert user.doc is not None
        assert user.doc.text == "User is an account"

    def test_grouped_doc(self, gofile):
        page = gofile.types[2]
        assert page.doc.text == "Page of results"
        assert page.type_params == ["T"]

    def test_alias(self, gofile):
        alias = gofile.types[3]
        assert alias.is_alias
        assert alias.type == Ident("int")

    def test_decl_points_back_at_file(self, gofile):
        assert all(t.file is gofile for t in gofile.types)


class TestStructFields:
    def test_embedded(self, gofile):
        fields = gofile.types[1].type.fields
        assert fields[0].embedded and fields[0].type == Ident("Base")
        assert fields[1].embedded and fields[1].type == Pointer(Ident("Record", "db"))

    def test_named_fields(self, gofile):
        fields = gofile.types[1].type.fields
        names = [f.names[0] for f in fields if f.names]
        assert names == ["ID", "Name", "Tags", "Meta", "Created", "OnSave", "private"]

    def test_field_types(self, gofile):
        fields = {f.names[0]: f for f in gofile.types[1].type.fields if f.names}
        assert fields["Tags"].type == ArrayType(Ident("string"))
        assert fields["Meta"].type == MapType(Ident("string"), Ident("any"))
        assert fields["Created"].type == Ident("Time", "time")
        assert fields["OnSave"].type == FuncType()

    def test_tag_and_comment(self, gofile):
        fields = {f.names[0]: f for f in gofile.types[1].type.fields if f.names}
        assert fields["ID"].tag == 'json:"id" example:"7"'
        assert fields["Name"].description == "display name"

    def test_generic_struct(self, gofile):
        page = gofile.types[2].type
        assert isinstance(page, StructType)
        assert page.fields[0].type == ArrayType(Ident("T"))


class TestConsts:
    def test_iota_sequence(self, gofile):
        values = {c.name: c.value for c in gofile.consts}
        assert values["Debug"] == 0
        assert values["Info"] == 1
        assert values["Warn"] == 2
        assert values["Error"] == 3

    def test_type_carried_forward(self, gofile):
        error = next(c for c in gofile.consts if c.name == "Error")
        assert error.type == Ident("Level")

    def test_comments(self, gofile):
        consts = {c.name: c for c in gofile.consts}
        assert consts["Debug"].description == "Debug is verbose"
        assert consts["Warn"].description == "warnings"

    def test_arithmetic(self, gofile):
        answer = next(c for c in gofile.consts if c.name == "Answer")
        assert answer.value == 42
        assert answer.type is None

    def test_shift_and_strings(self):
        gofile = parse_file(
            'package p\n\ntype Flag uint\n\nconst (\n\tA Flag = 1 << iota\n\tB\n\tC\n)\n\n'
            'type Color string\n\nconst Red Color = "red"\n',
        )
        values = {c.name: c.value for c in gofile.consts}
        assert values == {"A": 1, "B": 2, "C": 4, "Red": "red"}


class TestFuncs:
    def test_method_and_generic_func(self, gofile):
        assert [f.qualified_name for f in gofile.funcs] == ["User.Save", "helper"]

    def test_func_doc(self, gofile):
        save = gofile.funcs[0]
        assert save.doc.lines[-1].strip() == "@Router /users [post]"


class TestTypeExpressions:
    def test_qualified(self):
        assert parse_type_expr("model.User") == Ident("User", "model")

    def test_slice_of_pointers(self):
        assert parse_type_expr("[]*model.User") == ArrayType(Pointer(Ident("User", "model")))

    def test_generic_args(self):
        expr = parse_type_expr("web.Response[model.User, int]")
        assert expr == Generic(Ident("Response", "web"), (Ident("User", "model"), Ident("int")))

    def test_nested_generic(self):
        expr = parse_type_expr("web.Page[web.Response[string]]")
        assert isinstance(expr, Generic)
        assert expr.args[0] == Generic(Ident("Response", "web"), (Ident("string"),))

    def test_empty_interface(self):
        assert parse_type_expr("interface{}") == InterfaceType(empty=True)

    def test_trailing_garbage(self):
        with pytest.raises(ParseError):
            parse_type_expr("model.User extra")


class TestStructTags:
    def test_pairs(self):
        assert parse_struct_tag('json:"id,omitempty" example:"1"') == {"json": "id,omitempty", "example": "1"}

    def test_first_key_wins(self):
        assert parse_struct_tag('json:"a" json:"b"') == {"json": "a"}

    def test_escaped_quote(self):
        assert parse_struct_tag(r'example:"say \"hi\""') == {"example": 'say "hi"'}


class TestTokenizer:
    def test_semicolon_insertion(self):
        tokens, _ = tokenize("x := 1\ny := 2\n")
        assert [t.value for t in tokens if t.value == ";"] == [";", ";"]

    def test_unexpected_character(self):
        with pytest.raises(ParseError):
            tokenize("package p\n$")

    def test_missing_package_clause(self):
        with pytest.raises(ParseError):
            parse_file("type X int\n")
