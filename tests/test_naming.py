"""Tests for the naming module."""

import pytest

from swaggen.naming import (
    CAMEL_CASE,
    PASCAL_CASE,
    SNAKE_CASE,
    STRATEGIES,
    apply_strategy,
    component_token,
    is_valid_strategy,
    sanitize_package_name,
)


class TestCamelCase:
    """Default strategy lowers the leading upper-case run."""

    def test_simple(self):
        assert apply_strategy(CAMEL_CASE, "FirstName") == "firstName"

    def test_initialism_suffix(self):
        assert apply_strategy(CAMEL_CASE, "UserID") == "userID"

    def test_all_caps(self):
        assert apply_strategy(CAMEL_CASE, "ID") == "id"

    def test_already_lower(self):
        assert apply_strategy(CAMEL_CASE, "name") == "name"


class TestSnakeCase:
    def test_simple(self):
        assert apply_strategy(SNAKE_CASE, "FirstName") == "first_name"

    def test_initialism(self):
        assert apply_strategy(SNAKE_CASE, "HTTPServer") == "http_server"

    def test_trailing_initialism(self):
        assert apply_strategy(SNAKE_CASE, "UserID") == "user_id"


class TestPascalCase:
    def test_lower_start(self):
        assert apply_strategy(PASCAL_CASE, "createdAt") == "CreatedAt"

    def test_empty(self):
        assert apply_strategy(PASCAL_CASE, "") == ""


class TestIdempotence:
    """Applying a strategy to its own output changes nothing."""

    @pytest.mark.parametrize("strategy", STRATEGIES)
    @pytest.mark.parametrize("name", ["FirstName", "UserID", "HTTPServer", "id", "created_at", "X", "ABCDef9Ghi"])
    def test_idempotent(self, strategy, name):
        once = apply_strategy(strategy, name)
        assert apply_strategy(strategy, once) == once


class TestStrategyValidation:
    def test_known(self):
        assert all(is_valid_strategy(s) for s in STRATEGIES)

    def test_unknown(self):
        assert not is_valid_strategy("kebabcase")

    def test_apply_unknown_raises(self):
        with pytest.raises(ValueError, match="kebabcase"):
            apply_strategy("kebabcase", "Name")


class TestPackageNames:
    def test_plain(self):
        assert sanitize_package_name("docs") == "docs"

    def test_dashes(self):
        assert sanitize_package_name("api-docs") == "api_docs"

    def test_leading_digit(self):
        assert sanitize_package_name("2docs") == "_2docs"

    def test_empty_falls_back(self):
        assert sanitize_package_name("...") == "docs"


class TestComponentToken:
    def test_dots_and_slashes(self):
        assert component_token("model.User") == "model_User"
        assert component_token("array_model.User") == "array_model_User"
        assert component_token("github.com/x/y.Z") == "github_com_x_y_Z"
