"""
Unit tests for the DynamoDB expression compiler.
"""

from decimal import Decimal

import pytest

from crossdoc.constants import Operator
from crossdoc.exceptions import MalformedFilter, UnsupportedOperator
from crossdoc.querydsl.compilers.dynamodb import DynamoDBWhereCompiler, dynamodb_where


@pytest.fixture
def compiler():
    return DynamoDBWhereCompiler()


def test_equals_uses_name_and_value_placeholders(compiler):
    clause = compiler.to_where({"firstName": {"equals": "Sam"}})
    assert clause.text == "#n0 = :v0"
    assert clause.names == {"#n0": "firstName"}
    assert clause.values == {":v0": "Sam"}
    assert clause.render() == "firstName = 'Sam'"


def test_expression_attributes_are_typed(compiler):
    context = compiler.new_context()
    compiler.to_where({"firstName": {"equals": "Sam"}, "age": {"gte": 18}}, context)
    assert compiler.expression_attributes(context) == {
        "ExpressionAttributeNames": {"#n0": "firstName", "#n1": "age"},
        "ExpressionAttributeValues": {":v0": {"S": "Sam"}, ":v1": {"N": "18"}},
    }


def test_expression_attributes_omit_empty_maps(compiler):
    assert compiler.expression_attributes(compiler.new_context()) == {}


def test_functions(compiler):
    assert compiler.to_where({"firstName": {"contains": "am"}}).text == "contains(#n0, :v0)"
    assert compiler.to_where({"firstName": {"startsWith": "Sa"}}).text == "begins_with(#n0, :v0)"
    assert compiler.to_where({"firstName": {"endsWith": "am"}}).text == "contains(#n0, :v0)"


def test_not_equals(compiler):
    assert compiler.to_where({"age": {"not": 3}}).text == "#n0 <> :v0"


def test_in_and_not_in(compiler):
    assert compiler.to_expr({"age": {"in": [25, 30, 35]}}) == "age IN (25, 30, 35)"
    assert compiler.to_where({"age": {"notIn": [1, 2]}}).text == "NOT (#n0 IN (:v0, :v1))"


def test_split_where_moves_insensitive_substring_predicates(compiler):
    native, local = compiler.split_where(
        {
            "lastName": {"endsWith": "Name1", "not": "X", "mode": "INSENSITIVE"},
            "age": {"gte": 18},
        }
    )
    assert native == {"lastName": {"not": "X"}, "age": {"gte": 18}}
    assert local == [("lastName", Operator.ENDS_WITH, "name1")]


def test_split_where_validates_every_predicate(compiler):
    with pytest.raises(UnsupportedOperator):
        compiler.split_where({"age": {"contains": 3, "mode": "INSENSITIVE"}})
    assert compiler.split_where(None) == ({}, [])


def test_match_local_prefix(compiler):
    _, local = compiler.split_where({"firstName": {"startsWith": "Sa", "mode": "INSENSITIVE"}})
    assert compiler.match_local({"firstName": "Samantha"}, local)
    assert compiler.match_local({"firstName": "SAM"}, local)
    assert not compiler.match_local({"firstName": "Isaac"}, local)
    assert not compiler.match_local({}, local)


def test_match_local_suffix_uses_contains(compiler):
    _, local = compiler.split_where({"firstName": {"endsWith": "LYN", "mode": "INSENSITIVE"}})
    assert compiler.match_local({"firstName": "Samanthalyn"}, local)
    assert compiler.match_local({"firstName": "Lynda"}, local)
    assert not compiler.match_local({"firstName": "Sam"}, local)


def test_projection_and_filter_share_aliases(compiler):
    context = compiler.new_context()
    plan = compiler.to_select({"firstName": True, "age": True}, context)
    clause = compiler.to_where({"age": {"gte": 18}}, context)
    assert plan.text == "#n0, #n1"
    assert clause.text == "#n1 >= :v0"
    assert context.names == {"#n0": "firstName", "#n1": "age"}


def test_wildcard_projection(compiler):
    plan = compiler.to_select(None)
    assert plan.is_wildcard
    assert plan.text == ""
    assert compiler.to_select({}).is_wildcard


def test_same_field_twice_reuses_alias(compiler):
    clause = compiler.to_where({"age": {"gte": 18, "lte": 65}})
    assert clause.text == "#n0 >= :v0 AND #n0 <= :v1"


def test_serialize_coerces_floats(compiler):
    assert compiler.serialize(1.5) == {"N": "1.5"}
    assert compiler.serialize(True) == {"BOOL": True}
    assert compiler.serialize(["a"]) == {"L": [{"S": "a"}]}
    assert compiler.serialize(Decimal("2")) == {"N": "2"}


@pytest.mark.parametrize(
    "where",
    [
        ["firstName"],
        {"firstName": {}},
        {"firstName": None},
        {"age": {"notIn": []}},
        {"age": {"gt": [1]}},
    ],
)
def test_malformed_filter(compiler, where):
    with pytest.raises(MalformedFilter):
        compiler.to_where(where)


def test_contains_on_boolean_rejected(compiler):
    with pytest.raises(UnsupportedOperator):
        compiler.to_where({"isAdmin": {"contains": True}})


def test_module_singleton():
    assert isinstance(dynamodb_where, DynamoDBWhereCompiler)
