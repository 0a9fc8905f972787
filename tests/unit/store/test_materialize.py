"""Tests for sqlgate.store.materialize."""

from dataclasses import dataclass
from typing import Any

import pytest
from pydantic import BaseModel

from sqlgate.errors import ConversionError, ShapeError
from sqlgate.store.materialize import QueryResult, materialize
from sqlgate.store.shapes import MappingShape, ScalarShape, shape_for


@dataclass
class Person:
    id: int
    name: str
    age: int | None = None
    nickname: str = "none"


class PersonModel(BaseModel):
    id: int
    name: str
    age: int | None = None


def test_record_binds_columns_by_exact_name():
    result = QueryResult(["id", "name", "extra"], [(1, "ada", "ignored"), (2, "bob", None)])
    people = materialize(result, shape_for(list[Person]))
    assert people == [Person(1, "ada"), Person(2, "bob")]


def test_record_unmatched_fields_keep_defaults():
    result = QueryResult(["id", "name"], [(1, "ada")])
    [person] = materialize(result, shape_for(list[Person]))
    assert person.age is None
    assert person.nickname == "none"


def test_record_missing_required_field_is_none():
    result = QueryResult(["id"], [(7,)])
    [person] = materialize(result, shape_for(list[Person]))
    assert person.id == 7
    assert person.name is None


def test_record_binding_is_case_sensitive():
    result = QueryResult(["ID", "Name"], [(1, "ada")])
    [person] = materialize(result, shape_for(list[Person]))
    assert person.id is None
    assert person.name is None


def test_record_pydantic_model():
    result = QueryResult(["id", "name", "age"], [(1, "ada", 36)])
    [person] = materialize(result, shape_for(list[PersonModel]))
    assert isinstance(person, PersonModel)
    assert (person.id, person.name, person.age) == (1, "ada", 36)


def test_mapping_has_every_column():
    """Contract: columns {a, b, c} give every row exactly those keys."""
    result = QueryResult(["a", "b", "c"], [(1, 2, 3), (4, None, "x")])
    rows = materialize(result, MappingShape(Any))
    assert [set(r) for r in rows] == [{"a", "b", "c"}, {"a", "b", "c"}]
    assert rows[1] == {"a": 4, "b": None, "c": "x"}


def test_mapping_duplicate_columns_last_wins():
    result = QueryResult(["v", "v"], [(1, 2)])
    assert materialize(result, MappingShape(Any)) == [{"v": 2}]


def test_mapping_value_type_applies_to_every_column():
    result = QueryResult(["a", "b"], [(1, 2.0)])
    assert materialize(result, MappingShape(float)) == [{"a": 1.0, "b": 2.0}]


def test_mapping_unwraps_nested_json():
    result = QueryResult(["meta"], [('{"k":1}',)])
    assert materialize(result, MappingShape(Any)) == [{"meta": {"k": 1}}]


def test_scalar_rows_keep_engine_order():
    result = QueryResult(["n"], [(3,), (1,), (2,)])
    assert materialize(result, ScalarShape(int)) == [3, 1, 2]


def test_scalar_against_many_columns_raises():
    result = QueryResult(["a", "b"], [(1, 2)])
    with pytest.raises(ShapeError, match="exactly one column"):
        materialize(result, ScalarShape(int))


def test_conversion_failure_names_column():
    result = QueryResult(["id", "name"], [("nope", "ada")])
    with pytest.raises(ConversionError, match="'id'"):
        materialize(result, shape_for(list[Person]))


def test_empty_result():
    assert materialize(QueryResult(["a"]), ScalarShape(int)) == []
