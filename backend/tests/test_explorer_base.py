import logging
from decimal import Decimal

import pytest

from dbexplorer.explorers.base import fetch_step, infer_fields, infer_type, to_jsonable
from dbexplorer.models.schema import BackendKind, InferredType


class TestInferType:
    @pytest.mark.parametrize(
        "value, expected",
        [
            (None, InferredType.NULL),
            (True, InferredType.BOOLEAN),
            (False, InferredType.BOOLEAN),
            (0, InferredType.NUMBER),
            (3.5, InferredType.NUMBER),
            ("", InferredType.STRING),
            ([], InferredType.ARRAY),
            ((1, 2), InferredType.ARRAY),
            ({}, InferredType.OBJECT),
            (Decimal("1.5"), InferredType.OBJECT),
        ],
    )
    def test_values(self, value, expected):
        assert infer_type(value) == expected

    def test_bool_is_not_a_number(self):
        assert infer_type(True) != InferredType.NUMBER


class TestInferFields:
    def test_fields_in_key_order(self):
        fields = infer_fields({"b": 1, "a": "x"})
        assert [(f.name, f.data_type, f.example) for f in fields] == [
            ("b", "number", 1),
            ("a", "string", "x"),
        ]

    @pytest.mark.parametrize("record", [None, 5, "text", [1, 2]])
    def test_non_objects_have_no_fields(self, record):
        assert infer_fields(record) == []

    def test_examples_are_json_safe(self):
        [field] = infer_fields({"price": Decimal("9.99")})
        assert field.example == "9.99"


def test_to_jsonable_nested():
    assert to_jsonable({"a": (1, 2), "b": {"c": Decimal("2")}}) == {"a": [1, 2], "b": {"c": "2"}}


class TestFetchStep:
    @pytest.mark.asyncio
    async def test_success(self):
        async def fetch():
            return [1, 2]

        result = await fetch_step(BackendKind.POSTGRESQL, "indexes", "public.users", fetch)

        assert result.value == [1, 2]
        assert result.warning is None
        assert result.or_default([]) == [1, 2]

    @pytest.mark.asyncio
    async def test_failure_becomes_warning(self, caplog):
        async def fetch():
            raise RuntimeError("relation does not exist")

        with caplog.at_level(logging.WARNING):
            result = await fetch_step(BackendKind.POSTGRESQL, "row_count", "public.users", fetch)

        assert result.value is None
        assert result.or_default(0) == 0
        assert result.warning.step == "row_count"
        assert result.warning.target == "public.users"
        assert result.warning.backend_kind == BackendKind.POSTGRESQL
        assert result.warning.message == "relation does not exist"
        assert "Could not fetch row_count for public.users (postgresql)" in caplog.text

    @pytest.mark.asyncio
    async def test_successful_none_is_kept(self):
        async def fetch():
            return None

        result = await fetch_step(BackendKind.MONGODB, "sample_document", "shop.users", fetch)

        assert result.warning is None
        assert result.or_default({"x": 1}) is None
