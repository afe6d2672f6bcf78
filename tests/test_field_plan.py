"""
Unit tests for per-type field plans.
"""
import gc
import weakref
from dataclasses import dataclass, field
from typing import Annotated, Any, Dict, List, Optional, Sequence, Tuple, Union

import pytest
from pydantic import BaseModel, Field

from sanitags.core.config import get_settings
from sanitags.schemas.policy import PolicyName, Sanitize, sanitize_field
from sanitags.services.sanitizers.field_plan import (
    FieldKind,
    FieldPlan,
    classify_type,
    clear_plan_cache,
    describe_record,
    get_field_plans,
    is_record,
    is_record_type,
)


class Address(BaseModel):
    city: str


@dataclass
class Point:
    x: int = 0


class TestClassifyType:
    """Declared types map to the walk's field kinds."""

    @pytest.mark.parametrize("tp", [str, Optional[str], Annotated[str, "meta"], Union[str, None]])
    def test_string(self, tp):
        assert classify_type(tp) is FieldKind.STRING

    @pytest.mark.parametrize(
        "tp",
        [List[str], list[str], Sequence[str], Tuple[str, ...], Optional[List[str]]],
    )
    def test_string_list(self, tp):
        assert classify_type(tp) is FieldKind.STRING_LIST

    @pytest.mark.parametrize("tp", [Address, Point, Optional[Address]])
    def test_nested(self, tp):
        assert classify_type(tp) is FieldKind.NESTED

    @pytest.mark.parametrize(
        "tp",
        [int, bool, List[int], Tuple[str, str], Dict[str, str], Union[str, int], List[Address]],
    )
    def test_scalar(self, tp):
        assert classify_type(tp) is FieldKind.SCALAR

    @pytest.mark.parametrize("tp", [Any, object, list, tuple, "str"])
    def test_dynamic(self, tp):
        assert classify_type(tp) is FieldKind.DYNAMIC

    def test_pep604_optional(self):
        assert classify_type(str | None) is FieldKind.STRING
        assert classify_type(list[str] | None) is FieldKind.STRING_LIST


class TestRecordDetection:

    def test_record_types(self):
        assert is_record_type(Address)
        assert is_record_type(Point)
        assert not is_record_type(Address(city="x"))
        assert not is_record_type(dict)

    def test_record_instances(self):
        assert is_record(Address(city="x"))
        assert is_record(Point())
        assert not is_record(Point)
        assert not is_record(None)
        assert not is_record({"city": "x"})


class TestDescribeRecord:
    """Plans follow declared order and capture the declared policy."""

    def test_pydantic_plan(self):
        class User(BaseModel):
            id: int
            name: Annotated[str, Sanitize(PolicyName.STRIP_ALL)]
            bio: str = sanitize_field(PolicyName.SAFE_UGC, default="")
            tags: List[str] = Field(default_factory=list, json_schema_extra={"sanitize": "strip-all"})
            address: Optional[Address] = None
            count: Annotated[int, Sanitize("strip-all")] = 0
            other: str = Field(default="", json_schema_extra={"sanitize": "whatever"})

        plans = describe_record(User)

        assert plans == (
            FieldPlan(name="id", kind=FieldKind.SCALAR, policy=None, type_name="int"),
            FieldPlan(name="name", kind=FieldKind.STRING, policy="strip-all", type_name="str"),
            FieldPlan(
                name="bio", kind=FieldKind.STRING,
                policy="safe-user-generated-content", type_name="str",
            ),
            FieldPlan(name="tags", kind=FieldKind.STRING_LIST, policy="strip-all", type_name="List[str]"),
            FieldPlan(name="address", kind=FieldKind.NESTED, policy=None, type_name="Address"),
            FieldPlan(name="count", kind=FieldKind.INVALID, policy="strip-all", type_name="int"),
            FieldPlan(name="other", kind=FieldKind.STRING, policy="whatever", type_name="str"),
        )
        assert [p.tagged for p in plans] == [False, True, True, True, False, True, True]

    def test_dataclass_plan(self):
        @dataclass
        class Comment:
            body: str = field(metadata={"sanitize": "safe-user-generated-content"})
            author: Annotated[str, Sanitize(PolicyName.STRIP_ALL)] = ""
            point: Point = field(default_factory=Point, metadata={"sanitize": "strip-all"})
            score: float = 0.0

        plans = describe_record(Comment(body="x"))

        assert [p.name for p in plans] == ["body", "author", "point", "score"]
        assert [p.kind for p in plans] == [
            FieldKind.STRING,
            FieldKind.STRING,
            FieldKind.INVALID,
            FieldKind.SCALAR,
        ]
        assert plans[0].policy == "safe-user-generated-content"
        assert plans[1].policy == "strip-all"

    def test_marker_wins_over_metadata(self):
        class Doc(BaseModel):
            text: Annotated[str, Sanitize(PolicyName.SAFE_UGC)] = Field(
                default="", json_schema_extra={"sanitize": "strip-all"}
            )

        assert describe_record(Doc)[0].policy == "safe-user-generated-content"

    def test_rejects_non_record(self):
        with pytest.raises(TypeError):
            describe_record(dict)
        with pytest.raises(TypeError):
            describe_record("text")


class TestPlanCache:

    def test_plans_cached_per_type(self):
        assert get_field_plans(Point) is get_field_plans(Point)

    def test_clear_plan_cache(self):
        first = get_field_plans(Point)
        clear_plan_cache()
        second = get_field_plans(Point)
        assert first == second
        assert first is not second

    def test_cache_does_not_keep_types_alive(self):
        @dataclass
        class Draft:
            text: Annotated[str, Sanitize("strip-all")] = ""

        assert get_field_plans(Draft)[0].kind is FieldKind.STRING
        ref = weakref.ref(Draft)

        del Draft
        gc.collect()

        assert ref() is None

    def test_cache_follows_annotation_key(self, monkeypatch):
        @dataclass
        class Memo:
            text: str = field(default="", metadata={"clean": "strip-all"})

        assert get_field_plans(Memo)[0].tagged is False

        monkeypatch.setenv("SANITAGS_ANNOTATION_KEY", "clean")
        get_settings.cache_clear()

        assert get_field_plans(Memo)[0].policy == "strip-all"
