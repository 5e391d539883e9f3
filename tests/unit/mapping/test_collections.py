"""Unit tests for the collection strategy classifier."""

from __future__ import annotations

import pytest

from dalmap.config import EngineSettings
from dalmap.ir.plan import (
    CollectionKind,
    CollectionLoop,
    ConversionType,
    Direction,
    InlineExpression,
    RenderStrategy,
)
from dalmap.mapping.collections import classify_collection, collection_kind
from dalmap.mapping.context import Gap, ResolutionContext, Resolved
from dalmap.mapping.evaluate import PlanEvaluator
from dalmap.mapping.planner import MessagePlanner
from dalmap.mapping.registry import ConverterRegistry
from dalmap.schema.index import MessageIndex
from dalmap.schema.models import SchemaBatch, SchemaField, SchemaMessage

# -------------------- Fakes / helpers --------------------


def _field(name: str, number: int, cardinality: str = "repeated", **kw) -> SchemaField:
    if "type_name" not in kw and "scalar" not in kw:
        kw["scalar"] = "string"
    if "type_name" in kw:
        kw.setdefault("kind", "message")
    return SchemaField(name=name, number=number, cardinality=cardinality, **kw)


CHAPTER = SchemaMessage(name="Chapter", full_name="api.Chapter")
CHAPTER_GORM = SchemaMessage(
    name="ChapterGorm", full_name="gorm.ChapterGorm", source="api.Chapter"
)
REVIEW = SchemaMessage(name="Review", full_name="api.Review")
LIBRARY = SchemaMessage(
    name="Library",
    full_name="api.Library",
    fields=[
        _field("tags", 1),
        _field("labels", 2, "map", map_key="string"),
        _field("chapters", 3, type_name="api.Chapter"),
        _field("by_code", 4, "map", map_key="string", type_name="api.Chapter"),
        _field("reviews", 5, type_name="api.Review"),
        _field(
            "history", 6, type_name="google.protobuf.Timestamp"
        ),
    ],
)
LIBRARY_GORM = SchemaMessage(
    name="LibraryGorm", full_name="gorm.LibraryGorm", source="api.Library"
)


@pytest.fixture
def ctx() -> ResolutionContext:
    index = MessageIndex(
        SchemaBatch(messages=[CHAPTER, CHAPTER_GORM, REVIEW, LIBRARY, LIBRARY_GORM])
    )
    return ResolutionContext(index, ConverterRegistry.build(index), EngineSettings())


@pytest.fixture
def plan(ctx):
    return MessagePlanner(ctx).plan(LIBRARY_GORM)


# --------------------------- Tests ---------------------------


class TestScalarCollections:
    def test_direct_assignment(self, plan) -> None:
        for name in ("tags", "labels"):
            p = plan.mapping(name).to_target
            assert p.conversion_type == ConversionType.ASSIGNMENT
            assert isinstance(p.body, InlineExpression)
            assert p.preserve_absence
            assert p.render == RenderStrategy.INLINE_VALUE

    @pytest.mark.parametrize("value", [None, {}, {"a": "b"}])
    def test_map_absence_preserved_both_directions(self, plan, value) -> None:
        labels = plan.mapping("labels")
        evaluator = PlanEvaluator()

        stored = evaluator.apply(labels, Direction.TO_TARGET, {"labels": value})
        assert stored == value
        assert (stored is None) == (value is None)

        restored = evaluator.apply(labels, Direction.FROM_TARGET, {"labels": stored})
        assert restored == value
        assert (restored is None) == (value is None)

    def test_repeated_empty_stays_empty(self, plan) -> None:
        tags = plan.mapping("tags")
        out = PlanEvaluator().convert([tags], Direction.TO_TARGET, {"tags": []})
        assert out == {"tags": []}

    def test_element_kind_mismatch_is_gap(self, ctx) -> None:
        outcome = classify_collection(
            _field("ids", 1, scalar="int32"),
            _field("ids", 1, scalar="int64"),
            Direction.TO_TARGET,
            ctx,
        )
        assert isinstance(outcome, Gap)


class TestStructuredCollections:
    def test_repeated_message_loop(self, plan) -> None:
        chapters = plan.mapping("chapters")
        p = chapters.to_target

        assert p.conversion_type == ConversionType.TRANSFORM_WITH_ERROR
        assert p.render == RenderStrategy.LOOP_REPEATED
        assert isinstance(p.body, CollectionLoop)
        assert p.body.element.function == "ChapterToChapterGorm"
        assert p.body.element.argument == "item"
        assert chapters.from_target.body.element.function == "ChapterFromChapterGorm"

    def test_map_of_messages_loop(self, plan) -> None:
        p = plan.mapping("by_code").to_target
        assert p.render == RenderStrategy.LOOP_MAP
        assert p.body.collection == CollectionKind.MAP

    def test_loop_evaluation_keeps_arity_and_keys(self, plan) -> None:
        evaluator = PlanEvaluator(
            {
                "ChapterToChapterGorm": lambda c: {"stored": c},
                "ChapterFromChapterGorm": lambda c: c["stored"],
            }
        )
        by_code = plan.mapping("by_code")
        record = {"by_code": {"x": 1, "y": 2}}

        stored = evaluator.apply(by_code, Direction.TO_TARGET, record)
        assert stored == {"x": {"stored": 1}, "y": {"stored": 2}}
        assert evaluator.apply(by_code, Direction.FROM_TARGET, {"by_code": stored}) == {
            "x": 1,
            "y": 2,
        }

    def test_missing_element_converter_drops_field(self, plan) -> None:
        assert plan.mapping("reviews") is None
        [gap] = plan.gaps
        assert gap.field_name == "reviews"
        assert gap.source_type == "repeated api.Review"
        # struct field is still declared; only conversion is skipped
        assert "reviews" in [f.name for f in plan.fields]
        assert plan.to_target_function == "LibraryToLibraryGorm"

    def test_well_known_elements_use_helpers(self, plan) -> None:
        p = plan.mapping("history").to_target
        assert p.render == RenderStrategy.LOOP_REPEATED
        assert p.body.element.function == "converters.TimestampToTime"
        assert p.body.element.import_path == "dal/converters"

    def test_message_elements_into_scalars_is_gap(self, ctx) -> None:
        outcome = classify_collection(
            _field("chapters", 3, type_name="api.Chapter"),
            _field("chapters", 3, scalar="bytes"),
            Direction.TO_TARGET,
            ctx,
        )
        assert isinstance(outcome, Gap)


class TestShapeMismatch:
    def test_cardinality_mismatch(self, ctx) -> None:
        outcome = classify_collection(
            _field("tags", 1),
            _field("tags", 1, "singular"),
            Direction.TO_TARGET,
            ctx,
        )
        assert isinstance(outcome, Gap)
        assert "cardinality mismatch" in outcome.reason

    def test_map_key_mismatch(self, ctx) -> None:
        outcome = classify_collection(
            _field("labels", 2, "map", map_key="string"),
            _field("labels", 2, "map", map_key="int64"),
            Direction.FROM_TARGET,
            ctx,
        )
        assert isinstance(outcome, Gap)
        assert "map key" in outcome.reason

    def test_same_shapes_resolve(self, ctx) -> None:
        outcome = classify_collection(
            _field("labels", 2, "map", map_key="int64"),
            _field("labels", 2, "map", map_key="int64"),
            Direction.FROM_TARGET,
            ctx,
        )
        assert isinstance(outcome, Resolved)

    def test_collection_kind(self) -> None:
        assert collection_kind(_field("a", 1)) == CollectionKind.REPEATED
        assert collection_kind(_field("a", 1, "map", map_key="bool")) == CollectionKind.MAP
        assert collection_kind(_field("a", 1, "singular")) is None
