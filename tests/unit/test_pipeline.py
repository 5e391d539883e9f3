"""End-to-end tests for MappingPipeline."""

from __future__ import annotations

import copy
import json
import logging
from typing import Any

import pytest

from dalmap.config import EngineSettings
from dalmap.exceptions import DalMapError, SchemaLoadError, SchemaValidationError
from dalmap.io.plan_writer import PlanWriter
from dalmap.ir.plan import DiagnosticCode, Direction
from dalmap.mapping.evaluate import PlanEvaluator
from dalmap.pipeline import MappingPipeline
from dalmap.schema.models import SchemaBatch

# -------------------- Fakes / helpers --------------------

LIBRARY: dict[str, Any] = {
    "messages": [
        {
            "name": "Author",
            "full_name": "library.v1.Author",
            "fields": [
                {"name": "id", "number": 1, "scalar": "uint32"},
                {"name": "name", "number": 2, "scalar": "string"},
            ],
        },
        {
            "name": "Book",
            "full_name": "library.v1.Book",
            "fields": [
                {"name": "id", "number": 1, "scalar": "uint32"},
                {"name": "title", "number": 2, "scalar": "string"},
                {
                    "name": "author",
                    "number": 3,
                    "kind": "message",
                    "type_name": "library.v1.Author",
                },
                {
                    "name": "reviews",
                    "number": 4,
                    "kind": "message",
                    "type_name": "library.v1.Review",
                    "cardinality": "repeated",
                },
                {
                    "name": "created_at",
                    "number": 5,
                    "kind": "message",
                    "type_name": "google.protobuf.Timestamp",
                },
                {"name": "notes", "number": 6, "scalar": "string"},
            ],
        },
        {"name": "Review", "full_name": "library.v1.Review"},
        {
            "name": "BookGorm",
            "full_name": "library.gorm.BookGorm",
            "source": "library.v1.Book",
            "table": "books",
            "fields": [
                {
                    "name": "id",
                    "number": 1,
                    "scalar": "uint32",
                    "annotations": {"storage_tags": ["primaryKey"]},
                },
                {"name": "created_at", "number": 5, "scalar": "int64"},
                {"name": "notes", "number": 6, "scalar": "string", "annotations": {"skip": True}},
                {"name": "deleted_at", "number": 100, "scalar": "int64"},
            ],
        },
        {"name": "AuthorGorm", "full_name": "library.gorm.AuthorGorm", "source": "Author"},
        {
            "name": "Audit",
            "full_name": "library.gorm.Audit",
            "fields": [{"name": "id", "number": 1, "scalar": "uint64"}],
        },
    ]
}


@pytest.fixture
def library() -> dict[str, Any]:
    return copy.deepcopy(LIBRARY)


# --------------------------- Tests ---------------------------


class TestSources:
    def test_accepts_dict_batch_and_path(self, library, tmp_path) -> None:
        path = tmp_path / "library.json"
        path.write_text(json.dumps(library), encoding="utf-8")

        from_dict = MappingPipeline(library).run()
        from_batch = MappingPipeline(SchemaBatch.model_validate(library)).run()
        from_path = MappingPipeline(path).run()

        assert from_dict == from_batch == from_path

    def test_rejects_other_sources(self) -> None:
        with pytest.raises(DalMapError, match="source must be"):
            MappingPipeline(42)  # type: ignore[arg-type]

    def test_invalid_dict_raises_load_error(self) -> None:
        with pytest.raises(SchemaLoadError, match="Invalid schema"):
            MappingPipeline({"messages": [{"name": "X"}]})


class TestRun:
    def test_plans_every_target(self, library) -> None:
        plan = MappingPipeline(library, EngineSettings(backend="gorm")).run()

        assert [m.target for m in plan.messages] == [
            "library.gorm.BookGorm",
            "library.gorm.AuthorGorm",
        ]
        assert plan.converters == [
            "library.v1.Author:AuthorGORM",
            "library.v1.Book:BookGORM",
        ]

    def test_book_plan(self, library) -> None:
        plan = MappingPipeline(library, EngineSettings(backend="gorm")).run()
        book = plan.message("BookGORM")

        assert book.table == "books"
        assert [f.name for f in book.fields] == [
            "id",
            "title",
            "author",
            "reviews",
            "created_at",
            "deleted_at",
        ]
        assert book.fields[0].field.annotations.storage_tags == ["primaryKey"]
        assert book.to_target_function == "BookToBookGORM"
        assert book.from_target_function == "BookFromBookGORM"
        assert book.mapping("author").to_target.body.function == "AuthorToAuthorGORM"
        assert book.mapping("created_at").from_target.body.function == (
            "converters.Int64ToTimestamp"
        )
        assert book.mapping("deleted_at").to_target is None

    def test_gap_is_non_fatal(self, library, caplog) -> None:
        with caplog.at_level(logging.WARNING):
            plan = MappingPipeline(library).run()

        book = plan.message("library.gorm.BookGorm")
        assert book.mapping("reviews") is None
        assert [g.field_name for g in book.gaps] == ["reviews"]
        assert "Skipping field library.gorm.BookGorm.reviews" in caplog.text

    def test_serializer_hints_attached_to_message(self, library) -> None:
        plan = MappingPipeline(library, EngineSettings(backend="gorm")).run()
        book = plan.message("library.gorm.BookGorm")
        codes = [d.code for d in book.diagnostics]
        assert codes[0] == DiagnosticCode.SERIALIZER_HINT
        assert DiagnosticCode.CONVERSION_GAP in codes
        assert not plan.message("library.gorm.AuthorGorm").diagnostics

    def test_standalone_table_is_planned_verbatim(self, library) -> None:
        library["messages"].append(
            {
                "name": "AuditGorm",
                "full_name": "library.gorm.AuditGorm",
                "table": "audits",
                "fields": [
                    {"name": "when", "number": 3, "scalar": "int64"},
                    {"name": "who", "number": 1, "scalar": "string"},
                    {
                        "name": "changes",
                        "number": 2,
                        "scalar": "string",
                        "cardinality": "repeated",
                    },
                ],
            }
        )
        plan = MappingPipeline(library, EngineSettings(backend="gorm")).run()

        audit = plan.message("library.gorm.AuditGorm")
        assert audit is not None
        assert audit.target_struct == "AuditGORM"
        assert audit.table == "audits"
        assert audit.source is None
        assert [f.name for f in audit.fields] == ["when", "who", "changes"]
        assert [f.origin_number for f in audit.fields] == [3, 1, 2]
        assert audit.mappings == []
        assert audit.to_target_function is None
        [hint] = audit.diagnostics
        assert hint.code == DiagnosticCode.SERIALIZER_HINT
        assert hint.field_name == "changes"
        assert len(plan.converters) == 2

    def test_plain_standalone_message_not_planned(self, library) -> None:
        plan = MappingPipeline(library).run()
        assert plan.message("library.gorm.Audit") is None

    def test_validation_errors_abort(self, library) -> None:
        library["messages"][3]["fields"].append(
            {"name": "isbn", "number": 7, "scalar": "string", "annotations": {"skip": True}}
        )
        library["messages"][4]["source"] = "library.v1.Publisher"

        with pytest.raises(SchemaValidationError) as exc_info:
            MappingPipeline(library).run()
        assert len(exc_info.value.errors) == 2


class TestDeterminism:
    def test_repeated_runs_are_identical(self, library) -> None:
        writer = PlanWriter()
        first = writer.dumps(MappingPipeline(library).run())
        second = writer.dumps(MappingPipeline(copy.deepcopy(library)).run())
        assert first == second

    def test_message_order_does_not_change_plans(self, library) -> None:
        reordered = copy.deepcopy(library)
        reordered["messages"].reverse()

        plan = MappingPipeline(library).run()
        other = MappingPipeline(reordered).run()

        for name in ("library.gorm.BookGorm", "library.gorm.AuthorGorm"):
            assert plan.message(name) == other.message(name)

    def test_round_trip_on_assignable_fields(self, library) -> None:
        book = MappingPipeline(library).run().message("library.gorm.BookGorm")
        record = {"id": 7, "title": "Dune"}
        evaluator = PlanEvaluator()
        stored = evaluator.convert(book.mappings, Direction.TO_TARGET, record)
        assert evaluator.convert(book.mappings, Direction.FROM_TARGET, stored) == record
