"""Unit tests for schema loading and plan writing."""

from __future__ import annotations

import json

import pytest
from ruamel.yaml import YAML

from dalmap.exceptions import SchemaLoadError
from dalmap.io.file_loader import FileLoader
from dalmap.io.loader_factory import LoaderFactory, batch_from_dict
from dalmap.io.plan_writer import PlanWriter
from dalmap.pipeline import MappingPipeline

SCHEMA_YAML = """\
messages:
  - name: Tag
    full_name: api.Tag
    fields:
      - {name: label, number: 1, scalar: string}
  - name: TagGorm
    full_name: gorm.TagGorm
    source: api.Tag
"""


class TestFileLoader:
    def test_yaml(self, tmp_path) -> None:
        path = tmp_path / "schema.yaml"
        path.write_text(SCHEMA_YAML, encoding="utf-8")
        data = FileLoader.load(path)
        assert data["messages"][0]["full_name"] == "api.Tag"

    def test_json(self, tmp_path) -> None:
        path = tmp_path / "schema.json"
        path.write_text(json.dumps({"messages": []}), encoding="utf-8")
        assert FileLoader.load(path) == {"messages": []}

    def test_missing_file(self, tmp_path) -> None:
        with pytest.raises(SchemaLoadError, match="File not found") as exc_info:
            FileLoader.load(tmp_path / "nope.yaml")
        assert exc_info.value.context["path"].endswith("nope.yaml")

    def test_bad_extension(self, tmp_path) -> None:
        path = tmp_path / "schema.txt"
        path.write_text("x", encoding="utf-8")
        with pytest.raises(SchemaLoadError, match="Unsupported extension"):
            FileLoader.load(path)

    def test_syntax_error(self, tmp_path) -> None:
        path = tmp_path / "schema.json"
        path.write_text("{not json", encoding="utf-8")
        with pytest.raises(SchemaLoadError, match="Cannot parse schema.json"):
            FileLoader.load(path)

    def test_top_level_must_be_mapping(self, tmp_path) -> None:
        path = tmp_path / "schema.yml"
        path.write_text("- a\n- b\n", encoding="utf-8")
        with pytest.raises(SchemaLoadError, match="must be a mapping .* got a list"):
            FileLoader.load(path)

    def test_empty_document(self, tmp_path) -> None:
        path = tmp_path / "schema.yaml"
        path.write_text("", encoding="utf-8")
        with pytest.raises(SchemaLoadError, match="got empty"):
            FileLoader.load(path)

    def test_messages_entry_required(self, tmp_path) -> None:
        path = tmp_path / "schema.yaml"
        path.write_text("types: []\nversion: 1\n", encoding="utf-8")
        with pytest.raises(SchemaLoadError, match=r"no 'messages' entry \(keys: types, version\)"):
            FileLoader.load(path)

    def test_messages_must_be_list(self, tmp_path) -> None:
        path = tmp_path / "schema.json"
        path.write_text(json.dumps({"messages": {"name": "A"}}), encoding="utf-8")
        with pytest.raises(SchemaLoadError, match="'messages' must be a list, got a dict"):
            FileLoader.load(path)


class TestLoaderFactory:
    def test_resolve(self) -> None:
        assert LoaderFactory.resolve("x/schema.YML") is FileLoader

    def test_resolve_unknown(self) -> None:
        with pytest.raises(SchemaLoadError, match="No loader found"):
            LoaderFactory.resolve("schema.proto")

    def test_load_batch(self, tmp_path) -> None:
        path = tmp_path / "schema.yaml"
        path.write_text(SCHEMA_YAML, encoding="utf-8")
        batch = LoaderFactory.load_batch(path)
        assert [m.full_name for m in batch.messages] == ["api.Tag", "gorm.TagGorm"]

    def test_batch_from_dict_reports_location(self) -> None:
        data = {"messages": [{"name": "A", "full_name": "api.A", "fields": [{"name": "x", "number": 0, "scalar": "string"}]}]}
        with pytest.raises(SchemaLoadError) as exc_info:
            batch_from_dict(data, origin="inline")
        assert "messages.0.fields.0.number" in str(exc_info.value)
        assert exc_info.value.context["path"] == "inline"

    def test_batch_from_dict_checks_document_shape(self) -> None:
        with pytest.raises(SchemaLoadError, match="no 'messages' entry"):
            batch_from_dict({"message": []})


class TestPlanWriter:
    def test_save_creates_parents_and_is_loadable(self, tmp_path, caplog) -> None:
        plan = MappingPipeline(YAML(typ="safe").load(SCHEMA_YAML)).run()
        out = tmp_path / "nested" / "plan.yaml"

        with caplog.at_level("INFO"):
            written = PlanWriter().save(plan, out)

        assert written == out
        data = YAML(typ="safe").load(out.read_text(encoding="utf-8"))
        [message] = data["messages"]
        assert message["target"] == "gorm.TagGorm"
        label = message["mappings"][0]
        assert label["to_target"]["conversion_type"] == "assignment"
        assert label["to_target"]["body"]["kind"] == "inline"
        assert "Plan written to" in caplog.text

    def test_none_values_are_omitted(self) -> None:
        plan = MappingPipeline(YAML(typ="safe").load(SCHEMA_YAML)).run()
        data = PlanWriter.to_data(plan)
        assert "table" not in data["messages"][0]
