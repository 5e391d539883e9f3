"""Unit tests for the exception hierarchy."""

from __future__ import annotations

from dalmap.exceptions import (
    AnnotationError,
    ConfigurationError,
    DalMapError,
    SchemaLoadError,
    SchemaValidationError,
    StructuralError,
)


class TestFormatting:
    def test_code_and_context(self) -> None:
        err = SchemaLoadError("File not found", path="a.yaml")
        assert str(err) == "[SCHEMA_LOAD_ERROR] File not found (Context: path=a.yaml)"
        assert isinstance(err, DalMapError)

    def test_plain_message(self) -> None:
        assert str(DalMapError("boom")) == "boom"

    def test_configuration_error_without_setting(self) -> None:
        err = ConfigurationError("bad")
        assert err.context == {}
        assert str(err) == "[CONFIGURATION_ERROR] bad"


class TestAggregate:
    def test_collects_messages_and_hints(self) -> None:
        structural = StructuralError("source 'api.X' not found", "gorm.Y", "api.X")
        annotation = AnnotationError("skip 'z' unknown", "gorm.W", "z", "api.V")

        err = SchemaValidationError([structural, annotation])

        assert err.errors == [structural, annotation]
        assert "2 error(s)" in str(err)
        assert "source 'api.X' not found" in str(err)
        assert "skip 'z' unknown" in str(err)
        hint = err.get_recovery_hint()
        assert "api.X" in hint
        assert "gorm.W.z" in hint

    def test_annotation_context(self) -> None:
        err = AnnotationError("m", target="gorm.T", field_name="f")
        assert err.context == {"target": "gorm.T", "field": "f"}
