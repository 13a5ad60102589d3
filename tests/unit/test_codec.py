"""Unit tests for the field codec."""

from __future__ import annotations

import pytest

from shql.domain.entities import Column, Schema
from shql.domain.errors import ValidationError
from shql.domain.services import FieldCodec, normalize_date
from shql.domain.value_objects import ColumnType

PK = Column("id", ColumnType.INT, primary_key=True)
QTY = Column("qty", ColumnType.INT)
NAME = Column("name", ColumnType.STRING)
BORN = Column("born", ColumnType.DATE)
PHOTO = Column("photo", ColumnType.BINARY)

SCHEMA = Schema(table="people", columns=(PK, NAME, BORN, QTY, PHOTO))


@pytest.fixture
def codec() -> FieldCodec:
    return FieldCodec()


@pytest.mark.unit
class TestNormalizeDate:
    """Tests for date normalization."""

    @pytest.mark.parametrize(
        ("raw", "stored"),
        [
            ("2024-12-25", "2024-12-25"),
            ("2024-02", "2024-02-01"),
            ("2024", "2024-01-01"),
            ("0", "1970-01-01"),
            ("86400", "1970-01-02"),
        ],
    )
    def test_accepted_forms(self, raw: str, stored: str) -> None:
        assert normalize_date(raw) == stored

    @pytest.mark.parametrize("raw", ["2024-02-30", "2024-13", "24-01-01", "yesterday", "-5"])
    def test_rejected(self, raw: str) -> None:
        with pytest.raises(ValidationError):
            normalize_date(raw)


@pytest.mark.unit
class TestNormalize:
    """Tests for single-value validation."""

    def test_primary_key(self, codec: FieldCodec) -> None:
        assert codec.normalize(PK, "42") == "42"
        for bad in ("0", "-1", "01", "abc"):
            with pytest.raises(ValidationError, match="positive integer"):
                codec.normalize(PK, bad)

    def test_int(self, codec: FieldCodec) -> None:
        assert codec.normalize(QTY, "-7") == "-7"
        with pytest.raises(ValidationError, match="must be integer"):
            codec.normalize(QTY, "7.5")

    def test_empty_rejected(self, codec: FieldCodec) -> None:
        with pytest.raises(ValidationError, match="cannot be empty"):
            codec.normalize(NAME, "")

    def test_string_delimiter_rejected(self, codec: FieldCodec) -> None:
        with pytest.raises(ValidationError, match="not allowed in string") as exc_info:
            codec.normalize(NAME, "a:b")
        assert exc_info.value.context["column"] == "name"

    def test_string_newline_rejected(self, codec: FieldCodec) -> None:
        with pytest.raises(ValidationError, match="Line breaks"):
            codec.normalize(NAME, "two\nlines")

    def test_date_normalized(self, codec: FieldCodec) -> None:
        assert codec.normalize(BORN, "2024") == "2024-01-01"

    def test_binary_archive_name(self, codec: FieldCodec) -> None:
        assert codec.normalize(PHOTO, "1718000000123.tar.gz") == "1718000000123.tar.gz"
        with pytest.raises(ValidationError):
            codec.normalize(PHOTO, "../secret")


@pytest.mark.unit
class TestEncodeDecode:
    """Tests for whole-record lines."""

    def test_encode(self, codec: FieldCodec) -> None:
        assert codec.encode(["1", "pen"]) == "1:pen"

    def test_encode_rejects_delimiter(self, codec: FieldCodec) -> None:
        with pytest.raises(ValidationError):
            codec.encode(["1", "a:b"])

    def test_decode(self, codec: FieldCodec) -> None:
        record = codec.decode("1:Ada:1815-12-10:3:1.tar.gz", SCHEMA)
        assert record.values == ("1", "Ada", "1815-12-10", "3", "1.tar.gz")
        assert record[1] == "Ada"

    def test_decode_field_count(self, codec: FieldCodec) -> None:
        with pytest.raises(ValidationError, match="fields"):
            codec.decode("1:Ada", SCHEMA)

    def test_decode_rejects_unnormalized_date(self, codec: FieldCodec) -> None:
        with pytest.raises(ValidationError, match="not normalized"):
            codec.decode("1:Ada:1815:3:1.tar.gz", SCHEMA)

    def test_decode_allows_empty_string(self, codec: FieldCodec) -> None:
        """Emptiness is a caller rule; the codec only guards the delimiter."""
        record = codec.decode("1::1815-12-10:3:1.tar.gz", SCHEMA)
        assert record[1] == ""

    @pytest.mark.parametrize(
        "line",
        [
            "1:pen:2024-01-01:0:1.tar.gz",
            "99:with spaces:1999-12-31:-12:1718000000123456789.tar.gz",
        ],
    )
    def test_round_trip(self, codec: FieldCodec, line: str) -> None:
        assert codec.encode_record(codec.decode(line, SCHEMA)) == line
