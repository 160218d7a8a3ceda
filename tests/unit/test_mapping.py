"""
Unit tests for column mapping helpers
"""

from schemas.datasource import SchemaDefinition
from wizard.mapping import (
    STANDARD_REQUIRED_FIELDS,
    derive_column_mapping,
    mappable_fields,
    merge_mappings,
    missing_required_fields,
    required_fields_for,
)


class TestDeriveColumnMapping:
    """Test default mappings resolved against detected headers"""

    def test_exact_matches(self):
        mapping = derive_column_mapping(
            {"date": "Txn Date", "description": "Desc", "amount": "Amt", "reference": "Ref"},
            ["Txn Date", "Desc", "Amt", "Ref"]
        )
        assert mapping == {"date": 0, "description": 1, "amount": 2, "reference": 3}

    def test_absent_column_omitted(self):
        mapping = derive_column_mapping(
            {"date": "Posted", "amount": "Amount", "currency": "CCY"},
            ["Amount", "Posted On", "Memo"]
        )
        assert mapping == {"amount": 0}

    def test_match_is_case_and_space_sensitive(self):
        mapping = derive_column_mapping({"date": "date", "amount": "Amount"}, ["Date", "Amount "])
        assert mapping == {}

    def test_first_duplicate_header_wins(self):
        assert derive_column_mapping({"amount": "Amt"}, ["Amt", "Amt"]) == {"amount": 0}

    def test_no_default_mappings(self):
        assert derive_column_mapping(None, ["A", "B"]) == {}


class TestRequiredFields:

    def test_missing_fields_keep_required_order(self):
        missing = missing_required_fields(
            ["date", "description", "amount", "reference"],
            {"amount": 2, "date": 0}
        )
        assert missing == ["description", "reference"]

    def test_index_zero_counts_as_mapped(self):
        assert missing_required_fields(["date"], {"date": 0}) == []

    def test_schema_required_fields_win(self):
        schema = SchemaDefinition(required_fields=["date", "amount"])
        assert required_fields_for(schema) == ["date", "amount"]

    def test_standard_fields_without_schema(self):
        assert required_fields_for(None) == STANDARD_REQUIRED_FIELDS
        assert required_fields_for(SchemaDefinition()) == STANDARD_REQUIRED_FIELDS

    def test_mappable_fields_required_first(self):
        schema = SchemaDefinition(required_fields=["amount", "date"])
        assert mappable_fields(schema) == [
            "amount", "date", "description", "reference", "postDate", "currency"
        ]


class TestMergeMappings:

    def test_schema_overrides_suggestions(self):
        merged = merge_mappings({"date": 3, "currency": 4}, {"date": 0}, column_count=5)
        assert merged == {"date": 0, "currency": 4}

    def test_out_of_range_suggestion_dropped(self):
        assert merge_mappings({"date": 9, "amount": -1}, {}, column_count=3) == {}
