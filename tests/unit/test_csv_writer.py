"""
Tests for CsvTableWriter.
"""

import sys
import os
base_dir = os.path.abspath(os.path.join(os.path.dirname(__file__), '../../'))
if base_dir not in sys.path:
    sys.path.insert(0, base_dir)

import csv

from drugbank_extractor.export.csv_writer import CsvTableWriter
from drugbank_extractor.models import PARENT_KEY, Table


def read_csv(path):
    with open(path, newline='', encoding='utf-8') as handle:
        return list(csv.reader(handle))


def test_writes_header_in_column_order_and_none_as_empty(tmp_path):
    table = Table.from_records("drug_products", [
        {"name": "Refludan", PARENT_KEY: "DB00001"},
        {"name": "Erbitux", "route": "Intravenous, comma", PARENT_KEY: "DB00002"},
    ])
    writer = CsvTableWriter(tmp_path / "out")

    count = writer.write_table(table)

    assert count == 2
    assert read_csv(tmp_path / "out" / "drug_products.csv") == [
        ["name", "route", PARENT_KEY],
        ["Refludan", "", "DB00001"],
        ["Erbitux", "Intravenous, comma", "DB00002"],
    ]


def test_empty_table_writes_header_only(tmp_path):
    writer = CsvTableWriter(tmp_path)

    assert writer.write_table(Table.empty("drug_atc_codes", ("atc_code", PARENT_KEY))) == 0
    assert read_csv(writer.table_path("drug_atc_codes")) == [["atc_code", PARENT_KEY]]


def test_write_tables_returns_counts_per_table(tmp_path):
    tables = {
        "drug_groups": Table.from_records("drug_groups", [{"text": "approved", PARENT_KEY: "DB1"}]),
        "drug_synonyms": Table.empty("drug_synonyms"),
    }

    counts = CsvTableWriter(tmp_path).write_tables(tables)

    assert counts == {"drug_groups": 1, "drug_synonyms": 0}
    assert sorted(p.name for p in tmp_path.iterdir()) == ["drug_groups.csv", "drug_synonyms.csv"]


def test_existing_file_is_replaced(tmp_path):
    writer = CsvTableWriter(tmp_path)
    writer.write_table(Table.from_records("t", [{"a": "1"}, {"a": "2"}]))

    writer.write_table(Table.from_records("t", [{"a": "3"}]))

    assert read_csv(tmp_path / "t.csv") == [["a"], ["3"]]
