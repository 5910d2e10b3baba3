"""
Tests for the generic homogeneous sub-table engine.
"""

import sys
import os
base_dir = os.path.abspath(os.path.join(os.path.dirname(__file__), '../../'))
if base_dir not in sys.path:
    sys.path.insert(0, base_dir)

import pytest

from drugbank_extractor.exceptions import StructureError
from drugbank_extractor.extraction.subtable_extractor import SubTableExtractor, flatten_item
from drugbank_extractor.models import PARENT_KEY, ExtractionConfig, SubTableDefinition
from tests.helpers import load_drug


@pytest.fixture
def config():
    return ExtractionConfig()


def make_extractor(config, table_name, collection_tag, **kwargs):
    return SubTableExtractor(config, SubTableDefinition(table_name, collection_tag, **kwargs))


def test_single_group_yields_text_row_with_parent_key(config):
    extractor = make_extractor(config, "drug_groups", "groups")

    records = extractor.extract_records(load_drug("<groups><group>approved</group></groups>"))

    assert records == [{"text": "approved", PARENT_KEY: "DB00001"}]


def test_items_keep_document_order(config):
    extractor = make_extractor(config, "drug_groups", "groups")
    drug = load_drug("<groups><group>approved</group><group>investigational</group>"
                     "<group>withdrawn</group></groups>")

    assert [r["text"] for r in extractor.extract_records(drug)] == ["approved", "investigational", "withdrawn"]


def test_missing_collection_yields_empty_list(config):
    extractor = make_extractor(config, "drug_groups", "groups")

    fragments = extractor.extract(load_drug("<name>No groups</name>"))

    assert fragments == {"drug_groups": []}


def test_missing_sub_collection_yields_empty_list(config):
    extractor = make_extractor(config, "drug_articles", "general-references", sub_collection_tag="articles")

    assert extractor.extract_records(load_drug("<general-references><links/></general-references>")) == []


def test_nested_sub_collection_flattens_item_children(config):
    extractor = make_extractor(config, "drug_articles", "general-references", sub_collection_tag="articles")
    drug = load_drug(
        "<general-references><articles>"
        "<article><ref-id>A1</ref-id><pubmed-id>16244762</pubmed-id><citation>Smith</citation></article>"
        "</articles></general-references>"
    )

    records = extractor.extract_records(drug)

    assert records == [{"ref_id": "A1", "pubmed_id": "16244762", "citation": "Smith", PARENT_KEY: "DB00001"}]


def test_attributes_precede_text_field(config):
    extractor = make_extractor(config, "drug_synonyms", "synonyms")
    drug = load_drug('<synonyms><synonym language="english" coder="">Hirudin</synonym></synonyms>')

    records = extractor.extract_records(drug)

    assert list(records[0]) == ["language", "coder", "text", PARENT_KEY]
    assert records[0]["language"] == "english"
    assert records[0]["coder"] is None
    assert records[0]["text"] == "Hirudin"


def test_empty_item_still_yields_a_row(config):
    extractor = make_extractor(config, "drug_groups", "groups")

    records = extractor.extract_records(load_drug("<groups><group/></groups>"))

    assert records == [{"text": None, PARENT_KEY: "DB00001"}]


def test_heterogeneous_items_keep_their_own_fields(config):
    extractor = make_extractor(config, "drug_products", "products")
    drug = load_drug(
        "<products>"
        "<product><name>Refludan</name><labeller>Bayer</labeller></product>"
        "<product><name>Refludan</name><route>Intravenous</route></product>"
        "</products>"
    )

    first, second = extractor.extract_records(drug)

    assert set(first) == {"name", "labeller", PARENT_KEY}
    assert set(second) == {"name", "route", PARENT_KEY}


def test_repeated_child_tags_get_numeric_suffixes(config):
    extractor = make_extractor(config, "drug_patents", "patents")
    drug = load_drug("<patents><patent><number>1</number><country>US</country>"
                     "<country>CA</country></patent></patents>")

    records = extractor.extract_records(drug)

    assert records[0]["country"] == "US"
    assert records[0]["country_2"] == "CA"


def test_disabled_key_omits_parent_key(config):
    extractor = make_extractor(config, "drug_groups", "groups", key_enabled=False)

    records = extractor.extract_records(load_drug("<groups><group>approved</group></groups>"))

    assert records == [{"text": "approved"}]


def test_key_tag_override_reads_original_parent(config):
    extractor = make_extractor(config, "drug_groups", "groups", key_tag="name")
    drug = load_drug("<name>Lepirudin</name><groups><group>approved</group></groups>")

    assert extractor.extract_records(drug)[0][PARENT_KEY] == "Lepirudin"


def test_absent_key_child_gives_none_parent_key(config):
    extractor = make_extractor(config, "drug_groups", "groups")
    drug = load_drug("<groups><group>approved</group></groups>", ids=())

    records = extractor.extract_records(drug)

    assert PARENT_KEY in records[0]
    assert records[0][PARENT_KEY] is None


def test_nested_item_drugbank_id_does_not_become_parent_key(config):
    extractor = make_extractor(config, "drug_interactions", "drug-interactions")
    drug = load_drug(
        "<drug-interactions><drug-interaction><drugbank-id>DB06605</drugbank-id>"
        "<name>Apixaban</name><description>Risk of bleeding</description>"
        "</drug-interaction></drug-interactions>"
    )

    record = extractor.extract_records(drug)[0]

    assert record["drugbank_id"] == "DB06605"
    assert record[PARENT_KEY] == "DB00001"


def test_text_only_collection_raises_structure_error(config):
    extractor = make_extractor(config, "drug_groups", "groups")

    with pytest.raises(StructureError) as exc_info:
        extractor.extract_records(load_drug("<groups>approved</groups>"))

    assert exc_info.value.node_path.endswith("drug/groups")
    assert exc_info.value.parent_key == "DB00001"
    assert "text instead of items" in str(exc_info.value)


def test_mixed_content_collection_raises_structure_error(config):
    extractor = make_extractor(config, "drug_groups", "groups")

    with pytest.raises(StructureError, match="mixed text and element content"):
        extractor.extract_records(load_drug("<groups>stray<group>approved</group></groups>"))


def test_flatten_item_on_leaf_with_attributes():
    drug = load_drug('<sequences><sequence format="FASTA">MKT</sequence></sequences>')
    item = drug.child("sequences").children()[0]

    assert flatten_item(item) == {"format": "FASTA", "text": "MKT"}


def test_extraction_is_idempotent(config):
    extractor = make_extractor(config, "drug_groups", "groups")
    drug = load_drug("<groups><group>approved</group><group>vet_approved</group></groups>")

    assert extractor.extract_records(drug) == extractor.extract_records(drug)
