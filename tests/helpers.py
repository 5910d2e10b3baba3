"""Test helpers for building small DrugBank documents.

Drugs are assembled from raw XML fragments so each test shows exactly the
structure it exercises; the wrapping <drugbank> root carries the real DrugBank
default namespace, so every test also goes through namespace-free tag matching.
"""
from typing import List, Optional, Sequence

from drugbank_extractor.interfaces import NodeInterface
from drugbank_extractor.parsing.xml_parser import DrugBankXMLParser

DRUGBANK_NAMESPACE = "http://www.drugbank.ca"


def drug_xml(*elements: str, ids: Sequence[str] = ("DB00001",), drug_type: Optional[str] = "biotech",
             created: Optional[str] = "2005-06-13", updated: Optional[str] = "2020-06-12") -> str:
    """Return one <drug> element; the first identifier is marked primary."""
    attributes = []
    if drug_type is not None:
        attributes.append(f'type="{drug_type}"')
    if created is not None:
        attributes.append(f'created="{created}"')
    if updated is not None:
        attributes.append(f'updated="{updated}"')

    identifiers = "".join(
        f'<drugbank-id primary="true">{value}</drugbank-id>' if position == 0 else f"<drugbank-id>{value}</drugbank-id>"
        for position, value in enumerate(ids)
    )
    return f"<drug {' '.join(attributes)}>{identifiers}{''.join(elements)}</drug>"


def drugbank_xml(*drugs: str, namespace: Optional[str] = DRUGBANK_NAMESPACE) -> str:
    """Wrap drug elements in a <drugbank> root document."""
    xmlns = f' xmlns="{namespace}"' if namespace else ""
    return f'<?xml version="1.0" encoding="UTF-8"?>\n<drugbank{xmlns} version="5.1">{"".join(drugs)}</drugbank>'


def load_drugs(*drugs: str, strip_text: bool = True) -> List[NodeInterface]:
    """Parse drug elements and return their top-level nodes in document order."""
    parser = DrugBankXMLParser(strip_text=strip_text)
    return parser.iter_drugs(parser.parse_string(drugbank_xml(*drugs)))


def load_drug(*elements: str, **drug_kwargs) -> NodeInterface:
    """Parse a single drug built from elements; keyword arguments go to drug_xml."""
    return load_drugs(drug_xml(*elements, **drug_kwargs))[0]


ATC_B01AE02 = (
    '<atc-codes><atc-code code="B01AE02">'
    '<level code="B01AE">Direct thrombin inhibitors</level>'
    '<level code="B01A">ANTITHROMBOTIC AGENTS</level>'
    '<level code="B01">ANTITHROMBOTIC AGENTS</level>'
    '<level code="B">BLOOD AND BLOOD FORMING ORGANS</level>'
    '</atc-code></atc-codes>'
)

REACTION_WITHOUT_ENZYMES = (
    '<reactions><reaction>'
    '<sequence>1</sequence>'
    '<left-element><drugbank-id>DB00001</drugbank-id><name>Lepirudin</name></left-element>'
    '<right-element><drugbank-id>DBMET00001</drugbank-id><name>Metabolite</name></right-element>'
    '</reaction></reactions>'
)


def sample_corpus() -> str:
    """A two-drug document covering groups, identifiers, ATC codes, reactions and synonyms."""
    lepirudin = drug_xml(
        "<name>Lepirudin</name>",
        "<cas-number>138068-37-8</cas-number>",
        "<groups><group>approved</group></groups>",
        "<synonyms><synonym language=\"english\" coder=\"\">Hirudin variant-1</synonym></synonyms>",
        "<general-references><articles>"
        "<article><pubmed-id>16244762</pubmed-id><citation>Smith et al.</citation></article>"
        "</articles><links/></general-references>",
        ATC_B01AE02,
        REACTION_WITHOUT_ENZYMES,
        ids=("DB00001", "BTD00024", "BIOD00024"),
    )
    cetuximab = drug_xml(
        "<name>Cetuximab</name>",
        "<groups><group>approved</group><group>investigational</group></groups>",
        "<reactions><reaction><sequence>1</sequence>"
        "<left-element><drugbank-id>DB00002</drugbank-id><name>Cetuximab</name></left-element>"
        "<right-element><drugbank-id>DBMET00002</drugbank-id><name>Fragment</name></right-element>"
        "<enzymes><enzyme><drugbank-id>BE0000048</drugbank-id><name>Prothrombin</name>"
        "<uniprot-id>P00734</uniprot-id></enzyme></enzymes>"
        "</reaction></reactions>",
        ids=("DB00002",),
        created="2005-06-13",
        updated="2019-09-27",
    )
    return drugbank_xml(lepirudin, cetuximab)
