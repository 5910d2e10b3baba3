"""
Parsing module for the drug extraction system.

This module provides the lxml-backed node access layer and the DrugBank document loader.
"""

from .xml_parser import DrugBankXMLParser, LxmlNode

__all__ = [
    'DrugBankXMLParser',
    'LxmlNode'
]
