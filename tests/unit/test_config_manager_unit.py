"""
Tests for the centralized ConfigManager.

This module tests the centralized configuration management system
to ensure it properly handles environment variables, contract loading,
caching and validation.
"""

import sys
import os
base_dir = os.path.abspath(os.path.join(os.path.dirname(__file__), '../../'))
if base_dir not in sys.path:
    sys.path.insert(0, base_dir)

import json
import tempfile
import unittest
from pathlib import Path
from unittest.mock import patch

from drugbank_extractor.config.config_manager import (
    ConfigManager,
    DatabaseConfig,
    ProcessingParameters,
    get_config_manager,
    reset_config_manager,
    DEFAULT_CONTRACT_PATH
)
from drugbank_extractor.config.processing_defaults import ProcessingDefaults
from drugbank_extractor.exceptions import ConfigurationError
from drugbank_extractor.models import ErrorPolicy, FormatErrorPolicy


def clean_environment():
    return {key: value for key, value in os.environ.items() if not key.startswith("DRUGBANK_EXTRACTOR_")}


class TestProcessingParameters(unittest.TestCase):
    """Test ProcessingParameters class."""

    def test_defaults(self):
        with patch.dict(os.environ, clean_environment(), clear=True):
            params = ProcessingParameters.from_environment()

        self.assertEqual(params.workers, ProcessingDefaults.WORKERS)
        self.assertEqual(params.error_policy, "abort")
        self.assertEqual(params.log_level, ProcessingDefaults.LOG_LEVEL)
        self.assertIsNone(params.contract_path)

    def test_environment_variable_override(self):
        env = clean_environment()
        env.update({
            'DRUGBANK_EXTRACTOR_WORKERS': '4',
            'DRUGBANK_EXTRACTOR_ERROR_POLICY': 'COLLECT',
            'DRUGBANK_EXTRACTOR_LOG_LEVEL': 'debug',
            'DRUGBANK_EXTRACTOR_OUTPUT_DIR': '/tmp/tables',
        })
        with patch.dict(os.environ, env, clear=True):
            params = ProcessingParameters.from_environment()

        self.assertEqual(params.workers, 4)
        self.assertEqual(params.error_policy, 'collect')
        self.assertEqual(params.log_level, 'DEBUG')
        self.assertEqual(params.output_dir, '/tmp/tables')

    def test_invalid_number_raises_configuration_error(self):
        env = clean_environment()
        env['DRUGBANK_EXTRACTOR_WORKERS'] = 'many'
        with patch.dict(os.environ, env, clear=True):
            with self.assertRaises(ConfigurationError):
                ProcessingParameters.from_environment()


class TestDatabaseConfig(unittest.TestCase):
    """Test DatabaseConfig class."""

    def test_not_configured_by_default(self):
        with patch.dict(os.environ, clean_environment(), clear=True):
            config = DatabaseConfig.from_environment()

        self.assertFalse(config.is_configured)
        with self.assertRaises(ConfigurationError):
            config.build_connection_string()

    def test_direct_connection_string(self):
        env = clean_environment()
        env['DRUGBANK_EXTRACTOR_CONNECTION_STRING'] = "DRIVER={Test Driver};SERVER=testserver;DATABASE=testdb;"
        with patch.dict(os.environ, env, clear=True):
            config = DatabaseConfig.from_environment()

        self.assertTrue(config.is_configured)
        self.assertEqual(config.build_connection_string(), "DRIVER={Test Driver};SERVER=testserver;DATABASE=testdb;")

    def test_trusted_connection_built_from_components(self):
        config = DatabaseConfig(server="localhost\\SQLEXPRESS", database="DrugBank")

        connection_string = config.build_connection_string()

        self.assertIn("DRIVER={ODBC Driver 17 for SQL Server}", connection_string)
        self.assertIn("SERVER=localhost\\SQLEXPRESS", connection_string)
        self.assertIn("DATABASE=DrugBank", connection_string)
        self.assertIn("Trusted_Connection=yes", connection_string)

    def test_sql_authentication(self):
        config = DatabaseConfig(server="db", database="DrugBank", username="loader", password="secret")

        connection_string = config.build_connection_string()

        self.assertIn("UID=loader;PWD=secret;", connection_string)
        self.assertNotIn("Trusted_Connection", connection_string)


class TestConfigManager(unittest.TestCase):
    """Test ConfigManager contract loading and validation."""

    def setUp(self):
        self.env_patch = patch.dict(os.environ, clean_environment(), clear=True)
        self.env_patch.start()
        reset_config_manager()
        self.temp_dir = tempfile.TemporaryDirectory()
        self.addCleanup(self.temp_dir.cleanup)

    def tearDown(self):
        reset_config_manager()
        self.env_patch.stop()

    def write_file(self, name, content):
        path = Path(self.temp_dir.name) / name
        path.write_text(content, encoding="utf-8")
        return path

    def test_default_contract_loads_full_catalog(self):
        contract = ConfigManager().load_extraction_contract()

        names = contract.table_names
        self.assertEqual(names[0], "drugs")
        for expected in ("drug_groups", "drug_synonyms", "drug_articles", "drug_external_links",
                         "drug_atc_codes", "drug_reactions", "drug_reactions_enzymes"):
            self.assertIn(expected, names)
        articles = next(d for d in contract.sub_tables if d.table_name == "drug_articles")
        self.assertEqual(articles.collection_path, "general-references/articles")
        self.assertEqual(contract.config.key_field, "drugbank-id")

    def test_json_contract(self):
        path = self.write_file("contract.json", json.dumps({
            "extraction": {"key_field": "drugbank-id", "format_error_policy": "null", "atc_max_levels": 3},
            "sub_tables": [{"table": "drug_groups", "collection": "groups"}],
            "reactions": {"enabled": False},
        }))

        contract = ConfigManager().load_extraction_contract(path)

        self.assertEqual(contract.table_names, ["drugs", "drug_groups", "drug_atc_codes"])
        self.assertIs(contract.config.format_error_policy, FormatErrorPolicy.NULL)
        self.assertEqual(contract.config.atc_max_levels, 3)

    def test_yaml_contract(self):
        path = self.write_file("contract.yaml", (
            "drugs_table: drug\n"
            "extraction:\n"
            "  scalar_fields:\n"
            "    - {field: name, tag: name}\n"
            "sub_tables:\n"
            "  - table: drug_articles\n"
            "    collection: general-references\n"
            "    sub_collection: articles\n"
            "  - table: drug_enzymes\n"
            "    collection: enzymes\n"
            "    key_enabled: false\n"
            "atc_codes:\n"
            "  enabled: false\n"
        ))

        contract = ConfigManager().load_extraction_contract(path)

        self.assertEqual(contract.drugs_table, "drug")
        self.assertEqual(contract.config.scalar_fields, (("name", "name"),))
        self.assertEqual(contract.sub_tables[0].sub_collection_tag, "articles")
        self.assertFalse(contract.sub_tables[1].key_enabled)
        self.assertIsNone(contract.atc_table)

    def test_identifier_slots_without_field_names(self):
        path = self.write_file("contract.json", json.dumps({"extraction": {"identifier_slots": 2}}))

        config = ConfigManager().load_extraction_contract(path).config

        self.assertEqual(config.identifier_fields, ("key_1", "key_2"))

    def test_contract_path_from_environment(self):
        path = self.write_file("env_contract.json", json.dumps({"drugs_table": "env_drugs"}))
        os.environ['DRUGBANK_EXTRACTOR_CONTRACT_PATH'] = str(path)

        contract = ConfigManager().load_extraction_contract()

        self.assertEqual(contract.drugs_table, "env_drugs")

    def test_contract_is_cached(self):
        manager = ConfigManager()

        self.assertIs(manager.load_extraction_contract(), manager.load_extraction_contract())
        first = manager.load_extraction_contract()
        manager.clear_cache()
        self.assertIsNot(first, manager.load_extraction_contract())

    def test_missing_file(self):
        with self.assertRaises(ConfigurationError):
            ConfigManager().load_extraction_contract(Path(self.temp_dir.name) / "missing.json")

    def test_unsupported_format(self):
        path = self.write_file("contract.txt", "{}")

        with self.assertRaises(ConfigurationError):
            ConfigManager().load_extraction_contract(path)

    def test_malformed_json(self):
        path = self.write_file("contract.json", "{not json")

        with self.assertRaises(ConfigurationError):
            ConfigManager().load_extraction_contract(path)

    def test_missing_sub_table_key(self):
        with self.assertRaises(ConfigurationError) as context:
            ConfigManager().parse_extraction_contract({"sub_tables": [{"table": "drug_groups"}]})

        self.assertIn("collection", str(context.exception))

    def test_invalid_contract_values(self):
        with self.assertRaises(ConfigurationError):
            ConfigManager().parse_extraction_contract({"extraction": {"format_error_policy": "ignore"}})
        with self.assertRaises(ConfigurationError):
            ConfigManager().parse_extraction_contract([])

    def test_duplicate_table_names(self):
        with self.assertRaises(ConfigurationError):
            ConfigManager().parse_extraction_contract({
                "sub_tables": [{"table": "drug_groups", "collection": "groups"},
                               {"table": "drug_groups", "collection": "categories"}]})

    def test_mixed_key_sources_log_a_warning(self):
        with self.assertLogs("drugbank_extractor.config.config_manager", level="WARNING") as logs:
            ConfigManager().parse_extraction_contract({
                "sub_tables": [{"table": "drug_groups", "collection": "groups", "key_tag": "name"}]})

        self.assertTrue(any("drug_groups" in line for line in logs.output))

    def test_error_policy(self):
        manager = ConfigManager()
        self.assertIs(manager.get_error_policy(), ErrorPolicy.ABORT)

        manager.processing_params.error_policy = "collect"
        self.assertIs(manager.get_error_policy(), ErrorPolicy.COLLECT)

        manager.processing_params.error_policy = "ignore"
        with self.assertRaises(ConfigurationError):
            manager.get_error_policy()

    def test_validate_configuration(self):
        manager = ConfigManager()
        self.assertTrue(manager.validate_configuration())

        manager.processing_params.workers = 0
        with self.assertRaises(ConfigurationError) as context:
            manager.validate_configuration()
        self.assertIn("Workers", str(context.exception))

    def test_configuration_summary(self):
        summary = ConfigManager().get_configuration_summary()

        self.assertEqual(summary['processing']['workers'], ProcessingDefaults.WORKERS)
        self.assertEqual(summary['paths']['contract_path'], str(DEFAULT_CONTRACT_PATH))
        self.assertFalse(summary['database']['configured'])

    def test_reload_configuration_reads_environment(self):
        manager = ConfigManager()
        os.environ['DRUGBANK_EXTRACTOR_WORKERS'] = '8'

        manager.reload_configuration()

        self.assertEqual(manager.processing_params.workers, 8)

    def test_global_instance(self):
        first = get_config_manager()
        self.assertIs(first, get_config_manager())

        reset_config_manager()
        self.assertIsNot(first, get_config_manager())


class TestProcessingDefaults(unittest.TestCase):

    def test_to_dict_exports_upper_case_constants(self):
        defaults = ProcessingDefaults.to_dict()

        self.assertEqual(defaults['WORKERS'], ProcessingDefaults.WORKERS)
        self.assertEqual(defaults['KEY_FIELD'], "drugbank-id")
        self.assertNotIn('to_dict', defaults)


if __name__ == '__main__':
    unittest.main()
