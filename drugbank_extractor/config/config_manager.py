"""
Centralized configuration management for the drug table extraction system.

This module provides the ConfigManager class that serves as the single source of truth
for configuration: processing parameters from environment variables and the
extraction contract (which tables to build, and how) from JSON or YAML files.
"""

import os
import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Any, Optional, Union

import yaml

from .processing_defaults import ProcessingDefaults
from ..exceptions import ConfigurationError
from ..interfaces import ConfigurationManagerInterface
from ..models import (ErrorPolicy, ExtractionConfig, ExtractionContract, FormatErrorPolicy,
                      SubTableDefinition)


ENV_PREFIX = "DRUGBANK_EXTRACTOR_"
DEFAULT_CONTRACT_PATH = Path(__file__).parent / "extraction_contract.json"

_LOG_LEVELS = ("CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG")


def _env(name: str, default: Any) -> Any:
    return os.environ.get(f"{ENV_PREFIX}{name}", default)


@dataclass
class ProcessingParameters:
    """Processing parameters with environment variable support."""
    workers: int = ProcessingDefaults.WORKERS
    error_policy: str = ProcessingDefaults.ERROR_POLICY
    progress_interval: int = ProcessingDefaults.PROGRESS_INTERVAL
    log_level: str = ProcessingDefaults.LOG_LEVEL
    output_dir: str = ProcessingDefaults.OUTPUT_DIR
    contract_path: Optional[str] = None

    @classmethod
    def from_environment(cls) -> 'ProcessingParameters':
        """Create processing parameters from environment variables."""
        try:
            return cls(
                workers=int(_env('WORKERS', cls.workers)),
                error_policy=_env('ERROR_POLICY', cls.error_policy).lower(),
                progress_interval=int(_env('PROGRESS_INTERVAL', cls.progress_interval)),
                log_level=_env('LOG_LEVEL', cls.log_level).upper(),
                output_dir=_env('OUTPUT_DIR', cls.output_dir),
                contract_path=_env('CONTRACT_PATH', None),
            )
        except ValueError as e:
            raise ConfigurationError(f"Invalid numeric {ENV_PREFIX}* environment variable: {e}")


@dataclass
class DatabaseConfig:
    """SQL Server output configuration with environment variable support."""
    connection_string: Optional[str] = None
    driver: str = "ODBC Driver 17 for SQL Server"
    server: Optional[str] = None
    database: Optional[str] = None
    username: Optional[str] = None
    password: Optional[str] = None
    target_schema: str = ProcessingDefaults.TARGET_SCHEMA
    connection_timeout: int = ProcessingDefaults.CONNECTION_TIMEOUT

    @classmethod
    def from_environment(cls) -> 'DatabaseConfig':
        """Create database configuration from environment variables."""
        try:
            return cls(
                connection_string=_env('CONNECTION_STRING', None),
                driver=_env('DB_DRIVER', cls.driver),
                server=_env('DB_SERVER', None),
                database=_env('DB_DATABASE', None),
                username=_env('DB_USERNAME', None),
                password=_env('DB_PASSWORD', None),
                target_schema=_env('DB_SCHEMA', cls.target_schema),
                connection_timeout=int(_env('DB_CONNECTION_TIMEOUT', cls.connection_timeout)),
            )
        except ValueError as e:
            raise ConfigurationError(f"Invalid numeric {ENV_PREFIX}DB_* environment variable: {e}")

    @property
    def is_configured(self) -> bool:
        return bool(self.connection_string or (self.server and self.database))

    def build_connection_string(self) -> str:
        """
        Return the ODBC connection string for the output database.

        An explicit connection string wins; otherwise one is built from server and
        database, using Windows authentication when no username is set.

        Raises:
            ConfigurationError: If neither a connection string nor server and database are set
        """
        if self.connection_string:
            return self.connection_string
        if not (self.server and self.database):
            raise ConfigurationError(
                f"Database output needs {ENV_PREFIX}CONNECTION_STRING or "
                f"{ENV_PREFIX}DB_SERVER and {ENV_PREFIX}DB_DATABASE")

        connection_string = (
            f"DRIVER={{{self.driver}}};"
            f"SERVER={self.server};"
            f"DATABASE={self.database};"
            f"Connection Timeout={self.connection_timeout};"
            f"TrustServerCertificate=yes;"
        )
        if self.username:
            connection_string += f"UID={self.username};PWD={self.password or ''};"
        else:
            connection_string += "Trusted_Connection=yes;"
        return connection_string


class ConfigManager(ConfigurationManagerInterface):
    """
    Centralized configuration manager serving as single source of truth.

    This class consolidates:
    - Processing parameters (workers, error policy, logging, output directory)
    - SQL Server output settings
    - Extraction contract loading, parsing and validation
    - Environment variable handling (DRUGBANK_EXTRACTOR_*)
    """

    def __init__(self):
        """Initialize the configuration manager from the environment."""
        self.logger = logging.getLogger(__name__)
        self.processing_params = ProcessingParameters.from_environment()
        self.database_config = DatabaseConfig.from_environment()

        # Cache for loaded contracts
        self._contract_cache: Dict[str, ExtractionContract] = {}

        self.logger.debug(f"ConfigManager initialized: {self.processing_params}")

    def get_error_policy(self) -> ErrorPolicy:
        """Return the configured aggregator failure policy."""
        try:
            return ErrorPolicy(self.processing_params.error_policy)
        except ValueError:
            raise ConfigurationError(
                f"Invalid error policy '{self.processing_params.error_policy}'; "
                f"expected one of {[p.value for p in ErrorPolicy]}")

    def load_extraction_contract(self, contract_path: Optional[Union[str, Path]] = None) -> ExtractionContract:
        """
        Load extraction contract with caching.

        Args:
            contract_path: Optional path to a JSON or YAML contract. If None, uses
                DRUGBANK_EXTRACTOR_CONTRACT_PATH or the packaged default contract.

        Returns:
            Loaded and validated extraction contract

        Raises:
            ConfigurationError: If the file is missing, unreadable or invalid
        """
        if contract_path is None:
            contract_path = self.processing_params.contract_path or DEFAULT_CONTRACT_PATH
        full_path = Path(contract_path)
        cache_key = str(full_path)

        # Return cached contract if available
        if cache_key in self._contract_cache:
            self.logger.debug(f"Returning cached extraction contract for {cache_key}")
            return self._contract_cache[cache_key]

        if not full_path.exists():
            raise ConfigurationError(f"Extraction contract file not found: {full_path}")

        try:
            with open(full_path, 'r', encoding='utf-8') as file:
                if full_path.suffix.lower() in ['.yaml', '.yml']:
                    contract_data = yaml.safe_load(file)
                elif full_path.suffix.lower() == '.json':
                    contract_data = json.load(file)
                else:
                    raise ConfigurationError(f"Unsupported file format: {full_path.suffix}")
        except (json.JSONDecodeError, yaml.YAMLError) as e:
            raise ConfigurationError(f"Failed to parse extraction contract file {full_path}: {e}")
        except OSError as e:
            raise ConfigurationError(f"Failed to read extraction contract file {full_path}: {e}")

        contract = self.parse_extraction_contract(contract_data, str(full_path))

        # Cache the result
        self._contract_cache[cache_key] = contract

        self.logger.info(f"Loaded extraction contract from {full_path} ({len(contract.table_names)} tables)")
        return contract

    def parse_extraction_contract(self, contract_data: Any, source: str = "<memory>") -> ExtractionContract:
        """
        Build an ExtractionContract from its JSON/YAML dictionary form.

        Args:
            contract_data: Decoded contract document
            source: Label used in error messages

        Returns:
            Validated extraction contract

        Raises:
            ConfigurationError: If the document is malformed
        """
        if not isinstance(contract_data, dict):
            raise ConfigurationError(f"Extraction contract {source} must be a mapping")

        try:
            config = self._parse_extraction_config(contract_data.get('extraction') or {})
            sub_tables = tuple(
                SubTableDefinition(
                    table_name=entry['table'],
                    collection_tag=entry['collection'],
                    sub_collection_tag=entry.get('sub_collection'),
                    key_enabled=entry.get('key_enabled', True),
                    key_tag=entry.get('key_tag'),
                )
                for entry in contract_data.get('sub_tables') or []
            )
            atc = contract_data.get('atc_codes') or {}
            reactions = contract_data.get('reactions') or {}

            contract = ExtractionContract(
                config=config,
                sub_tables=sub_tables,
                drug_tag=contract_data.get('drug_tag', 'drug'),
                drugs_table=contract_data.get('drugs_table', 'drugs'),
                atc_table=atc.get('table', 'drug_atc_codes') if atc.get('enabled', True) else None,
                reactions_table=reactions.get('table', 'drug_reactions') if reactions.get('enabled', True) else None,
                enzymes_table=reactions.get('enzymes_table', 'drug_reactions_enzymes'),
            )
        except KeyError as e:
            raise ConfigurationError(f"Extraction contract {source} is missing required key {e}")
        except (TypeError, ValueError) as e:
            raise ConfigurationError(f"Invalid extraction contract {source}: {e}")

        self._warn_on_mixed_key_sources(contract)
        return contract

    def _parse_extraction_config(self, data: Dict[str, Any]) -> ExtractionConfig:
        kwargs = dict(data)
        for name in ('identifier_fields', 'drug_attributes', 'date_attributes', 'drug_types'):
            if name in kwargs:
                kwargs[name] = tuple(kwargs[name])
        if 'scalar_fields' in kwargs:
            kwargs['scalar_fields'] = tuple((entry['field'], entry['tag']) for entry in kwargs['scalar_fields'])
        if 'format_error_policy' in kwargs:
            kwargs['format_error_policy'] = FormatErrorPolicy(kwargs['format_error_policy'])
        if 'identifier_slots' in kwargs and 'identifier_fields' not in kwargs:
            slots = int(kwargs['identifier_slots'])
            kwargs['identifier_fields'] = tuple(f"key_{position}" for position in range(1, slots + 1))
        return ExtractionConfig(**kwargs)

    def _warn_on_mixed_key_sources(self, contract: ExtractionContract) -> None:
        for definition in contract.sub_tables:
            key_tag = definition.resolve_key_tag(contract.config)
            if key_tag is not None and key_tag != contract.config.key_field:
                self.logger.warning(
                    f"Table '{definition.table_name}' is keyed by <{key_tag}> while the contract key is "
                    f"<{contract.config.key_field}>; joins between them are not valid")

    def validate_configuration(self) -> bool:
        """
        Validate all configuration settings.

        Returns:
            True if all configurations are valid

        Raises:
            ConfigurationError: If any configuration is invalid
        """
        errors = []

        if self.processing_params.workers <= 0:
            errors.append("Workers must be greater than 0")

        if self.processing_params.progress_interval < 0:
            errors.append("Progress interval cannot be negative")

        if self.processing_params.error_policy not in [p.value for p in ErrorPolicy]:
            errors.append(f"Unknown error policy: {self.processing_params.error_policy}")

        if self.processing_params.log_level not in _LOG_LEVELS:
            errors.append(f"Unknown log level: {self.processing_params.log_level}")

        contract_path = Path(self.processing_params.contract_path or DEFAULT_CONTRACT_PATH)
        if not contract_path.exists():
            errors.append(f"Extraction contract file does not exist: {contract_path}")

        if errors:
            raise ConfigurationError(f"Configuration validation failed: {'; '.join(errors)}")

        self.logger.info("Configuration validation passed")
        return True

    def get_configuration_summary(self) -> Dict[str, Any]:
        """
        Get a summary of all configuration settings.

        Returns:
            Dictionary containing configuration summary
        """
        return {
            'processing': {
                'workers': self.processing_params.workers,
                'error_policy': self.processing_params.error_policy,
                'progress_interval': self.processing_params.progress_interval,
                'log_level': self.processing_params.log_level,
            },
            'paths': {
                'contract_path': str(self.processing_params.contract_path or DEFAULT_CONTRACT_PATH),
                'output_dir': self.processing_params.output_dir,
            },
            'database': {
                'configured': self.database_config.is_configured,
                'server': self.database_config.server,
                'database': self.database_config.database,
                'target_schema': self.database_config.target_schema,
            }
        }

    def clear_cache(self) -> None:
        """Clear all cached configurations."""
        self._contract_cache.clear()
        self.logger.info("Configuration cache cleared")

    def reload_configuration(self) -> None:
        """Reload configuration from environment variables and clear cache."""
        self.processing_params = ProcessingParameters.from_environment()
        self.database_config = DatabaseConfig.from_environment()
        self.clear_cache()
        self.logger.info("Configuration reloaded from environment variables")


# Global configuration manager instance
_global_config_manager: Optional[ConfigManager] = None


def get_config_manager() -> ConfigManager:
    """
    Get the global configuration manager instance.

    Returns:
        Global ConfigManager instance
    """
    global _global_config_manager

    if _global_config_manager is None:
        _global_config_manager = ConfigManager()

    return _global_config_manager


def reset_config_manager() -> None:
    """Reset the global configuration manager instance."""
    global _global_config_manager
    _global_config_manager = None
