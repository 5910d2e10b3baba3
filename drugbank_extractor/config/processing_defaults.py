"""
Centralized configuration defaults for drug table extraction.

This module defines operational configuration constants used throughout the system.
CLI arguments and DRUGBANK_EXTRACTOR_* environment variables can override these
defaults at runtime.

Single Source of Truth: Change these values once; all modules automatically use updated defaults.
"""


class ProcessingDefaults:
    """
    Centralized operational configuration for extraction runs.

    All values are defaults that can be overridden via CLI arguments:
    - drugbank_extractor full_database.xml --workers 4
    - drugbank_extractor full_database.xml --error-policy collect --log-level DEBUG
    """

    # Parallelization (1 = single-threaded, synchronous fold)
    WORKERS = 1

    # Failure handling: "abort" the run or "collect" failures and continue
    ERROR_POLICY = "abort"

    # Progress log line every N parent records
    PROGRESS_INTERVAL = 1000

    # Record keying and positional widths
    KEY_FIELD = "drugbank-id"
    IDENTIFIER_SLOTS = 3
    ATC_MAX_LEVELS = 4

    # Output
    OUTPUT_DIR = "output"

    # SQL Server output (used only when a connection string is configured)
    TARGET_SCHEMA = "dbo"
    INSERT_BATCH_SIZE = 1000
    CONNECTION_TIMEOUT = 30

    # Logging
    LOG_LEVEL = "WARNING"  # Default logging level (CRITICAL, ERROR, WARNING, INFO, DEBUG)

    @classmethod
    def to_dict(cls) -> dict:
        """
        Export all defaults as a dictionary.

        Returns:
            Dictionary of all ProcessingDefaults class attributes.
        """
        return {
            key: getattr(cls, key)
            for key in dir(cls)
            if not key.startswith('_') and key.isupper()
        }

    @classmethod
    def log_summary(cls, logger=None):
        """
        Log a summary of all operational defaults.

        Args:
            logger: Optional logger instance. If None, prints to stdout.
        """
        config_dict = cls.to_dict()
        summary = "\n".join([f"  {key}: {value}" for key, value in sorted(config_dict.items())])
        message = f"Processing Configuration Defaults:\n{summary}"

        if logger:
            logger.info(message)
        else:
            print(message)
