"""
Centralized configuration defaults for XML binding and store access.

This module defines operational configuration constants used throughout the
system. Environment variables and CLI arguments can override these defaults
at runtime.

Single Source of Truth: Change these values once; all modules automatically use updated defaults.
"""


class BinderDefaults:
    """
    Centralized operational configuration for the XML binder.

    All values are defaults that can be overridden via environment variables
    (XML_BINDER_*) or CLI arguments:
    - xml_binder --log-level DEBUG build-query --collection /db/books
    - XML_BINDER_EXIST_URL=http://exist:8080/exist xml_binder check-connection
    """

    # eXist-db REST endpoint
    EXIST_URL = "http://localhost:8080/exist"  # Base URL; the REST servlet lives under /rest
    EXIST_USER = "admin"
    EXIST_PASSWORD = ""

    # Query execution
    MAX_RESULTS = 10000  # Items requested per query (eXist's own default is 10)
    REQUEST_TIMEOUT = None  # Seconds; None keeps the HTTP client's default (no timeout)

    # Serialization
    PRETTY_PRINT = True  # Indent generated documents
    ENCODING = "UTF-8"

    # Logging
    LOG_LEVEL = "WARNING"  # Default logging level (CRITICAL, ERROR, WARNING, INFO, DEBUG)

    @classmethod
    def to_dict(cls) -> dict:
        """
        Export all defaults as a dictionary.

        Returns:
            Dictionary of all BinderDefaults class attributes.
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
        config_dict['EXIST_PASSWORD'] = '***' if config_dict.get('EXIST_PASSWORD') else ''
        summary = "\n".join([f"  {key}: {value}" for key, value in sorted(config_dict.items())])
        message = f"XML Binder Configuration Defaults:\n{summary}"

        if logger:
            logger.info(message)
        else:
            print(message)
