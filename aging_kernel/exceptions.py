"""
Typed Exception Hierarchy for the aging kernel.

===============================================================================
WHEN THESE ARE RAISED
===============================================================================

Aging is a tolerant report: data-quality problems in individual invoices
(unparseable dates, negative amounts, unknown statuses) never raise. They are
clamped or defaulted and logged as warnings, so one bad document cannot hide
the rest of a counterparty's aging picture.

The exceptions below are for configuration and programming errors: a bucket
set with gaps, an unknown currency in the config file, an input file of a
format nothing can read.

===============================================================================
EXCEPTION HIERARCHY
===============================================================================

    AgingError (base)
    |
    +-- ConfigurationError
    |   +-- InvalidBucketSetError
    |   +-- InvalidCurrencyError
    |
    +-- SourceError
        +-- UnsupportedSourceFormatError

===============================================================================
ERROR CODES - QUICK REFERENCE
===============================================================================

Category        | Code                        | When Raised
----------------|-----------------------------|-----------------------------------------
Configuration   | INVALID_AGING_CONFIG        | Config file missing keys / bad values
                | INVALID_BUCKET_SET          | Buckets overlap, gap, or are unbounded
                |                             | before the last one
                | INVALID_CURRENCY            | Report currency not ISO 4217
----------------|-----------------------------|-----------------------------------------
Source          | SOURCE_ERROR                | Invoice source cannot be read
                | UNSUPPORTED_SOURCE_FORMAT   | File suffix has no adapter
----------------|-----------------------------|-----------------------------------------

Every exception carries a ``code`` class attribute and stores its context
as attributes, so log records and CLI output can use them without parsing
the message.
"""


class AgingError(Exception):
    """
    Base exception for all aging errors.

    All subclasses must have a ``code`` class attribute for machine-readable
    error identification.
    """

    code: str = "AGING_ERROR"


# Configuration


class ConfigurationError(AgingError):
    """Aging configuration is missing or invalid."""

    code: str = "INVALID_AGING_CONFIG"

    def __init__(self, reason: str, source: str | None = None):
        self.reason = reason
        self.source = source
        location = f" ({source})" if source else ""
        super().__init__(f"Invalid aging configuration{location}: {reason}")


class InvalidBucketSetError(ConfigurationError):
    """Bucket definitions do not cover every non-negative age exactly once."""

    code: str = "INVALID_BUCKET_SET"

    def __init__(self, reason: str, bucket_names: tuple[str, ...] = ()):
        self.bucket_names = bucket_names
        super().__init__(reason)


class InvalidCurrencyError(ConfigurationError):
    """Currency code is not a known ISO 4217 code."""

    code: str = "INVALID_CURRENCY"

    def __init__(self, currency: str):
        self.currency = currency
        super().__init__(f"unknown currency code {currency!r}")


# Sources


class SourceError(AgingError):
    """Invoice source could not be read."""

    code: str = "SOURCE_ERROR"

    def __init__(self, path: str, reason: str):
        self.path = path
        self.reason = reason
        super().__init__(f"Cannot read invoice source {path}: {reason}")


class UnsupportedSourceFormatError(SourceError):
    """No adapter is registered for the file's suffix."""

    code: str = "UNSUPPORTED_SOURCE_FORMAT"

    def __init__(self, path: str, suffix: str):
        self.suffix = suffix
        super().__init__(path, f"unsupported format {suffix!r}")
