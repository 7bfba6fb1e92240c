"""
Docebo Source - Course records from a Docebo LMS catalog
========================================================

Fetches catalog pages, course details and related courses from a Docebo
instance, correlates the three data sets into one record per course and
hands each record, with its content digest, to a sink.

    catalog ids → pages → active entries → details + related → records → sink
"""

__version__ = "0.1.0"
__author__ = "Docebo Source Team"
__license__ = "MIT"

__all__ = [
    # Version info
    "__version__",
    "__author__",
    "__license__",
    # Main modules (imported on demand)
    "shared",
    "ingestion",
    "sinks",
    "cli",
]
