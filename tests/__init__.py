"""
Tests Package - Unit and integration tests for Docebo Source.
=============================================================

Test modules:
- test_fetcher: retries, backoff, failure surfacing
- test_catalogs: pagination, truncation, active filter, aggregation
- test_loaders: course details and related courses
- test_correlator: course nodes, content digests, correlation
- test_pipeline: end-to-end runs, abort path, sinks
- test_config: options, settings, availability probe, CLI

Run tests with:
    pytest tests/
    pytest tests/ -v
"""
