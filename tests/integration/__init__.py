"""Integration tests for note conversion.

These tests run the full pipeline (markup conversion, image resolution with a
mocked HTTP session, run aggregation) against the filesystem.
"""
