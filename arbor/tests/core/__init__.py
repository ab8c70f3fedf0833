"""Unit tests for core domain logic.

These tests exercise the explorer core without external dependencies.
All collaborators are replaced with in-memory fakes from tests/fakes/.
"""
