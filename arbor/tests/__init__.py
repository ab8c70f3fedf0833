"""Test suite for the Arbor test explorer.

Organized into three categories:

1. core/: Unit tests for core domain logic
   - No external dependencies, fast execution
   - Uses in-memory fakes for ports

2. adapters/: Tests for adapter implementations
   - HTTP adapters run against httpx.MockTransport

3. fakes/: Port implementations for testing
   - In-memory implementations of EditorContextPort, TestProviderPort, etc.
   - Inventory builders shared by the core tests
"""
