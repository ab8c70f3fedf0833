"""Result provider adapters for looking up stored test results.

Implementations:
- HTTP result service (httpx)
"""
