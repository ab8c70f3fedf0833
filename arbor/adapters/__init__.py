"""External adapters for the Arbor test explorer.

This package provides implementations of the core port interfaces for
collaborators that do not come from a host IDE integration.

Adapter Organization:

- editor/: Editor contexts (headless stdout log)
- results/: Clients for stored test results (HTTP result service)
"""
