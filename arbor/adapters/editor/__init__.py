"""Editor context adapters.

Implementations:
- Stdout (headless; test log printed to the terminal)
"""
