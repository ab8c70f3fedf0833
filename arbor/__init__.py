"""Arbor: live test explorer core.

Keeps a solution -> project -> class -> method tree of tests in sync with
the discovered inventory, rolls run outcomes up the tree and drives the
build/test run lifecycle.
"""

__version__ = "0.1.0"
