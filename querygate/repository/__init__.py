"""Repository layer: settings tables built on the gateway primitives.

Keep functions thin and focused, so services/routes avoid SQL strings.
"""
from __future__ import annotations
