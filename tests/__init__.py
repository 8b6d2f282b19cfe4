"""
Sightline Test Suite

This package contains tests for the Sightline targeting and candidate-fusion engine.

Structure:
- unit/: Unit tests for geodesy, targeting, sources and fusion
- integration/: HTTP surface tests against the bundled offline catalog
"""
