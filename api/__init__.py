"""
API — HTTP surface for targeting and identification

- /bearing, /distance, /fix: pure targeting computations
- /identify/stationary, /identify/mobile: multi-source fusion over the
  offline catalog and whichever remote providers are enabled in config
- /health: configured sources and provider init errors

Entry point:
    python -m api.server
"""
