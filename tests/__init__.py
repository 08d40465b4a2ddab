"""
buildcache Test Suite
=====================

Test organization mirrors the source code structure:
    tests/
    ├── test_core/           → buildcache.core (config, enums, models, errors)
    ├── test_engine/         → buildcache.engine (registry, rebuild engine)
    ├── test_infrastructure/ → buildcache.infrastructure (stores, probe)
    ├── test_producers/      → buildcache.producers
    ├── test_facade.py       → buildcache.facade
    └── conftest.py          → Shared pytest fixtures

Running Tests:
    pytest                       # Run all tests
    pytest tests/test_engine/    # Run only engine tests
    pytest -m integration        # Run only real-filesystem tests
"""
