"""
Shipwright Test Suite
=====================

Test organization mirrors the source code structure:
    tests/
    ├── test_core/          → Tests for shipwright.core (config, models, exceptions)
    ├── test_pipeline/      → Tests for shipwright.pipeline (gate, variables, extractor, ...)
    ├── test_infrastructure/→ Tests for shipwright.infrastructure (record stores)
    ├── test_integrations/  → Tests for shipwright.integrations (tool runners)
    ├── test_integration/   → End-to-end integration tests
    └── conftest.py         → Shared pytest fixtures

Running Tests:
    pytest                          # Run all tests
    pytest tests/test_pipeline/     # Run only pipeline tests
"""
