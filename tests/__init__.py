"""
StoryForge Test Suite
=====================

Test organization mirrors the source code structure:
    tests/
    ├── test_core/           → storyforge.core (config, models, exceptions)
    ├── test_infrastructure/ → storyforge.infrastructure (paths, blobs, version chains)
    ├── test_integrations/   → storyforge.integrations (LLM providers)
    ├── test_prompts/        → storyforge.prompts (templates, substitution)
    ├── test_orchestration/  → storyforge.orchestration (validation, proposals, commits)
    ├── test_integration/    → End-to-end workflow tests
    ├── test_facade.py       → StoryForge facade
    └── conftest.py          → Shared pytest fixtures

Running Tests:
    pytest                          # Run all tests
    pytest tests/test_core/         # Run only core tests
    pytest --cov=storyforge         # Run with coverage report
"""
