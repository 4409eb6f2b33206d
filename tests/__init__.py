"""
Gauntlet Test Suite
===================

Test Organization
-----------------
- tests/unit/          : Fast unit tests (in-memory stores, fake collaborators)
- tests/integration/   : Store adapters against SQLite (aiosqlite) and a fake redis client

Testing Philosophy
------------------
- Seeds or overwhelming stat gaps make every battle outcome deterministic
- Services are built per test from shared fixtures; no module-level state
- Follow AAA pattern: Arrange, Act, Assert
"""
