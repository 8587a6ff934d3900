"""
Golden Credits Test Suite
=========================

Test Organization
-----------------
- tests/unit/          : Fast unit tests for pure policy objects, locking,
                         events, validation and configuration
- tests/service/       : Service tests against a per-test SQLite database
- tests/integration/   : Testcontainer tests (PostgreSQL, Redis), opt-in via
                         GC_RUN_CONTAINER_TESTS=1

Testing Philosophy
------------------
- Unit tests: Fast, isolated, test business rules
- Service tests: Real SQL, controllable clock, seeded random source
- Follow AAA pattern: Arrange, Act, Assert
"""
