"""
Conformance Test Suite

This suite defines the NORMATIVE behavior of the replay engine.
Any compliant implementation MUST pass these tests.

The tests are organized by invariant:
1. test_conservation.py - Totals equal the net effect of applied rows
2. test_locking.py - A locked account never changes again
3. test_ordering.py - Commutation of independent disputes, order sensitivity
   of dependent rows, determinism across runs and index modes

These tests use hypothesis for property-based testing.
"""
