"""Reusable checks that a storage adapter honours the adapter contract."""
from .suite import AdapterConformanceSuite
from .runner import build_test_case, run_conformance
