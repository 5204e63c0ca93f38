import typing as t
import unittest as ut
import zrlog
from storecheck.storage import BaseStorageAdapter
from .suite import AdapterConformanceSuite


def build_test_case(factory: t.Callable[[], BaseStorageAdapter], name: str = "AdapterConformanceTest") -> type[ut.TestCase]:
    """Create a TestCase class that runs the conformance suite on adapters built by factory."""

    def create_adapter(self):
        return factory()

    return type(name, (AdapterConformanceSuite, ut.TestCase), {"create_adapter": create_adapter})


def run_conformance(factory: t.Callable[[], BaseStorageAdapter],
                    verbosity: int = 1,
                    stream: t.Optional[t.TextIO] = None,
                    name: str = "AdapterConformanceTest") -> ut.TestResult:
    """Run the conformance suite and return the unittest result."""
    log = zrlog.get_logger("storecheck.conformance")
    test_case = build_test_case(factory, name)
    suite = ut.defaultTestLoader.loadTestsFromTestCase(test_case)
    log.info(f"Running {suite.countTestCases()} conformance checks")
    runner = ut.TextTestRunner(stream=stream, verbosity=verbosity)
    result = runner.run(suite)
    if result.wasSuccessful():
        log.info(f"Conformance checks passed ({len(result.skipped)} skipped)")
    else:
        log.warning(f"Conformance checks failed: {len(result.failures)} failures, {len(result.errors)} errors")
    return result
