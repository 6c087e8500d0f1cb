"""ABOUTME: Result tracking shared by the root-level test scripts.
ABOUTME: Prints ✓/✗ lines when run as a script; check() turns failures into AssertionError for pytest."""

from typing import Callable, List


class TestResults:
    """Track test results."""
    __test__ = False    # not a pytest test class

    def __init__(self):
        self.passed = 0
        self.failed = 0
        self.errors = []

    def assert_true(self, condition, message):
        if condition:
            self.passed += 1
            print(f"✓ {message}")
        else:
            self.failed += 1
            self.errors.append(message)
            print(f"✗ {message}")

    def assert_equal(self, actual, expected, message):
        if actual == expected:
            self.passed += 1
            print(f"✓ {message}")
        else:
            self.failed += 1
            error_msg = f"{message} (expected {expected}, got {actual})"
            self.errors.append(error_msg)
            print(f"✗ {error_msg}")

    def assert_close(self, actual, expected, message, tolerance=1e-9):
        if abs(actual - expected) <= tolerance:
            self.passed += 1
            print(f"✓ {message}")
        else:
            self.failed += 1
            error_msg = f"{message} (expected {expected}±{tolerance}, got {actual})"
            self.errors.append(error_msg)
            print(f"✗ {error_msg}")

    def check(self):
        """Raise AssertionError listing every failure so far."""
        if self.failed:
            raise AssertionError("; ".join(self.errors))


def section(title: str):
    print("\n" + "=" * 60)
    print(title)
    print("=" * 60)


def run_all(title: str, tests: List[Callable[[TestResults], None]]) -> int:
    """Run test functions as a script; returns the process exit code."""
    section(title)
    all_results = []
    for test in tests:
        results = TestResults()
        try:
            test(results)
        except AssertionError:
            pass
        all_results.append(results)

    total_passed = sum(r.passed for r in all_results)
    total_failed = sum(r.failed for r in all_results)
    section(f"OVERALL RESULTS: {total_passed}/{total_passed + total_failed} checks passed")

    if total_failed > 0:
        print(f"\n❌ {total_failed} check(s) failed:")
        for results in all_results:
            for error in results.errors:
                print(f"  - {error}")
        return 1
    print("\n✅ All checks passed!")
    return 0
