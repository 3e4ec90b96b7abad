# File: tests/coverage_report.py
#!/usr/bin/env python3
"""
Generate test coverage report for the Parking Ledger.
Requires: pip install -e .[test]
"""

import sys
from pathlib import Path

import coverage

# Add the project root to the Python path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))


def generate_coverage_report(html_dir='htmlcov', xml_file='coverage.xml'):
    """Run the whole suite under coverage and write console, HTML and XML reports"""
    cov = coverage.Coverage(
        source=['parkledger'],
        omit=['*/tests/*', '*/__pycache__/*']
    )
    cov.start()

    try:
        from tests.run_tests import run_all_tests
        result = run_all_tests()
    finally:
        cov.stop()
        cov.save()

    print("\n" + "=" * 60)
    print("Parking Ledger Coverage Report")
    print("=" * 60)
    total = cov.report(show_missing=True)

    cov.html_report(directory=html_dir)
    print(f"\nHTML report generated in '{html_dir}'")

    # for CI
    cov.xml_report(outfile=xml_file)
    print(f"XML report generated as '{xml_file}'")

    return result, total


if __name__ == "__main__":
    result, _ = generate_coverage_report()
    sys.exit(0 if result.wasSuccessful() else 1)
