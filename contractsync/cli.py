"""
Check Python files for NotNull annotations without contract statements.

Usage:
    contractsync src/
    contractsync module.py --fix
    contractsync src/ --json report.json --jobs 4
"""

import argparse
import logging
import sys
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from typing import List, Optional, Sequence

from contractsync.core.analyzer import analyze
from contractsync.core.config import ContractSettings
from contractsync.core.document import Document
from contractsync.core.models import Finding
from contractsync.core.synthesizer import fix_all
from contractsync.output import FindingsJSONFormatter
from contractsync.utils.files import collect_python_files, read_source, write_source

logger = logging.getLogger(__name__)


class FileCheck:
    """Result of checking a single file"""

    def __init__(self, path: str):
        self.path = path
        self.source = ""
        self.findings: List[Finding] = []
        self.fixed_source: Optional[str] = None
        self.remaining: Optional[List[Finding]] = None
        self.error: Optional[str] = None

    @property
    def changed(self) -> bool:
        return self.fixed_source is not None and self.fixed_source != self.source

    @property
    def open_findings(self) -> List[Finding]:
        return self.remaining if self.remaining is not None else self.findings

    def __repr__(self):
        if self.error:
            return f"❌ {self.path} - {self.error}"
        status = "✅" if not self.open_findings else "❌"
        return f"{status} {self.path} - {len(self.open_findings)} finding(s)"


class CheckSummary:
    """Summary of all checked files"""

    def __init__(self, fixed: bool):
        self.fixed = fixed
        self.results: List[FileCheck] = []

    def add_result(self, result: FileCheck):
        self.results.append(result)

    @property
    def errors(self) -> int:
        return sum(1 for r in self.results if r.error)

    @property
    def open_findings(self) -> int:
        return sum(len(r.open_findings) for r in self.results if not r.error)

    @property
    def fixed_findings(self) -> int:
        if not self.fixed:
            return 0
        return sum(len(r.findings) - len(r.open_findings) for r in self.results if not r.error)

    @property
    def exit_code(self) -> int:
        if self.errors:
            return 2
        return 1 if self.open_findings else 0

    def print_summary(self):
        """Print formatted summary"""
        print("\n" + "=" * 80)
        print("CONTRACT CONSISTENCY SUMMARY")
        print("=" * 80)

        if not self.results:
            print("⚠️  No Python files found")
            return

        for result in self.results:
            print(f"\n{result}")
            for finding in result.open_findings:
                span = finding.span
                print(f"   {result.path}:{span.start_line}:{span.start_column + 1}: "
                      f"{finding.message} ({finding.member})")

        print("\n" + "-" * 80)
        print(f"Files checked: {len(self.results)}")
        if self.fixed:
            print(f"🔧 Fixed: {self.fixed_findings}")
        print(f"❌ Open findings: {self.open_findings}")
        if self.errors:
            print(f"⚠️  Files with errors: {self.errors}")
        print("=" * 80)


def check_file(path: Path, settings: ContractSettings, fix: bool = False) -> FileCheck:
    """
    Analyze one file, optionally computing its fixed source.

    Parse and read errors are recorded on the result, not raised.
    """
    result = FileCheck(str(path))
    try:
        result.source = read_source(path)
        document = Document.from_source(result.source, settings)
    except (OSError, UnicodeDecodeError, ValueError) as e:
        result.error = str(e)
        return result

    result.findings = analyze(document)
    if fix and result.findings:
        fixed = fix_all(document)
        result.fixed_source = fixed.code
        result.remaining = analyze(Document(fixed, settings))
    return result


def run(paths: Sequence[str], settings: ContractSettings, fix: bool = False,
        jobs: int = 1) -> CheckSummary:
    """
    Check files, writing fixed sources back when `fix` is set.

    Raises:
        FileNotFoundError: If a path does not exist
    """
    files = collect_python_files(paths)
    summary = CheckSummary(fixed=fix)

    with ThreadPoolExecutor(max_workers=max(1, jobs)) as pool:
        results = list(pool.map(lambda p: check_file(p, settings, fix), files))

    for result in results:
        if result.changed:
            logger.info("Writing fixes to %s", result.path)
            write_source(result.path, result.fixed_source)
        summary.add_result(result)
    return summary


def write_report(summary: CheckSummary, output_path: str) -> None:
    formatter = FindingsJSONFormatter(fixed=summary.fixed)
    for result in summary.results:
        if result.error:
            formatter.add_error(result.path, result.error)
        else:
            formatter.add_file(result.path, result.source, result.findings,
                               result.fixed_source, result.remaining)
    formatter.save_to_file(output_path)


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = argparse.ArgumentParser(
        prog="contractsync",
        description="Report NotNull annotations without matching contract statements",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
    # Report findings
    contractsync src/

    # Insert the missing contract statements
    contractsync src/ --fix

    # Write a JSON report
    contractsync src/ --json report.json
        """
    )

    parser.add_argument("paths", nargs="+", help="Python files or directories")
    parser.add_argument("--fix", action="store_true", help="Insert missing contract statements")
    parser.add_argument("--json", dest="json_path", help="Write a JSON report to this file")
    parser.add_argument("--config", default="pyproject.toml",
                        help="pyproject.toml with a [tool.contractsync] table")
    parser.add_argument("-j", "--jobs", type=int, default=1, help="Files analyzed in parallel")
    parser.add_argument("-v", "--verbose", action="store_true", help="Verbose output")

    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    try:
        settings = ContractSettings.from_pyproject(args.config)
    except (OSError, ValueError) as e:
        print(f"❌ Error: Invalid configuration in {args.config}: {e}")
        return 2

    try:
        summary = run(args.paths, settings, fix=args.fix, jobs=args.jobs)
    except FileNotFoundError as e:
        print(f"❌ Error: {e}")
        return 2

    summary.print_summary()

    if args.json_path:
        write_report(summary, args.json_path)

    return summary.exit_code


if __name__ == "__main__":
    sys.exit(main())
