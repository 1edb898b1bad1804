"""
JSON output formatter for contract consistency results.
Records findings per file with source hashes before and after fixing.
"""

import json
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

from contractsync.core.models import Finding, SubjectKind
from contractsync.utils.hashing import SourceHasher


class FindingsJSONFormatter:
    """
    Formats analysis results as structured JSON with integrity hashes.
    """

    SCHEMA_VERSION = "1.0.0"

    def __init__(self, fixed: bool = False):
        """
        Args:
            fixed: Whether fixes were applied to the analyzed files
        """
        self.fixed = fixed
        self.files: List[Dict[str, Any]] = []

    def add_file(self,
                 path: str,
                 source: str,
                 findings: Sequence[Finding],
                 fixed_source: Optional[str] = None,
                 remaining: Optional[Sequence[Finding]] = None) -> None:
        """
        Add the result for one file.

        Args:
            path: Path of the analyzed file
            source: Source as read from disk
            findings: Findings of the original source
            fixed_source: Source after fix-all, if fixes were applied
            remaining: Findings left after fixing
        """
        hashes = {"source": SourceHasher.hash_string(source)}
        if fixed_source is not None:
            hashes["fixed"] = SourceHasher.hash_string(fixed_source)

        entry: Dict[str, Any] = {
            "path": path,
            "hashes": hashes,
            "findings": [f.to_dict() for f in findings],
        }
        if remaining is not None:
            entry["remaining"] = [f.to_dict() for f in remaining]

        self.files.append(entry)

    def add_error(self, path: str, error: str) -> None:
        self.files.append({"path": path, "error": error})

    def generate(self) -> Dict[str, Any]:
        """
        Generate the complete JSON output structure.

        Returns:
            Dictionary representing the JSON structure
        """
        findings = [f for entry in self.files for f in entry.get("findings", [])]
        by_kind = {
            kind.value: sum(1 for f in findings if f["kind"] == kind.value)
            for kind in SubjectKind
        }

        return {
            "schema_version": self.SCHEMA_VERSION,
            "metadata": {
                "timestamp": datetime.now(timezone.utc).isoformat(),
                "tool_version": "contractsync-0.1.0",
                "fixed": self.fixed
            },
            "summary": {
                "total_files": len(self.files),
                "files_with_errors": sum(1 for entry in self.files if "error" in entry),
                "total_findings": len(findings),
                "by_kind": by_kind
            },
            "files": self.files
        }

    def to_json_string(self, indent: int = 2) -> str:
        return json.dumps(self.generate(), indent=indent)

    def save_to_file(self, output_path: str, indent: int = 2) -> None:
        """
        Save JSON to file.

        Args:
            output_path: Path to output JSON file
            indent: Number of spaces for indentation
        """
        Path(output_path).parent.mkdir(parents=True, exist_ok=True)
        with open(output_path, 'w', encoding='utf-8') as f:
            json.dump(self.generate(), f, indent=indent)
