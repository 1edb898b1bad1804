"""
Hashing of source files before and after a fix.
"""

import hashlib
from typing import Optional


class SourceHasher:
    """
    SHA-256 fingerprints of module sources, recorded in the JSON report so a
    later run can tell whether a file still holds the analyzed (or fixed)
    text.
    """

    @staticmethod
    def hash_string(content: str) -> str:
        """Hex digest of a module's source text, encoded as UTF-8"""
        return hashlib.sha256(content.encode('utf-8')).hexdigest()

    @staticmethod
    def hash_file(file_path: str) -> Optional[str]:
        """
        Digest of a source file as `read_source` would see it.

        Returns:
            The hex digest, or None when the file is missing or unreadable
        """
        try:
            with open(file_path, 'r', encoding='utf-8') as f:
                return SourceHasher.hash_string(f.read())
        except (OSError, UnicodeDecodeError):
            return None

    @staticmethod
    def verify_integrity(file_result: dict, file_path: str) -> bool:
        """
        True if the file on disk still matches the hash recorded in a report
        entry: the fixed source hash when a fix was applied, else the
        original one.
        """
        hashes = file_result.get('hashes', {})
        expected = hashes.get('fixed') or hashes.get('source')
        return expected is not None and SourceHasher.hash_file(file_path) == expected
