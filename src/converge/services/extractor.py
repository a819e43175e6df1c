"""Extraction and validation of result entries from a completed workload."""
import logging
from typing import Dict, Iterable, List, Set
from converge.core.exceptions import (
    ConflictingResultError,
    MissingReferenceError,
    MissingResultError,
    VerificationMismatchError,
)
from converge.models.workload import ResultEntry, WorkloadSnapshot

logger = logging.getLogger(__name__)


class ResultExtractor:
    """
    Pulls named results out of a workload snapshot.

    Extraction is a single pass over the result entries and does not
    depend on their order, so extracting twice yields the same mapping.
    """

    def extract(self, snapshot: WorkloadSnapshot, expected_keys: Iterable[str]) -> Dict[str, str]:
        """
        Extract the expected results from a snapshot.

        Args:
            snapshot: Snapshot of a successfully terminated workload
            expected_keys: Keys that must be present

        Returns:
            Dict[str, str]: Value for every expected key

        Raises:
            MissingResultError: If an expected key has no entry with a reference
            MissingReferenceError: If any other entry lacks a reference
            ConflictingResultError: If one key is reported with different values
        """
        expected: Set[str] = set(expected_keys)
        referenced: Dict[str, Set[str]] = {}
        unreferenced: List[ResultEntry] = []

        for entry in snapshot.status.results:
            if entry.has_reference:
                referenced.setdefault(entry.key, set()).add(entry.value)
            else:
                unreferenced.append(entry)

        missing = {key for key in expected if key not in referenced}
        if missing:
            logger.error(
                f"Results {sorted(missing)} not found in {snapshot.kind} {snapshot.identity}"
            )
            raise MissingResultError(missing, snapshot)

        if unreferenced:
            raise MissingReferenceError(sorted(unreferenced, key=lambda e: e.key), snapshot)

        results = {}
        for key in expected:
            values = referenced[key]
            if len(values) > 1:
                raise ConflictingResultError(key, values)
            results[key] = next(iter(values))

        return results

    def expect_value(self, results: Dict[str, str], key: str, expected: str) -> str:
        """
        Check one extracted result against a locally known value.

        Raises:
            VerificationMismatchError: If the values differ
        """
        actual = results[key]
        if actual != expected:
            raise VerificationMismatchError(expected, actual, subject=key)
        return actual
