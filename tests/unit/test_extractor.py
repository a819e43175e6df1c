"""Unit tests for result extraction and validation."""
import random
import pytest
from converge.core.exceptions import (
    ConflictingResultError,
    MissingReferenceError,
    MissingResultError,
    VerificationMismatchError,
)
from converge.services.extractor import ResultExtractor
from tests.factories.workload_factory import DEFAULT_RESULTS, make_task_run

KEYS = {"digest", "commit", "url"}


class TestResultExtractor:
    """Test ResultExtractor.extract."""

    def test_extracts_all_expected_keys(self):
        """Test every expected key is returned with its value."""
        snapshot = make_task_run(succeeded="True", results=DEFAULT_RESULTS)

        results = ResultExtractor().extract(snapshot, KEYS)

        assert results == {
            "digest": "sha256:abc",
            "commit": "a310cc6d1cd449f95cedd23393de766fdc649651",
            "url": "https://github.com/GoogleContainerTools/kaniko",
        }

    def test_extraction_is_idempotent(self):
        """Test extracting twice from the same snapshot yields the same mapping."""
        snapshot = make_task_run(succeeded="True", results=DEFAULT_RESULTS)
        extractor = ResultExtractor()

        assert extractor.extract(snapshot, KEYS) == extractor.extract(snapshot, KEYS)

    def test_entry_order_is_irrelevant(self):
        """Test shuffled entries extract to the same mapping."""
        shuffled = list(DEFAULT_RESULTS)
        random.Random(7).shuffle(shuffled)
        extractor = ResultExtractor()

        original = extractor.extract(make_task_run(results=DEFAULT_RESULTS), KEYS)
        reordered = extractor.extract(make_task_run(results=shuffled), KEYS)

        assert original == reordered

    def test_only_expected_keys_are_returned(self):
        """Test unrequested referenced entries are not returned."""
        snapshot = make_task_run(results=DEFAULT_RESULTS)

        assert ResultExtractor().extract(snapshot, {"digest"}) == {"digest": "sha256:abc"}

    def test_missing_key(self):
        """Test a requested key without any entry raises MissingResultError."""
        results = [r for r in DEFAULT_RESULTS if r[0] != "commit"]
        snapshot = make_task_run(succeeded="True", results=results)

        with pytest.raises(MissingResultError) as exc_info:
            ResultExtractor().extract(snapshot, KEYS)

        assert exc_info.value.keys == ["commit"]
        assert exc_info.value.key == "commit"
        assert exc_info.value.snapshot is snapshot

    def test_requested_key_without_reference_is_missing(self):
        """Test an entry with an empty reference does not count as present."""
        results = [("digest", "sha256:abc", "")] + [r for r in DEFAULT_RESULTS if r[0] != "digest"]

        with pytest.raises(MissingResultError) as exc_info:
            ResultExtractor().extract(make_task_run(results=results), KEYS)

        assert exc_info.value.keys == ["digest"]

    def test_all_missing_keys_reported_sorted(self):
        """Test every missing key is listed."""
        with pytest.raises(MissingResultError) as exc_info:
            ResultExtractor().extract(make_task_run(), KEYS)

        assert exc_info.value.keys == ["commit", "digest", "url"]

    def test_unrequested_entry_without_reference(self):
        """Test any entry lacking a reference is a validation failure."""
        results = DEFAULT_RESULTS + [("extra", "value", None)]

        with pytest.raises(MissingReferenceError) as exc_info:
            ResultExtractor().extract(make_task_run(results=results), KEYS)

        assert [e.key for e in exc_info.value.entries] == ["extra"]

    def test_missing_key_takes_precedence_over_missing_reference(self):
        """Test MissingResultError is raised whenever a requested key is missing."""
        results = [("extra", "value", None)]

        with pytest.raises(MissingResultError):
            ResultExtractor().extract(make_task_run(results=results), {"digest"})

    def test_duplicate_key_with_same_value(self):
        """Test a key repeated with one value is accepted."""
        results = DEFAULT_RESULTS + [("digest", "sha256:abc", "other-image")]

        extracted = ResultExtractor().extract(make_task_run(results=results), KEYS)

        assert extracted["digest"] == "sha256:abc"

    def test_duplicate_key_with_conflicting_values(self):
        """Test a key repeated with different values is rejected."""
        results = DEFAULT_RESULTS + [("digest", "sha256:def", "other-image")]

        with pytest.raises(ConflictingResultError) as exc_info:
            ResultExtractor().extract(make_task_run(results=results), KEYS)

        assert exc_info.value.values == ["sha256:abc", "sha256:def"]


class TestExpectValue:
    """Test ResultExtractor.expect_value."""

    def test_matching_value(self):
        assert ResultExtractor().expect_value({"commit": "abc"}, "commit", "abc") == "abc"

    def test_mismatching_value(self):
        with pytest.raises(VerificationMismatchError) as exc_info:
            ResultExtractor().expect_value({"commit": "abc"}, "commit", "def")

        assert exc_info.value.expected == "def"
        assert exc_info.value.actual == "abc"
        assert exc_info.value.subject == "commit"
