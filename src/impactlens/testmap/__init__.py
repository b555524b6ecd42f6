"""Related-test discovery."""

from impactlens.testmap.finder import (
    RelatedTestFinder,
    convention_probes,
    find_related_tests,
    is_test_file,
)

__all__ = ["RelatedTestFinder", "convention_probes", "find_related_tests", "is_test_file"]
