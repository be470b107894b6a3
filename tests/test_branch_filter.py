#tests\test_branch_filter.py

"""Test branch whitelist / blacklist matching."""

import pytest

from stack_orchestrator.core.branch_filter import is_allowed, is_pattern, matches
from stack_orchestrator.core.models import BranchPolicy


class TestMatching:
    """Test single entry matching."""

    def test_literal_is_exact(self):
        assert matches("feature-x", "feature-x")
        assert not matches("feature", "feature-x")

    def test_literal_is_case_sensitive(self):
        assert not matches("Feature-X", "feature-x")

    def test_pattern_detection(self):
        assert is_pattern("/^release-.*/")
        assert not is_pattern("release")
        assert not is_pattern("/")

    def test_pattern_is_unanchored(self):
        """Test /regex/ entries search anywhere in the name."""
        assert matches("/fix/", "hotfix-123")
        assert matches("/^release-.*/", "release-1.2")
        assert not matches("/^release-.*/", "pre-release-1.2")


class TestIsAllowed:
    """Test policy precedence."""

    @pytest.mark.parametrize("branch", ["master", "feature-x", "release-1"])
    def test_no_policy_allows_everything(self, branch):
        assert is_allowed(branch, None)
        assert is_allowed(branch, BranchPolicy())

    def test_only_whitelist(self):
        policy = BranchPolicy(only=["feature-x", "/^release-.*/"])

        assert is_allowed("feature-x", policy)
        assert is_allowed("release-2.0", policy)
        assert not is_allowed("master", policy)

    def test_only_takes_precedence_over_ignore(self):
        """Test ignore entries are not consulted when only is set."""
        policy = BranchPolicy(only=["feature-x"], ignore=["feature-x"])

        assert is_allowed("feature-x", policy)
        assert not is_allowed("master", policy)

    def test_ignore_blacklist(self):
        policy = BranchPolicy(ignore=["master", "/^gh-pages/"])

        assert not is_allowed("master", policy)
        assert not is_allowed("gh-pages", policy)
        assert is_allowed("feature-x", policy)

    def test_empty_only_list_allows_nothing(self):
        assert not is_allowed("feature-x", BranchPolicy(only=[]))

    def test_empty_ignore_list_allows_everything(self):
        assert is_allowed("feature-x", BranchPolicy(ignore=[]))
