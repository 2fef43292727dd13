"""
Tests for storyforge.infrastructure.paths
===========================================

The key layout is relied on by existing stored data, so these tests pin
it exactly.
"""

import pytest

from storyforge.core.exceptions import InvalidInputError
from storyforge.core.kinds import STORY_ROOT_SPEC, WORLD_STATE_SPEC
from storyforge.infrastructure.paths import (
    PathNamer,
    current_path,
    version_id_from_path,
    version_path,
    versions_prefix,
)


class TestPathScheme:
    """Tests for the exact key layout."""

    def test_story_root_version_path(self) -> None:
        """Story Root versions live under story-root/root/versions."""
        assert (
            version_path("alice", STORY_ROOT_SPEC, "abc123")
            == "users/alice/story-root/root/versions/abc123.json"
        )

    def test_world_state_current_path(self) -> None:
        """World State pointer lives at world-state/world/current.json."""
        assert current_path("alice", WORLD_STATE_SPEC) == "users/alice/world-state/world/current.json"

    def test_versions_prefix_ends_with_slash(self) -> None:
        """The listing prefix ends in "/" so "versions2/" cannot match."""
        assert versions_prefix("bob", STORY_ROOT_SPEC) == "users/bob/story-root/root/versions/"

    def test_version_paths_start_with_prefix(self) -> None:
        """Every version path is found by listing the prefix."""
        prefix = versions_prefix("alice", WORLD_STATE_SPEC)
        assert version_path("alice", WORLD_STATE_SPEC, "v1").startswith(prefix)

    def test_kinds_do_not_share_keys(self) -> None:
        """Same user and version id map to different keys per kind."""
        assert version_path("alice", STORY_ROOT_SPEC, "v1") != version_path(
            "alice", WORLD_STATE_SPEC, "v1"
        )

    def test_users_do_not_share_keys(self) -> None:
        """Different users never share a pointer."""
        assert current_path("alice", STORY_ROOT_SPEC) != current_path("bob", STORY_ROOT_SPEC)


class TestSegmentValidation:
    """Ids that would break the one-to-one key mapping are rejected."""

    @pytest.mark.parametrize("user_id", ["", "   ", "a/b", "a\\b", ".", ".."])
    def test_bad_user_ids(self, user_id) -> None:
        """Blank, slash-bearing or dot-only user ids raise InvalidInputError."""
        with pytest.raises(InvalidInputError) as exc_info:
            current_path(user_id, STORY_ROOT_SPEC)
        assert exc_info.value.field == "user_id"

    @pytest.mark.parametrize("version_id", ["", "v/1", ".."])
    def test_bad_version_ids(self, version_id) -> None:
        """Blank or slash-bearing version ids raise InvalidInputError."""
        with pytest.raises(InvalidInputError) as exc_info:
            version_path("alice", STORY_ROOT_SPEC, version_id)
        assert exc_info.value.field == "version_id"


class TestVersionIdFromPath:
    """Tests for recovering version ids from keys."""

    def test_recovers_id(self) -> None:
        """The file stem of a version key is its id."""
        path = version_path("alice", STORY_ROOT_SPEC, "f00d")
        assert version_id_from_path(path) == "f00d"

    def test_non_version_key_returns_none(self) -> None:
        """Keys that are not .json objects are ignored."""
        assert version_id_from_path("users/alice/story-root/root/versions/notes.txt") is None
        assert version_id_from_path("users/alice/story-root/root/versions/.json") is None


class TestPathNamer:
    """Tests for the kind-bound wrapper."""

    def test_delegates_to_functions(self) -> None:
        """PathNamer produces the same keys as the module functions."""
        namer = PathNamer(WORLD_STATE_SPEC)
        assert namer.current_path("alice") == current_path("alice", WORLD_STATE_SPEC)
        assert namer.version_path("alice", "v1") == version_path("alice", WORLD_STATE_SPEC, "v1")
        assert namer.versions_prefix("alice") == versions_prefix("alice", WORLD_STATE_SPEC)
        assert namer.spec is WORLD_STATE_SPEC
