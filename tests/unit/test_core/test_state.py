"""Unit tests for appforge.core.state module."""

import pytest
from pydantic import ValidationError

from appforge.core.state import RunState


class TestRunState:
    """Tests for RunState."""

    def test_defaults(self):
        """Test that a new state has no summary and no files."""
        state = RunState()
        assert state.summary == ""
        assert state.files == {}

    def test_merge_files_keeps_existing_paths(self):
        """Test that merging adds new paths and overwrites only the paths it names."""
        state = RunState(files={"a.txt": "1", "b.txt": "2"})

        state.merge_files({"b.txt": "3", "c.txt": "4"})

        assert state.files == {"a.txt": "1", "b.txt": "3", "c.txt": "4"}

    def test_merge_files_is_idempotent(self):
        """Test that merging the same files twice yields the same state."""
        state = RunState()
        state.merge_files({"app/page.tsx": "export default 1"})
        snapshot = dict(state.files)

        state.merge_files({"app/page.tsx": "export default 1"})

        assert state.files == snapshot

    def test_merge_empty_is_noop(self):
        """Test that merging nothing leaves the files unchanged."""
        state = RunState(files={"a": "1"})
        state.merge_files({})
        assert state.files == {"a": "1"}

    def test_assignment_is_validated(self):
        """Test that assignments are validated against the field types."""
        state = RunState()
        with pytest.raises(ValidationError):
            state.files = "not a dict"
