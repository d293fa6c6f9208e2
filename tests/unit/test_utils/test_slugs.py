"""Unit tests for appforge.utils.slugs module."""

import random
import re

import pytest

from appforge.utils.slugs import generate_slug


class TestGenerateSlug:
    """Tests for generate_slug."""

    def test_two_words(self):
        """Test that the default slug is two kebab-case words."""
        assert re.fullmatch(r"[a-z]+-[a-z]+", generate_slug())

    def test_seeded_rng_is_deterministic(self):
        """Test that the same seed gives the same slug."""
        assert generate_slug(3, random.Random(7)) == generate_slug(3, random.Random(7))

    def test_rejects_zero_words(self):
        """Test that at least one word is required."""
        with pytest.raises(ValueError):
            generate_slug(0)
