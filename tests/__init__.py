"""Test suite for statistical_color_transfer."""
