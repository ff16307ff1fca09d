"""Tests for the Earned Access integration."""
