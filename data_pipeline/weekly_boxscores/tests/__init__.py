"""
Tests for the weekly boxscores pipeline.
"""
