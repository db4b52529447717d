"""Tests for ibmpkg."""
