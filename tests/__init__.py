"""Tests for sony_av and sony2mqtt."""
