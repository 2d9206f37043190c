"""Wellness advisor: sleep, exercise and diet recommendations."""
