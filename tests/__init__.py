"""
Test suite for the grid-world value iteration package.
"""
