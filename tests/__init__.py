"""POS engine test suite."""
