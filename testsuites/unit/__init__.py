"""Offline tests of the framework: no browser, no network."""
