"""Test suite for the storefront orders backend."""
