"""Marketplace checkout pricing and multi-vendor order composition."""
