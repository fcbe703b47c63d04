"""Shared utilities for the crawler.

This package provides:
- Neo4j driver creation and session management
- The crawler's exception hierarchy
"""
