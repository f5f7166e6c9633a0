"""Core domain package for miniflux-rules.

Core contains rule compilation, matching, and the paginated processing loop
without any HTTP or Miniflux-specific code, keeping the business logic
portable and easy to test with in-memory fakes.
"""
