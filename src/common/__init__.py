"""
Common building blocks shared by the categorizer and the sorter session.

This package contains reusable, domain-agnostic code:

- configuration loading (environment variables)
- logging configuration
- the OpenAI-compatible chat completion call
"""
