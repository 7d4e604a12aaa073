"""
Shared LLM helpers.

This module centralizes the OpenAI-compatible chat completion call. The
default endpoint is Gemini's OpenAI-compatible API, but any compatible
server works through ``LLM_BASE_URL``.
"""

import openai


class OpenAIChatMixin:
    """
    Mixin providing the OpenAI-compatible chat completion call.

    Failures are not retried here; callers surface them once and leave it to
    the user to try again.
    """

    def _create_completion(self, **kwargs):
        """Call the OpenAI-compatible chat completion API."""
        return openai.chat.completions.create(**kwargs)
