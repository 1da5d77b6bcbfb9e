"""
Mentor Gateway - an API gateway for the gratitude journal.

This package sits between the journal client, the entries service and an LLM
chat completion service. It bounds untrusted client input, builds prompts for
the mentor features and turns the model's replies into stable JSON envelopes.
"""

__version__ = "0.1.0"
