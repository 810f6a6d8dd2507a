"""Structured LLM output -- schema descriptors, JSON extraction, retry client.

StructuredOutputClient turns a free-form text-completion capability into a
typed one: it renders a declarative schema into the system prompt, pulls
JSON out of whatever the model returned, validates it, and retries only
when the failure is about the shape of the output.
"""
