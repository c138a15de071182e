"""Core infrastructure: exceptions, LLM clients, repository base."""
