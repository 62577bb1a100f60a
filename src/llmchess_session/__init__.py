"""
LLM Chess (Human Session) package.

Components:
- game: SessionController state machine for one human vs AI session
- session: immutable session snapshot, events and limit watchers
- negotiator: AI move negotiation with random fallback
- referee/material/status: python-chess adapter, material count, status resolution
- llm_opponent/random_opponent: move providers (an LLM or uniform random)
- llm_client: minimal OpenAI-compatible async transport (base_url configurable)
"""
