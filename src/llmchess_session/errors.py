"""Exceptions raised across the session, negotiation and transport layers."""
from __future__ import annotations


class ProviderError(Exception):
    """The move provider failed: transport error, empty or malformed reply."""


class IllegalProposalError(Exception):
    """A well-formed proposal was rejected by the rules engine."""

    def __init__(self, uci: str):
        super().__init__(f"illegal proposal: {uci}")
        self.uci = uci


class SessionError(Exception):
    """The controller reached a state its own checks should have prevented."""
