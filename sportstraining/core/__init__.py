"""
Core business logic for the training-program client.

This module is framework-agnostic - it doesn't import FastAPI or httpx.
The session lifecycle, URL normalization and use cases can be tested
in isolation from the network.
"""
