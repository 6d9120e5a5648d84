"""Request -> response synthesis for the simulated diagnostic protocol."""

from doipsim.protocol.generator import ResponseGenerator, negative_response

__all__ = ["ResponseGenerator", "negative_response"]
