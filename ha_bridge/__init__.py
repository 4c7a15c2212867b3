"""Home Assistant command bridge.

Exposes Home Assistant entities and services to a message bus as a small
set of addressable actions and publishes a catalog of invocable commands
for an upstream command resolver.
"""

__version__ = "0.1.0"
