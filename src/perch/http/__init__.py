"""Request type handed to the dispatcher by the host server."""
