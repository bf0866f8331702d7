"""Mock implementations of the remote services the engine talks to."""
