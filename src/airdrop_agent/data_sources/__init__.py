"""External services the agent talks to."""
