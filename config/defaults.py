"""Default workspace settings."""

DEFAULTS = {
    "model": "claude-sonnet-4-5-20250929",
    "max_tokens": 8192,
    "typing_chunk_size": 40,        # characters revealed per typing tick
    "typing_interval": 0.03,        # seconds between typing ticks
    "status_interval": 2.0,         # seconds between status-text rotations
    "status_messages": [
        "Analyzing your request...",
        "Choosing a project setup...",
        "Writing components...",
        "Drawing the flow diagram...",
        "Putting it all together...",
    ],
    "default_features": ["responsive"],
    "diagram_declaration": "flowchart TD",
    "session_ttl": 3600,
    "max_sessions": 50,
    "max_history": 20,              # saved results kept per owner
    "terminal_root": "/tmp/appforge-sessions",
}
