"""Protocol server: plugin actor, HTTP transport and process entrypoint."""
