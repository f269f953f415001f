"""Flask proxy that keeps the generative API key on the server side."""
