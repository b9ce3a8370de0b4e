"""Step-pipeline code generator driven by chat-completion conversations."""
