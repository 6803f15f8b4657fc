"""ssh-deploy: push a locally built application tree to a remote host."""

__version__ = "0.3.0"
