"""homestack — provision a self-hosted server stack from one config file."""

__version__ = "0.1.0"
