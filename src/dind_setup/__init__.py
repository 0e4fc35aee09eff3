"""Docker-in-Docker provisioning for Debian-based container images."""

__version__ = "1.0.0"
