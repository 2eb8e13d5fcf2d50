"""Ghost Provision — hardware-aware offline AI stack provisioning."""

__version__ = "0.1.0"
