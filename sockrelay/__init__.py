"""Peers over sockets, files, processes and memory, with filters, reusers and copying."""

__version__ = "0.1.0"