"""Core model: data types, coordinate mapping, grid, animation and the protocol adapter."""
