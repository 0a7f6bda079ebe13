"""Shared pytest configuration."""

import jax

# Tolerances down to 1e-12 are below float32 resolution.
jax.config.update("jax_enable_x64", True)
