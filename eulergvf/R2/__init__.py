"""
    R2
    ==

    Solve Gradient Vector Flow on R^2.

    Provides the following "top level" submodule:
      1. gvf: diffuse a 2D edge vector field with explicit Euler steps, working
      directly on addressable 2D ndarrays.
"""

# Access entire backend
import eulergvf.R2.gvf
