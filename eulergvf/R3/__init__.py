"""
    R3
    ==

    Solve Gradient Vector Flow on R^3.

    Provides the following "top level" submodules, of which one is selected
    depending on the capabilities of the device:
      1. gvf: diffuse a 3D edge vector field with explicit Euler steps, working
      directly on addressable 3D ndarrays.
      2. linearized: diffuse a 3D edge vector field on flat buffers, for devices
      that cannot write arbitrary cells of a volume.
"""

# Access entire backend
import eulergvf.R3.gvf
import eulergvf.R3.linearized
