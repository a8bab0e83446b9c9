"""HTTP routers for the docgate gateway."""
