"""Version of the psf-multisig-approval Python package."""

# Bump this when publishing
__version__ = "0.1.0"
