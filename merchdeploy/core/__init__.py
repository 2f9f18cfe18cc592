"""Core services: deployer identity, manifest storage, funding and builds."""
