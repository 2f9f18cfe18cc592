"""merchdeploy CLI — Typer-based command-line interface.

Provides the ``merchdeploy`` command with subcommands for funding the
deployer, building, publishing, initializing and verifying the marketplace,
and inspecting the current deployment.

All output uses Rich for formatted terminal display.
"""
