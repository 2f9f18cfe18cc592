"""merchdeploy: deployment and verification pipeline for the anime
merchandise marketplace contract.

Stages (each run as its own command, sharing state through the manifest):
  - Funding     — make sure the deployer holds gas (faucet + fallback)
  - Publish     — publish the compiled Move package
  - Initialize  — call the marketplace init entry point
  - Verify      — confirm the package, the init transaction and its objects
"""

__version__ = "0.1.0"
__description__ = "Deployment and verification pipeline for the anime merchandise marketplace"

from merchdeploy.config import DeployConfig
from merchdeploy.stages import STAGE_ORDER, StageContext, get_stage

__all__ = ["DeployConfig", "StageContext", "STAGE_ORDER", "get_stage", "__version__"]
