"""ecsdeploy - Deploy Amazon ECS services from the command line.

ecsdeploy rolls an ECS service to a new task definition revision and desired
count. Services using the ECS deployment controller are updated in place;
services using the CODE_DEPLOY controller are released through the CodeDeploy
deployment group bound to them.

Main features:
- Register a task definition from a local JSON/YAML file, or deploy the latest
  or currently active revision
- Desired count handling that respects DAEMON services and "keep current"
- Blue/green releases through CodeDeploy with automatic group discovery
- Dry runs that perform every read and no writes
- Bounded, cancellable waits for service stability or release completion
"""

from ecsdeploy.config.loader import ConfigLoader
from ecsdeploy.deploy.orchestrator import DeployOrchestrator
from ecsdeploy.lib.errors import ConfigError, DeploymentError, EcsDeployError
from ecsdeploy.models.deployment import DEFAULT_DESIRED_COUNT, DeployOptions

__version__ = "0.1.0"

__all__ = [
    "__version__",
    "DEFAULT_DESIRED_COUNT",
    "ConfigError",
    "ConfigLoader",
    "DeployOptions",
    "DeployOrchestrator",
    "DeploymentError",
    "EcsDeployError",
]
