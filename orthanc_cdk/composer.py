"""
Topology composer.

Builds the three stacks leaf-first and hands each one's typed outputs to its
dependents:

    NetworkStack  ->  StorageStack  ->  OrthancStack

The same configuration always produces the same templates, so redeploying
converges on the existing resources instead of duplicating them.
"""
from dataclasses import dataclass

import aws_cdk as cdk
from constructs import Construct
from jsii.errors import JSIIError

from .config import DeploymentConfig
from .errors import ProvisioningFailure
from .logger import get_logger
from .network_stack import NetworkStack
from .orthanc_stack import OrthancStack
from .storage_stack import StorageStack

logger = get_logger(__name__)

NETWORK_STACK_ID = "Orthanc-Network"
STORAGE_STACK_ID = "Orthanc-Storage"
SERVICE_STACK_ID = "Orthanc-ECSStack"


@dataclass(frozen=True)
class Topology:
    network: NetworkStack
    storage: StorageStack
    service: OrthancStack


def compose_topology(scope: Construct, config: DeploymentConfig) -> Topology:
    """
    Declare the full Orthanc topology under ``scope``.

    Raises:
        ConfigurationConflict: an input is malformed
        DependencyUnavailable: a stack was built without its dependency's outputs
        ProvisioningFailure: CDK refused to declare a resource
    """
    flags = config.flags
    env = config.cdk_environment
    logger.info(
        "Composing Orthanc topology",
        extra={
            "environment": config.environment,
            "use_object_storage_backend": flags.use_object_storage_backend,
            "enable_multi_az": flags.enable_multi_az,
            "enable_backup": flags.enable_backup,
            "enable_flow_logs": flags.enable_flow_logs,
            "access_logs": bool(flags.access_log_bucket_arn),
            "custom_domain": config.domain_name,
        },
    )

    try:
        network = NetworkStack(
            scope,
            NETWORK_STACK_ID,
            env=env,
            enable_flow_logs=flags.enable_flow_logs,
        )
        logger.info("Stack declared", extra={"stack": NETWORK_STACK_ID})

        storage = StorageStack(
            scope,
            STORAGE_STACK_ID,
            env=env,
            network=network.outputs,
            use_object_storage_backend=flags.use_object_storage_backend,
            enable_multi_az=flags.enable_multi_az,
            enable_backup=flags.enable_backup,
        )
        storage.add_dependency(network)
        logger.info("Stack declared", extra={"stack": STORAGE_STACK_ID})

        service = OrthancStack(
            scope,
            SERVICE_STACK_ID,
            env=env,
            network=network.outputs,
            storage=storage.outputs,
            enable_multi_az=flags.enable_multi_az,
            access_log_bucket_arn=flags.access_log_bucket_arn,
            container_image=config.orthanc_image,
            domain_name=config.domain_name,
            certificate_arn=config.certificate_arn,
        )
        service.add_dependency(storage)
        logger.info("Stack declared", extra={"stack": SERVICE_STACK_ID})
    except (JSIIError, RuntimeError) as exc:
        raise ProvisioningFailure(str(exc)) from exc

    cdk.Tags.of(scope).add("application", "orthanc")
    cdk.Tags.of(scope).add("environment", config.environment)

    return Topology(network=network, storage=storage, service=service)
