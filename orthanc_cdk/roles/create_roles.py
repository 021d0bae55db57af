from typing import Tuple

from aws_cdk import aws_iam as iam
from constructs import Construct

from ..outputs import ObjectStore, SharedFilesystem, StorageBackend


def create_task_roles(scope: Construct) -> Tuple[iam.Role, iam.Role]:
    """
    Create the two identities of the Orthanc task.

    Returns:
        Tuple containing the task role (used by Orthanc at runtime) and the
        execution role (used by ECS to pull the image, write logs and read secrets)
    """
    task_role = iam.Role(
        scope,
        "OrthancTaskRole",
        assumed_by=iam.ServicePrincipal("ecs-tasks.amazonaws.com"),
        description="Runtime role for the Orthanc container",
    )

    execution_role = iam.Role(
        scope,
        "OrthancTaskExecutionRole",
        assumed_by=iam.ServicePrincipal("ecs-tasks.amazonaws.com"),
        description="ECS execution role for the Orthanc task",
    )
    execution_role.add_managed_policy(
        iam.ManagedPolicy.from_aws_managed_policy_name("service-role/AmazonECSTaskExecutionRolePolicy")
    )

    return task_role, execution_role


def grant_storage_access(backend: StorageBackend, role: iam.IRole) -> None:
    """
    Grant the task role access to whichever storage backend exists.

    The grant follows the backend variant rather than the feature flag, so the two
    can never drift apart.
    """
    if isinstance(backend, ObjectStore):
        # Also grants encrypt/decrypt on the bucket key
        backend.bucket.grant_read_write(role)
    elif isinstance(backend, SharedFilesystem):
        backend.file_system.grant(role, "elasticfilesystem:ClientMount", "elasticfilesystem:ClientWrite")
    else:
        raise TypeError(f"Unknown storage backend: {type(backend).__name__}")
