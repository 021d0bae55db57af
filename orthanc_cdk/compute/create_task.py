from typing import Dict

from aws_cdk import (
    Aws,
    Stack,
    aws_ecs as ecs,
    aws_iam as iam,
    aws_rds as rds,
)
from constructs import Construct

from ..credentials.create_secrets import DATABASE_USERNAME
from ..outputs import CredentialSecret, ObjectStore, SharedFilesystem, StorageBackend

TASK_MEMORY_MIB = 4096
TASK_CPU = 2048

DICOM_WEB_PORT = 8042
DICOM_PORT = 4242

EFS_VOLUME_NAME = "orthanc-efs"
ORTHANC_DATA_PATH = "/var/lib/orthanc/db"


def create_task_definition(scope: Construct, task_role: iam.IRole, execution_role: iam.IRole) -> ecs.FargateTaskDefinition:
    """Create the Fargate task definition with a fixed 4 GiB / 2 vCPU shape."""
    return ecs.FargateTaskDefinition(
        scope,
        "OrthancTaskDefinition",
        memory_limit_mib=TASK_MEMORY_MIB,
        cpu=TASK_CPU,
        task_role=task_role,
        execution_role=execution_role,
    )


def create_orthanc_container(
    scope: Construct,
    *,
    task_definition: ecs.FargateTaskDefinition,
    image: str,
    database: rds.DatabaseInstance,
    database_credential: CredentialSecret,
    admin_credential: CredentialSecret,
) -> ecs.ContainerDefinition:
    """
    Add the Orthanc container to the task definition.

    The container publishes exactly two ports: 8042 (REST / DICOMweb, also the load
    balancer target) and 4242 (DICOM store). Both credentials are injected as ECS
    secrets and only the execution role is allowed to read them.
    """
    environment = {
        "ORTHANC__POSTGRESQL__HOST": database.db_instance_endpoint_address,
        "ORTHANC__POSTGRESQL__PORT": database.db_instance_endpoint_port,
        "ORTHANC__POSTGRESQL__USERNAME": DATABASE_USERNAME,
        "LOCALDOMAIN": f"{Aws.REGION}.compute.internal-orthanconaws.local",
        "DICOM_WEB_PLUGIN_ENABLED": "true",
        "STONE_WEB_VIEWER_PLUGIN_ENABLED": "true",
        "WSI_PLUGIN_ENABLED": "true",
        "STORAGE_BUNDLE_DEFAULTS": "false",
        "LD_LIBRARY_PATH": "/usr/local/lib",
    }

    container = task_definition.add_container(
        "OrthancContainer",
        container_name="orthanc-container",
        image=ecs.ContainerImage.from_registry(image),
        logging=ecs.LogDrivers.aws_logs(stream_prefix="orthanc"),
        environment=environment,
        secrets={
            "ORTHANC__REGISTERED_USERS": ecs.Secret.from_secrets_manager(admin_credential.secret),
            "ORTHANC__POSTGRESQL__PASSWORD": ecs.Secret.from_secrets_manager(database_credential.secret, "password"),
        },
        linux_parameters=ecs.LinuxParameters(scope, "OrthancLinuxParams", init_process_enabled=True),
        port_mappings=[
            ecs.PortMapping(container_port=DICOM_WEB_PORT, protocol=ecs.Protocol.TCP),
            ecs.PortMapping(container_port=DICOM_PORT, protocol=ecs.Protocol.TCP),
        ],
    )

    # ecs.Secret already grants the execution role; record the readers explicitly
    execution_role = task_definition.obtain_execution_role()
    admin_credential.grant_read(execution_role)
    database_credential.grant_read(execution_role)

    return container


def render_object_store_config(scope: Construct, backend: ObjectStore) -> str:
    """Serialize the AwsS3Storage plugin settings read by Orthanc from ORTHANC_JSON."""
    config: Dict[str, Dict[str, object]] = {
        "AwsS3Storage": {
            "BucketName": backend.bucket.bucket_name,
            "Region": Aws.REGION,
            "ConnectionTimeout": 30,
            "RequestTimeout": 1200,
            "RootPath": "",
            "StorageStructure": "flat",
            "MigrationFromFileSystemEnabled": False,
        }
    }
    return Stack.of(scope).to_json_string(config)


def attach_storage_backend(
    scope: Construct,
    *,
    task_definition: ecs.FargateTaskDefinition,
    container: ecs.ContainerDefinition,
    backend: StorageBackend,
) -> None:
    """
    Point the container at the DICOM store.

    S3 is configured through the ORTHANC_JSON document. EFS is mounted at the
    Orthanc data path through the access point, with TLS in transit. Never both.
    """
    if isinstance(backend, ObjectStore):
        container.add_environment("ORTHANC_JSON", render_object_store_config(scope, backend))
    elif isinstance(backend, SharedFilesystem):
        task_definition.add_volume(
            name=EFS_VOLUME_NAME,
            efs_volume_configuration=ecs.EfsVolumeConfiguration(
                file_system_id=backend.file_system.file_system_id,
                transit_encryption="ENABLED",
                authorization_config=ecs.AuthorizationConfig(
                    access_point_id=backend.access_point.access_point_id,
                    iam="ENABLED",
                ),
            ),
        )
        container.add_mount_points(
            ecs.MountPoint(
                container_path=ORTHANC_DATA_PATH,
                source_volume=EFS_VOLUME_NAME,
                read_only=False,
            )
        )
    else:
        raise TypeError(f"Unknown storage backend: {type(backend).__name__}")
