from typing import Optional

from aws_cdk import Stack
from constructs import Construct

from .credentials.create_secrets import create_database_credential
from .errors import DependencyUnavailable
from .outputs import NetworkOutputs, StorageBackend, StorageOutputs
from .storage.create_bucket import create_dicom_bucket
from .storage.create_database import create_database
from .storage.create_filesystem import create_dicom_filesystem


class StorageStack(Stack):

    def __init__(
        self,
        scope: Construct,
        construct_id: str,
        *,
        network: Optional[NetworkOutputs],
        use_object_storage_backend: bool = True,
        enable_multi_az: bool = False,
        enable_backup: bool = False,
        **kwargs,
    ) -> None:
        if network is None:
            raise DependencyUnavailable(f"{construct_id} needs the network outputs; build the network stack first")
        super().__init__(scope, construct_id, **kwargs)

        # Database credential; the value is generated by Secrets Manager at deploy time
        credential = create_database_credential(self)

        # DICOM image store: exactly one of S3 or EFS is declared
        backend: StorageBackend
        if use_object_storage_backend:
            backend = create_dicom_bucket(self)
        else:
            backend = create_dicom_filesystem(self, vpc=network.vpc, security_group=network.groups.filesystem)

        # Orthanc index database
        database = create_database(
            self,
            vpc=network.vpc,
            security_group=network.groups.database,
            credential=credential,
            multi_az=enable_multi_az,
            enable_backup=enable_backup,
        )

        self.outputs = StorageOutputs(database=database, credential=credential, backend=backend)
