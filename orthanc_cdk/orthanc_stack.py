from typing import Optional

from aws_cdk import (
    CfnOutput,
    Stack,
)
from constructs import Construct

from .cdn.create_distribution import create_distribution
from .compute.create_service import (
    ORTHANC_HEALTH_CHECK,
    create_cluster,
    create_fargate_service,
    create_load_balancer,
)
from .compute.create_task import (
    attach_storage_backend,
    create_orthanc_container,
    create_task_definition,
)
from .config import DEFAULT_ORTHANC_IMAGE
from .credentials.create_secrets import create_admin_credential
from .errors import DependencyUnavailable
from .outputs import NetworkOutputs, ServiceEndpoint, ServiceOutputs, StorageOutputs
from .roles.create_roles import create_task_roles, grant_storage_access


class OrthancStack(Stack):

    def __init__(
        self,
        scope: Construct,
        construct_id: str,
        *,
        network: Optional[NetworkOutputs],
        storage: Optional[StorageOutputs],
        enable_multi_az: bool = False,
        access_log_bucket_arn: Optional[str] = None,
        container_image: str = DEFAULT_ORTHANC_IMAGE,
        domain_name: Optional[str] = None,
        certificate_arn: Optional[str] = None,
        **kwargs,
    ) -> None:
        if network is None:
            raise DependencyUnavailable(f"{construct_id} needs the network outputs; build the network stack first")
        if storage is None:
            raise DependencyUnavailable(f"{construct_id} needs the storage outputs; build the storage stack first")
        super().__init__(scope, construct_id, **kwargs)

        groups = network.groups

        # Orthanc admin credential (Secrets Manager)
        admin_credential = create_admin_credential(self)

        # Task identities and definition
        task_role, execution_role = create_task_roles(self)
        task_definition = create_task_definition(self, task_role=task_role, execution_role=execution_role)
        container = create_orthanc_container(
            self,
            task_definition=task_definition,
            image=container_image,
            database=storage.database,
            database_credential=storage.credential,
            admin_credential=admin_credential,
        )

        # Storage wiring follows the backend variant, not the flag
        attach_storage_backend(self, task_definition=task_definition, container=container, backend=storage.backend)
        grant_storage_access(storage.backend, task_definition.task_role)

        # Load balancer and Fargate service
        load_balancer = create_load_balancer(
            self,
            vpc=network.vpc,
            security_group=groups.lb,
            access_log_bucket_arn=access_log_bucket_arn,
        )
        create_fargate_service(
            self,
            cluster=create_cluster(self, network.vpc),
            load_balancer=load_balancer,
            task_definition=task_definition,
            security_group=groups.service,
            desired_count=2 if enable_multi_az else 1,
        )

        # CloudFront front door
        distribution = create_distribution(
            self,
            load_balancer,
            domain_name=domain_name,
            certificate_arn=certificate_arn,
        )

        # Stack outputs
        CfnOutput(
            self,
            "OrthancCredentialsName",
            value=admin_credential.secret.secret_name,
            description="The name of the OrthancCredentials secret",
            export_name="orthancCredentialsName",
        )
        CfnOutput(
            self,
            "OrthancURL",
            value=distribution.distribution_domain_name,
            description="Orthanc Distribution URL",
            export_name="orthancDistributionURL",
        )

        self.outputs = ServiceOutputs(
            endpoint=ServiceEndpoint(
                load_balancer=load_balancer,
                distribution=distribution,
                health_check=ORTHANC_HEALTH_CHECK,
            ),
            application_credential=admin_credential,
        )
