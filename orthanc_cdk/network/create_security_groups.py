from aws_cdk import aws_ec2 as ec2
from constructs import Construct

from ..outputs import SecurityGroups

WEB_PORT = 80
DICOM_PORT = 4242
DICOM_WEB_PORT = 8042
POSTGRES_PORT = 5432
NFS_PORT = 2049


def create_security_groups(scope: Construct, vpc: ec2.IVpc) -> SecurityGroups:
    """
    Build the security group matrix.

    Groups are created in a fixed order so that each one can only name earlier
    groups (or itself) as an ingress source:

        lb          <- 0.0.0.0/0 on 80
        service     <- lb on 80, 4242, 8042; itself on all traffic
        database    <- service on 5432
        filesystem  <- service on 2049
    """
    lb = ec2.SecurityGroup(
        scope,
        "Orthanc-ALB-SecurityGroup",
        vpc=vpc,
        description="Orthanc load balancer",
        allow_all_outbound=True,
    )
    lb.add_ingress_rule(ec2.Peer.any_ipv4(), ec2.Port.tcp(WEB_PORT), "Public web traffic")

    service = ec2.SecurityGroup(
        scope,
        "Orthanc-ECS-SecurityGroup",
        vpc=vpc,
        description="Orthanc Fargate service",
        allow_all_outbound=True,
    )
    service.add_ingress_rule(lb, ec2.Port.tcp(WEB_PORT), "Web traffic from the load balancer")
    service.add_ingress_rule(lb, ec2.Port.tcp(DICOM_PORT), "DICOM store from the load balancer")
    service.add_ingress_rule(lb, ec2.Port.tcp(DICOM_WEB_PORT), "DICOMweb from the load balancer")
    service.add_ingress_rule(service, ec2.Port.all_traffic(), "Intra-service traffic")

    database = ec2.SecurityGroup(
        scope,
        "Orthanc-DBCluster-SecurityGroup",
        vpc=vpc,
        description="Orthanc PostgreSQL database",
        allow_all_outbound=False,
    )
    database.add_ingress_rule(service, ec2.Port.tcp(POSTGRES_PORT), "PostgreSQL from the Orthanc service")

    filesystem = ec2.SecurityGroup(
        scope,
        "Orthanc-EFS-SecurityGroup",
        vpc=vpc,
        description="Orthanc EFS file system",
        allow_all_outbound=False,
    )
    filesystem.add_ingress_rule(service, ec2.Port.tcp(NFS_PORT), "NFS from the Orthanc service")

    return SecurityGroups(lb=lb, service=service, database=database, filesystem=filesystem)
