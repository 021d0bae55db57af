import json

from aws_cdk import aws_secretsmanager as secretsmanager
from constructs import Construct

from ..outputs import CredentialSecret, SecretGeneratorPolicy

DATABASE_USERNAME = "postgres"

DATABASE_CREDENTIAL_POLICY = SecretGeneratorPolicy(
    generate_key="password",
    template_fields={"username": DATABASE_USERNAME},
)
# Orthanc reads ORTHANC__REGISTERED_USERS as {"<user>": "<password>"}
ADMIN_CREDENTIAL_POLICY = SecretGeneratorPolicy(generate_key="admin")


def generate_secret(scope: Construct, id: str, policy: SecretGeneratorPolicy, description: str) -> CredentialSecret:
    """
    Create a Secrets Manager secret whose value is generated at deploy time.

    The value never exists at synth time, so it can't leak into the template or logs.
    No reader is granted here; callers grant each principal explicitly.
    """
    secret = secretsmanager.Secret(
        scope,
        id,
        description=description,
        generate_secret_string=secretsmanager.SecretStringGenerator(
            secret_string_template=json.dumps(policy.template_fields or {}),
            generate_string_key=policy.generate_key,
            exclude_characters=policy.excluded_characters,
            password_length=policy.length,
        ),
    )
    return CredentialSecret(name=id, secret=secret, generator_policy=policy)


def create_database_credential(scope: Construct) -> CredentialSecret:
    """Create the PostgreSQL master credential."""
    return generate_secret(
        scope,
        "Orthanc-RDSDatabaseSecret",
        DATABASE_CREDENTIAL_POLICY,
        description="Orthanc PostgreSQL master credential",
    )


def create_admin_credential(scope: Construct) -> CredentialSecret:
    """Create the Orthanc admin credential, distinct from the database one."""
    return generate_secret(
        scope,
        "Orthanc-Credentials",
        ADMIN_CREDENTIAL_POLICY,
        description="Orthanc admin user credential",
    )
