"""
Error kinds raised while composing the Orthanc topology.

Nothing here is retried. Every error aborts the current composition run; any
resources already deployed are left to CloudFormation's own rollback.
"""


class TopologyError(Exception):
    """Base class for all composition errors."""


class ConfigurationConflict(TopologyError):
    """A deployment input is malformed or contradicts another input."""


class DependencyUnavailable(TopologyError):
    """A stack was built before the stack it depends on produced its outputs."""


class ProvisioningFailure(TopologyError):
    """CDK could not declare a resource. The underlying message is kept verbatim."""
