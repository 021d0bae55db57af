"""Small lookups over synthesized templates shared by the unit tests."""
from aws_cdk.assertions import Template


def single_logical_id(template: Template, resource_type: str, props: dict) -> str:
    matches = template.find_resources(resource_type, {"Properties": props})
    assert len(matches) == 1, f"expected one {resource_type} matching {props}, got {len(matches)}"
    return next(iter(matches))


def security_group_id(template: Template, description: str) -> str:
    return single_logical_id(template, "AWS::EC2::SecurityGroup", {"GroupDescription": description})


def ingress_rules(template: Template, group_logical_id: str) -> list:
    """Standalone ingress rules (SG-sourced rules are never inlined) targeting the group."""
    target = {"Fn::GetAtt": [group_logical_id, "GroupId"]}
    return [
        resource["Properties"]
        for resource in template.find_resources("AWS::EC2::SecurityGroupIngress").values()
        if resource["Properties"]["GroupId"] == target
    ]


def policy_actions(template: Template, role_logical_id: str = None) -> set:
    """Every IAM action granted by the stack's policies, optionally only those attached to one role."""
    actions = set()
    for policy in template.find_resources("AWS::IAM::Policy").values():
        props = policy["Properties"]
        if role_logical_id and {"Ref": role_logical_id} not in props.get("Roles", []):
            continue
        for statement in props["PolicyDocument"]["Statement"]:
            statement_actions = statement["Action"]
            if isinstance(statement_actions, str):
                statement_actions = [statement_actions]
            actions.update(statement_actions)
    return actions


def orthanc_container(template: Template) -> dict:
    task_definitions = template.find_resources("AWS::ECS::TaskDefinition")
    assert len(task_definitions) == 1
    containers = next(iter(task_definitions.values()))["Properties"]["ContainerDefinitions"]
    assert len(containers) == 1
    return containers[0]


def container_environment(template: Template) -> dict:
    return {entry["Name"]: entry["Value"] for entry in orthanc_container(template).get("Environment", [])}
