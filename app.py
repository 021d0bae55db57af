#!/usr/bin/env python3
import aws_cdk as cdk

from orthanc_cdk.composer import compose_topology
from orthanc_cdk.config import load_config


app = cdk.App()

# Feature flags, account and region come from context (-c key=value / cdk.json)
# or environment variables; see orthanc_cdk/config.py for every option
config = load_config(app)

compose_topology(app, config)

app.synth()
