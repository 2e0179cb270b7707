#!/usr/bin/env python3
import logging
import aws_cdk as cdk

import ecs_pipeline_stack.config as config
from ecs_pipeline_stack.ecs_pipeline_stack_stack import (
    EcsPipelineStack,
)

logging.basicConfig(format="%(levelname)s %(name)s: %(message)s")
logger = logging.getLogger()
logger.setLevel(logging.INFO)

app = cdk.App()
config_data = config.getConfigurations(app.node.try_get_context("pipeline"))
EcsPipelineStack(
    app,
    config_data["stack_id"],
    config_data=config_data,
    description=config_data["description"],
)
app.synth()
