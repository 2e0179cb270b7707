import logging

from aws_cdk import Stack, CfnOutput, CfnParameter, CfnCapabilities, SecretValue
from constructs import Construct

import aws_cdk.aws_codebuild as codebuild
import aws_cdk.aws_codepipeline as codepipeline
import aws_cdk.aws_codepipeline_actions as codepipeline_actions
from aws_cdk.aws_iam import (
    Effect,
    PolicyDocument,
    PolicyStatement,
    Role,
    ServicePrincipal,
)
from aws_cdk.aws_s3 import Bucket, BlockPublicAccess, BucketEncryption

import ecs_pipeline_stack.config as config
from ecs_pipeline_stack.buildspec import build_spec_object

logger = logging.getLogger(__name__)

BUILD_IMAGE = "aws/codebuild/standard:5.0"

CODEBUILD_ACTIONS = [
    "logs:CreateLogGroup",
    "logs:CreateLogStream",
    "logs:PutLogEvents",
    "s3:GetObject",
    "s3:PutObject",
    "cloudformation:ValidateTemplate",
    "ecr:GetAuthorizationToken",
    "ecr:BatchCheckLayerAvailability",
    "ecr:CompleteLayerUpload",
    "ecr:InitiateLayerUpload",
    "ecr:PutImage",
    "ecr:UploadLayerPart",
]
CODEPIPELINE_ACTIONS = ["s3:*", "codebuild:*", "cloudformation:*", "iam:PassRole"]
CLOUDFORMATION_ACTIONS = [
    "ec2:*",
    "ecs:*",
    "elasticloadbalancing:*",
    "rds:*",
    "logs:*",
    "s3:*",
    "ecr:*",
]


def _service_role(
    scope: Construct,
    construct_id: str,
    service: str,
    policy_name: str,
    actions: list,
) -> Role:
    return Role(
        scope,
        construct_id,
        assumed_by=ServicePrincipal(service),
        inline_policies={
            policy_name: PolicyDocument(
                statements=[
                    PolicyStatement(
                        effect=Effect.ALLOW,
                        actions=actions,
                        resources=["*"],
                    )
                ]
            )
        },
    )


class EcsPipelineStack(Stack):
    def __init__(
        self, scope: Construct, construct_id: str, config_data=None, **kwargs
    ) -> None:
        super().__init__(scope, construct_id, **kwargs)

        if config_data is None:
            config_data = config.getConfigurations(self.node.try_get_context("pipeline"))
        logger.info(f"{construct_id=} {config_data=}")

        # deploy-time parameters, defaults come from the synth-time config
        github_owner = CfnParameter(
            self,
            "GitHubOwner",
            type="String",
            description="GitHub username or organization",
            default=config_data["github_owner"],
        )
        github_repo = CfnParameter(
            self,
            "GitHubRepo",
            type="String",
            description="GitHub repository name",
            default=config_data["github_repo"],
        )
        github_branch = CfnParameter(
            self,
            "GitHubBranch",
            type="String",
            description="GitHub branch to monitor",
            default=config_data["github_branch"],
        )
        github_oauth_token = CfnParameter(
            self,
            "GitHubOAuthToken",
            type="String",
            description="GitHub OAuth token for CodePipeline",
            no_echo=True,
        )
        build_project_name = CfnParameter(
            self,
            "BuildProjectName",
            type="String",
            default=config_data["build_project_name"],
        )
        stack_name = CfnParameter(
            self,
            "StackName",
            type="String",
            default=config_data["stack_name"],
        )
        template_file = CfnParameter(
            self,
            "TemplateFile",
            type="String",
            default=config_data["template_file"],
        )
        ecr_repository_name = CfnParameter(
            self,
            "ECRRepositoryName",
            type="String",
            default=config_data["ecr_repository_name"],
        )

        artifact_bucket = Bucket(
            self,
            "ArtifactBucket",
            bucket_name=f"{config_data['artifact_bucket_prefix']}-{self.account}-{self.region}",
            block_public_access=BlockPublicAccess.BLOCK_ALL,
            encryption=BucketEncryption.S3_MANAGED,
        )

        codebuild_role = _service_role(
            self,
            "CodeBuildRole",
            "codebuild.amazonaws.com",
            "CodeBuildPolicy",
            CODEBUILD_ACTIONS,
        )
        codepipeline_role = _service_role(
            self,
            "CodePipelineRole",
            "codepipeline.amazonaws.com",
            "CodePipelinePolicy",
            CODEPIPELINE_ACTIONS,
        )
        cloudformation_role = _service_role(
            self,
            "CloudFormationRole",
            "cloudformation.amazonaws.com",
            "CloudFormationPolicy",
            CLOUDFORMATION_ACTIONS,
        )

        ecr_repository_uri = (
            f"{self.account}.dkr.ecr.{self.region}.amazonaws.com/"
            f"{ecr_repository_name.value_as_string}"
        )
        build_project = codebuild.PipelineProject(
            self,
            "CodeBuildProject",
            project_name=build_project_name.value_as_string,
            role=codebuild_role,
            environment=codebuild.BuildEnvironment(
                build_image=codebuild.LinuxBuildImage.from_code_build_image_id(BUILD_IMAGE),
                compute_type=codebuild.ComputeType.SMALL,
                privileged=config_data["privileged_mode"],
            ),
            environment_variables={
                "STACK_NAME": codebuild.BuildEnvironmentVariable(
                    value=stack_name.value_as_string
                ),
                "TEMPLATE_FILE": codebuild.BuildEnvironmentVariable(
                    value=template_file.value_as_string
                ),
                "ECR_REPOSITORY_URI": codebuild.BuildEnvironmentVariable(
                    value=ecr_repository_uri
                ),
            },
            build_spec=codebuild.BuildSpec.from_object(build_spec_object()),
            cache=codebuild.Cache.none(),
        )

        source_output = codepipeline.Artifact("SourceArtifact")
        build_output = codepipeline.Artifact("BuildArtifact")

        trigger = getattr(codepipeline_actions.GitHubTrigger, config_data["source_trigger"])
        logger.info(f"source trigger: {trigger}")

        pipeline = codepipeline.Pipeline(
            self,
            "CodePipeline",
            role=codepipeline_role,
            artifact_bucket=artifact_bucket,
            cross_account_keys=False,
        )
        pipeline.add_stage(
            stage_name="Source",
            actions=[
                codepipeline_actions.GitHubSourceAction(
                    action_name="SourceAction",
                    owner=github_owner.value_as_string,
                    repo=github_repo.value_as_string,
                    branch=github_branch.value_as_string,
                    oauth_token=SecretValue.cfn_parameter(github_oauth_token),
                    output=source_output,
                    trigger=trigger,
                    run_order=1,
                )
            ],
        )
        pipeline.add_stage(
            stage_name="Build",
            actions=[
                codepipeline_actions.CodeBuildAction(
                    action_name="BuildAction",
                    project=build_project,
                    input=source_output,
                    outputs=[build_output],
                    run_order=1,
                )
            ],
        )
        pipeline.add_stage(
            stage_name="Deploy",
            actions=[
                codepipeline_actions.CloudFormationCreateUpdateStackAction(
                    action_name="DeployAction",
                    stack_name=stack_name.value_as_string,
                    template_path=build_output.at_path(template_file.value_as_string),
                    admin_permissions=False,
                    deployment_role=cloudformation_role,
                    cfn_capabilities=[CfnCapabilities.NAMED_IAM],
                    run_order=1,
                )
            ],
        )

        CfnOutput(
            self,
            "PipelineUrl",
            description="URL of the CodePipeline",
            value=(
                f"https://{self.region}.console.aws.amazon.com/codesuite/codepipeline/"
                f"pipelines/{pipeline.pipeline_name}/view"
            ),
        )
